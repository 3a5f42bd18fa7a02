"""Telemetry plots for descent trajectories.

Provides 2D plots for checking a solution at a glance:
- Altitude, speed and thrust history of a guidance trajectory
- Altitude and vertical velocity history of a freeflight run

3D scene rendering is left to the visualization layer.
"""

import matplotlib.pyplot as plt
from beartype import beartype
from matplotlib.figure import Figure

from cvxkerb.simulation.freeflight import SAFE_LANDING_SPEED, FreeflightResult
from cvxkerb.trajectory import Trajectory
from cvxkerb.typecheck import NUMERIC_TOWER

# =============================================================================
# Plot Style Configuration
# =============================================================================

COLORS = {
    "primary": "#2E86AB",  # Steel blue
    "secondary": "#A23B72",  # Berry
    "accent": "#F18F01",  # Orange
    "limit": "#E63946",  # Constraint lines
    "grid": "#CCCCCC",
    "text": "#333333",
}

DEFAULT_FIGSIZE = (12.0, 8.0)


def _setup_style() -> None:
    """Configure matplotlib style for consistent appearance."""
    plt.rcParams.update(
        {
            "font.family": "sans-serif",
            "font.sans-serif": ["Helvetica", "Arial", "DejaVu Sans"],
            "font.size": 11,
            "axes.titlesize": 13,
            "axes.labelsize": 11,
            "axes.linewidth": 1.2,
            "axes.edgecolor": COLORS["text"],
            "axes.labelcolor": COLORS["text"],
            "legend.fontsize": 10,
            "grid.alpha": 0.5,
        }
    )


# =============================================================================
# Guidance Trajectory
# =============================================================================


@beartype(conf=NUMERIC_TOWER)
def plot_descent_profile(
    trajectory: Trajectory,
    max_thrust: float | None = None,
    figsize: tuple[float, float] = DEFAULT_FIGSIZE,
    title: str | None = None,
) -> Figure:
    """Plot altitude, speed and thrust of a guidance trajectory.

    Args:
        trajectory: Solved trajectory
        max_thrust: If given, draw the thrust limit [N]
        figsize: Figure size
        title: Optional figure title

    Returns:
        matplotlib Figure with three stacked subplots
    """
    _setup_style()

    t = trajectory.times
    fig, (ax1, ax2, ax3) = plt.subplots(3, 1, figsize=figsize, sharex=True)

    ax1.plot(t, trajectory.altitude, color=COLORS["primary"], linewidth=2)
    ax1.set_ylabel("Altitude (m)")
    ax1.grid(True, alpha=0.3)

    ax2.plot(t, trajectory.speed, color=COLORS["accent"], linewidth=2, label="Speed")
    ax2.plot(
        t, trajectory.velocities[:, 2],
        color=COLORS["secondary"], linewidth=1.5, linestyle="--", label="Vertical",
    )
    ax2.set_ylabel("Velocity (m/s)")
    ax2.grid(True, alpha=0.3)
    ax2.legend()

    # Thrust is held over each step
    thrust_kn = trajectory.thrust_magnitude / 1e3
    ax3.step(t[:-1], thrust_kn, where="post", color=COLORS["primary"], linewidth=2)
    if max_thrust is not None:
        ax3.axhline(
            y=max_thrust / 1e3,
            color=COLORS["limit"],
            linestyle="--",
            alpha=0.7,
            label="Max thrust",
        )
        ax3.legend()
    ax3.set_xlabel("Time (s)")
    ax3.set_ylabel("Thrust (kN)")
    ax3.grid(True, alpha=0.3)

    fig.suptitle(
        title or f"Descent Profile (fuel {trajectory.fuel_used / 1e3:.0f} kN*s)",
        fontsize=14,
    )
    fig.tight_layout()
    return fig


# =============================================================================
# Freeflight Run
# =============================================================================


@beartype(conf=NUMERIC_TOWER)
def plot_freeflight(
    result: FreeflightResult,
    figsize: tuple[float, float] = (12.0, 6.0),
) -> Figure:
    """Plot altitude and vertical velocity of a freeflight run."""
    _setup_style()

    t = result.time
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=figsize)

    ax1.plot(t, result.position[:, 2], color=COLORS["primary"], linewidth=2)
    ax1.set_xlabel("Time (s)")
    ax1.set_ylabel("Altitude (m)")
    ax1.set_title("Altitude")
    ax1.grid(True, alpha=0.3)

    ax2.plot(t, result.velocity[:, 2], color=COLORS["accent"], linewidth=2)
    ax2.axhline(
        y=-SAFE_LANDING_SPEED,
        color=COLORS["limit"],
        linestyle="--",
        alpha=0.7,
        label="Safe landing speed",
    )
    ax2.set_xlabel("Time (s)")
    ax2.set_ylabel("Vertical velocity (m/s)")
    ax2.set_title("Vertical Velocity")
    ax2.grid(True, alpha=0.3)
    ax2.legend()

    final = result.final_state
    outcome = "Crashed" if final.has_crashed else "Landed" if final.has_landed_safely else "In flight"
    fig.suptitle(f"Freeflight: {outcome} at t={final.elapsed_time:.1f} s", fontsize=14)
    fig.tight_layout()
    return fig
