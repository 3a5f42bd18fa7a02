#!/usr/bin/env python
"""Solve every preset scenario and run a freeflight launch.

Prints solve time, fuel use and landing accuracy for each preset, then the
outcome of a default freeflight burn. Exits non-zero if any preset fails.

Usage:
    python scripts/solve_presets.py [--glideslope DEG] [--verbose]
"""

import argparse
import logging
import math
import sys
import time

import numpy as np

from cvxkerb import (
    SCENARIOS,
    CvxkerbError,
    FreeflightConfig,
    FreeflightIntegrator,
    GFoldGuidance,
    SolverHandle,
)
from cvxkerb.dynamics import DynamicsDiscretizer


def solve_preset(guidance: GFoldGuidance, name: str, glideslope_deg: float | None) -> bool:
    """Solve one preset and print its summary."""
    print("=" * 60)
    print(name)
    print("=" * 60)

    config = SCENARIOS[name]
    if glideslope_deg is not None:
        config = config.with_updates(glideslope_angle=math.radians(glideslope_deg))

    print(f"Start: {config.initial_position} m, {config.initial_velocity} m/s")
    print(f"Horizon: {config.horizon:.0f} s, T/W: {config.max_thrust / (config.mass * config.gravity):.2f}")

    start = time.time()
    try:
        traj = guidance.plan(config)
    except CvxkerbError as err:
        print(f"FAILED in {time.time() - start:.2f}s: {err}")
        print()
        return False
    elapsed = time.time() - start

    vel_res, pos_res = DynamicsDiscretizer.from_scenario(config).residuals(traj)
    print(f"SUCCESS in {elapsed:.2f}s")
    print(f"  Fuel used (total impulse): {traj.fuel_used / 1e3:.1f} kN*s")
    print(f"  Peak thrust: {traj.thrust_magnitude.max() / config.max_thrust * 100:.1f}%")
    print(f"  Final pos error: {np.linalg.norm(traj.final_position - config.p_target):.2e} m")
    print(f"  Final velocity: {np.linalg.norm(traj.final_velocity):.2e} m/s")
    print(f"  Max dynamics residual: {max(np.abs(vel_res).max(), np.abs(pos_res).max()):.2e}")
    print()
    return True


def run_freeflight() -> None:
    print("=" * 60)
    print("Freeflight (10 s burn)")
    print("=" * 60)

    result = FreeflightIntegrator(FreeflightConfig()).simulate(dt=0.1)
    final = result.final_state
    outcome = "CRASHED" if final.has_crashed else "LANDED" if final.has_landed_safely else "IN FLIGHT"
    print(f"  Max altitude: {result.max_altitude:.0f} m")
    print(f"  Outcome: {outcome} at t={final.elapsed_time:.1f} s")
    print()


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--glideslope", type=float, default=None, help="Glide-slope half-angle [deg]")
    parser.add_argument("--verbose", action="store_true", help="Log solver activity")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    guidance = GFoldGuidance(SolverHandle.acquire())
    results = [(name, solve_preset(guidance, name, args.glideslope)) for name in SCENARIOS]
    run_freeflight()

    print("=" * 60)
    print("SUMMARY")
    print("=" * 60)
    for name, passed in results:
        print(f"  {name}: {'PASS' if passed else 'FAIL'}")

    return 0 if all(passed for _, passed in results) else 1


if __name__ == "__main__":
    sys.exit(main())
