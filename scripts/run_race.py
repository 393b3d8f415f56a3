"""
Terminal runner for the race game.

Usage:
    python scripts/run_race.py --horses 20 --seed 7 --fast
    python scripts/run_race.py --race-id 3

Without --race-id the whole schedule runs in round order, with the
configured delay between races (skipped with --fast).
"""

from __future__ import annotations

import argparse
import asyncio
import os
import random
import sys
from dataclasses import replace

import numpy as np

# Ensure repo root is on sys.path when script is executed from anywhere
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.append(REPO_ROOT)

from derby_sim.config import GAME_CONFIG  # noqa: E402
from derby_sim.controller import RaceController  # noqa: E402
from derby_sim.engine import LifecycleEvent  # noqa: E402
from derby_sim.errors import GameError  # noqa: E402
from derby_sim.horse_lookup import HorseLookup, standings  # noqa: E402


async def _no_wait(_seconds: float) -> None:
    await asyncio.sleep(0)


def _print_event(event: LifecycleEvent) -> None:
    if event.kind == "countdown_tick":
        print(f"  next race in {event.detail['remaining']}...")
    elif event.kind == "race_started":
        print(f"\nRound {event.race_id} ({event.detail['distance']}m) - they're off!")


def build_controller(args: argparse.Namespace) -> RaceController:
    config = GAME_CONFIG
    if args.fast:
        config = replace(config, min_race_duration_ms=0, race_delay_ms=0)
    controller = RaceController(
        config,
        rng=random.Random(args.seed),
        np_rng=np.random.default_rng(args.seed),
        sleep=_no_wait if args.fast else asyncio.sleep,
        verbose=not args.silent,
    )
    if not args.silent:
        controller.telemetry.subscribe(_print_event)
    return controller


async def run(args: argparse.Namespace) -> int:
    controller = build_controller(args)
    try:
        controller.generate_horses(args.horses)
        controller.generate_race_schedule()
        if args.race_id is not None:
            await controller.run_single_race(args.race_id)
        else:
            await controller.run_all_races()
    except GameError as e:
        print(f"Error [{e.code}]: {e}")
        return 1

    if args.silent:
        print(f"{len(controller.state.completed_races)} race(s) completed.")
        return 0

    for race in controller.state.completed_races:
        print(f"\nRound {race.round} - {race.distance}m ({race.actual_duration_ms:.0f}ms)")
        for result in race.results:
            gap = "" if result.position == 1 else f" +{result.gap:.2f}s"
            print(f"  {result.position:>2}. {result.horse.name:<10} #{result.horse_id:<3} {result.time:5.2f}s {result.speed:7.2f} m/s{gap}")

    lookup = HorseLookup(controller.races)
    print("\nStandings:")
    for horse_id, stats in standings(controller.races)[:5]:
        print(f"  {lookup.get_horse_name(horse_id)} (#{horse_id}): {stats.wins} win(s) from {stats.races} race(s)")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a Derby race schedule in the terminal.")
    parser.add_argument("--horses", type=int, default=GAME_CONFIG.default_horses_generated, help="Horses to generate.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible horses and results.")
    parser.add_argument("--race-id", type=int, default=None, help="Run only this round.")
    parser.add_argument("--fast", action="store_true", help="Skip race animation time and delays.")
    parser.add_argument("--silent", action="store_true", help="Only print a summary line.")
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
