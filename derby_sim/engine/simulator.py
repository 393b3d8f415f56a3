from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from derby_sim.config import RACE_CONSTANTS, RaceConstants

from .data_models import Horse, HorseSnapshot, RaceResult


def _round2(value: float) -> float:
    return round(float(value), 2)


def base_time(condition: float, distance: float, constants: RaceConstants = RACE_CONSTANTS) -> float:
    """Jitter-free finishing time in seconds. Higher condition is faster."""
    return (distance / constants.distance_conversion_factor) * (constants.base_condition_factor - condition)


def roll_times(
    horses: Sequence[Horse],
    distance: float,
    rng: Optional[np.random.Generator] = None,
    constants: RaceConstants = RACE_CONSTANTS,
) -> np.ndarray:
    """Raw (unrounded) finishing times with a fresh jitter per horse."""
    rng = rng if rng is not None else np.random.default_rng()
    conditions = np.array([horse.condition for horse in horses], dtype=float)
    base = (distance / constants.distance_conversion_factor) * (constants.base_condition_factor - conditions)
    jitter = rng.uniform(constants.random_factor_min, constants.random_factor_max, size=len(horses))
    return base * jitter


def simulate_race(
    horses: Sequence[Horse],
    distance: float,
    rng: Optional[np.random.Generator] = None,
    constants: RaceConstants = RACE_CONSTANTS,
) -> List[RaceResult]:
    """
    Runs one race and returns results ordered by finishing position.

    Times, speeds and gaps are rounded to 2 decimals where they are computed.
    When the slowest time exceeds the ceiling every time is scaled by the same
    factor, so the slowest lands exactly on the ceiling and the order holds.
    """
    if not horses:
        return []

    raw_times = roll_times(horses, distance, rng, constants)
    entries = [
        {
            "horse": horse,
            "time": _round2(raw),
            "speed": _round2(distance / raw),
        }
        for horse, raw in zip(horses, raw_times)
    ]

    # Stable: equal times keep field order
    entries.sort(key=lambda entry: entry["time"])

    slowest = entries[-1]["time"]
    if slowest > constants.max_race_time_seconds:
        scale = constants.max_race_time_seconds / slowest
        for entry in entries:
            entry["time"] = _round2(entry["time"] * scale)
            entry["speed"] = _round2(distance / entry["time"])

    winner_time = entries[0]["time"]
    results: List[RaceResult] = []
    for position, entry in enumerate(entries, start=1):
        horse = entry["horse"]
        gap = 0.0 if position == 1 else _round2(entry["time"] - winner_time)
        results.append(
            RaceResult(
                horse_id=horse.horse_id,
                position=position,
                time=entry["time"],
                speed=entry["speed"],
                distance=distance,
                gap=gap,
                horse=HorseSnapshot.from_horse(horse),
            )
        )
    return results


def slowest_time(results: Sequence[RaceResult]) -> float:
    if not results:
        return 0.0
    return max(result.time for result in results)
