from __future__ import annotations

import random
from typing import List, Optional, Sequence, Set

from derby_sim.errors import PreconditionError

from .data_models import Horse


def shuffle_horses(horses: Sequence[Horse], rng: Optional[random.Random] = None) -> List[Horse]:
    """Returns a Fisher-Yates shuffled copy; the input is left untouched."""
    rng = rng or random
    shuffled = list(horses)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def select_random_horses(
    horses: Sequence[Horse],
    count: int = 10,
    rng: Optional[random.Random] = None,
) -> List[Horse]:
    if len(horses) <= count:
        return list(horses)
    return shuffle_horses(horses, rng)[:count]


def _select_with_minimal_overlap(
    horses: Sequence[Horse],
    races_count: int,
    horses_per_race: int,
    rng: Optional[random.Random],
) -> List[List[Horse]]:
    groups: List[List[Horse]] = []
    used: Set[int] = set()

    for _ in range(races_count):
        available = [horse for horse in horses if horse.horse_id not in used]
        # Not enough fresh horses left: start reusing the whole pool
        if len(available) < horses_per_race:
            used.clear()
            available = list(horses)

        selected = select_random_horses(available, horses_per_race, rng)
        groups.append(selected)
        used.update(horse.horse_id for horse in selected)

    return groups


def select_horses_for_races(
    horses: Sequence[Horse],
    races_count: int,
    horses_per_race: int = 10,
    rng: Optional[random.Random] = None,
) -> List[List[Horse]]:
    """
    Builds one group of `horses_per_race` horses for each race.

    With enough horses the groups are pairwise disjoint. Otherwise horses are
    spread greedily across races before any of them runs twice; that is a
    heuristic, not a minimal-overlap guarantee.
    """
    if len(horses) < horses_per_race:
        raise PreconditionError(
            f"Not enough horses. Need at least {horses_per_race} horses, but only have {len(horses)}",
            code="INSUFFICIENT_HORSES",
            available=len(horses),
            required=horses_per_race,
        )

    if len(horses) < races_count * horses_per_race:
        return _select_with_minimal_overlap(horses, races_count, horses_per_race, rng)

    shuffled = shuffle_horses(horses, rng)
    return [
        shuffled[index * horses_per_race:(index + 1) * horses_per_race]
        for index in range(races_count)
    ]
