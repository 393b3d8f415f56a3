from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from derby_sim.engine import Horse, HorseStats, Race

UNKNOWN_NAME = "Unknown"
UNKNOWN_COLOR = "#000000"


class HorseLookup:
    """O(1) horse access by id over every horse entered in a schedule."""

    def __init__(self, races: Iterable[Race] = ()) -> None:
        self._horses: Dict[int, Horse] = {}
        self.update_races(races)

    def update_races(self, races: Iterable[Race]) -> None:
        self._horses.clear()
        for race in races:
            for horse in race.horses:
                # Horses can run in several races; keep the first reference
                self._horses.setdefault(horse.horse_id, horse)

    def get_horse(self, horse_id: int) -> Optional[Horse]:
        return self._horses.get(horse_id)

    def get_horse_name(self, horse_id: int) -> str:
        horse = self._horses.get(horse_id)
        return horse.name if horse else UNKNOWN_NAME

    def get_horse_color(self, horse_id: int) -> str:
        horse = self._horses.get(horse_id)
        return horse.color.value if horse else UNKNOWN_COLOR

    def get_horse_condition(self, horse_id: int) -> int:
        horse = self._horses.get(horse_id)
        return horse.condition if horse else 0

    def has_horse(self, horse_id: int) -> bool:
        return horse_id in self._horses

    def all_horses(self) -> List[Horse]:
        return list(self._horses.values())

    def __len__(self) -> int:
        return len(self._horses)


def compute_horse_stats(races: Iterable[Race]) -> Dict[int, HorseStats]:
    """Aggregates per-horse form across every race that has results."""
    times: Dict[int, List[float]] = defaultdict(list)
    wins: Dict[int, int] = defaultdict(int)
    distance: Dict[int, float] = defaultdict(float)

    for race in races:
        for result in race.results or ():
            times[result.horse_id].append(result.time)
            distance[result.horse_id] += result.distance
            if result.position == 1:
                wins[result.horse_id] += 1

    return {
        horse_id: HorseStats(
            races=len(horse_times),
            wins=wins[horse_id],
            average_time=round(sum(horse_times) / len(horse_times), 2),
            best_time=min(horse_times),
            total_distance=distance[horse_id],
        )
        for horse_id, horse_times in times.items()
    }


def standings(races: Iterable[Race]) -> List[tuple]:
    """(horse_id, HorseStats) pairs ranked by wins, then best time."""
    stats = compute_horse_stats(races)
    return sorted(stats.items(), key=lambda item: (-item[1].wins, item[1].best_time, item[0]))
