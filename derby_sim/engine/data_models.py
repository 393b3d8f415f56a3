from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class RaceState(Enum):
    """Per-race lifecycle. Only ever moves forward; resets jump back to PENDING."""

    PENDING = "pending"
    RACING = "racing"
    COMPLETED = "completed"


class GamePhase(Enum):
    IDLE = "idle"
    GENERATING = "generating"
    RACING = "racing"
    COMPLETED = "completed"


@dataclass(frozen=True)
class HorseColor:
    name: str
    value: str


@dataclass(frozen=True)
class Horse:
    horse_id: int
    name: str
    color: HorseColor
    condition: int


@dataclass(frozen=True)
class HorseSnapshot:
    """Display attributes copied into each result so it outlives the horse pool."""

    horse_id: int
    name: str
    color: HorseColor
    condition: int

    @classmethod
    def from_horse(cls, horse: Horse) -> "HorseSnapshot":
        return cls(horse_id=horse.horse_id, name=horse.name, color=horse.color, condition=horse.condition)


@dataclass(frozen=True)
class RaceResult:
    horse_id: int
    position: int
    time: float  # seconds
    speed: float  # m/s
    distance: float
    gap: float  # seconds behind the winner
    horse: HorseSnapshot


@dataclass(frozen=True)
class HorseStats:
    races: int
    wins: int
    average_time: float
    best_time: float
    total_distance: float


@dataclass
class Race:
    race_id: int
    round: int
    distance: int
    horses: List[Horse]
    state: RaceState = RaceState.PENDING
    results: Optional[List[RaceResult]] = None
    actual_duration_ms: Optional[float] = None

    @property
    def is_completed(self) -> bool:
        return self.state is RaceState.COMPLETED

    @property
    def winner(self) -> Optional[RaceResult]:
        if not self.results:
            return None
        return self.results[0]

    def reset(self) -> None:
        self.state = RaceState.PENDING
        self.results = None
        self.actual_duration_ms = None


@dataclass
class GameState:
    """Everything an observer can read. Only RaceController writes to it."""

    min_horses_for_race: int = 10
    horses: List[Horse] = field(default_factory=list)
    races: List[Race] = field(default_factory=list)
    phase: GamePhase = GamePhase.IDLE
    current_race_index: int = 0
    is_race_in_progress: bool = False
    is_in_race_delay: bool = False
    race_delay_countdown: int = 0

    @property
    def current_race(self) -> Optional[Race]:
        if 0 <= self.current_race_index < len(self.races):
            return self.races[self.current_race_index]
        return None

    @property
    def all_races_completed(self) -> bool:
        return self.current_race_index >= len(self.races)

    @property
    def completed_races(self) -> List[Race]:
        return [race for race in self.races if race.results]

    @property
    def is_game_ready(self) -> bool:
        return len(self.horses) >= self.min_horses_for_race and len(self.races) > 0

    def clear(self) -> None:
        self.horses = []
        self.races = []
        self.phase = GamePhase.IDLE
        self.current_race_index = 0
        self.is_race_in_progress = False
        self.is_in_race_delay = False
        self.race_delay_countdown = 0
