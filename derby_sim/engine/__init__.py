"""
Race engine package: entity generation, horse allocation, and race simulation.

The pieces here are synchronous and stateless; the lifecycle controller in
``derby_sim.controller`` composes them into a timed multi-race schedule.
"""

from .data_models import (  # noqa: F401
    GamePhase,
    GameState,
    Horse,
    HorseColor,
    HorseSnapshot,
    HorseStats,
    Race,
    RaceResult,
    RaceState,
)
from .generator import HORSE_COLORS, generate_horse, generate_horses, horse_color  # noqa: F401
from .allocator import select_horses_for_races, select_random_horses, shuffle_horses  # noqa: F401
from .simulator import base_time, simulate_race, slowest_time  # noqa: F401
from .telemetry import LifecycleEvent, TelemetryCollector  # noqa: F401

__all__ = [
    "GamePhase",
    "GameState",
    "Horse",
    "HorseColor",
    "HorseSnapshot",
    "HorseStats",
    "Race",
    "RaceResult",
    "RaceState",
    "HORSE_COLORS",
    "generate_horse",
    "generate_horses",
    "horse_color",
    "select_horses_for_races",
    "select_random_horses",
    "shuffle_horses",
    "base_time",
    "simulate_race",
    "slowest_time",
    "LifecycleEvent",
    "TelemetryCollector",
]
