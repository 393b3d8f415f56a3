"""
Race lifecycle controller.

Owns the game state (horse pool, schedule, phase, cursor) and is the only
writer to it. Races move pending -> racing -> completed; the two suspension
points (the race animation window and the delay between races) are asyncio
tasks kept on the controller so that resets can cancel them.
"""

from __future__ import annotations

import asyncio
import math
import random
from typing import Awaitable, Callable, Dict, List, Optional

import numpy as np

from derby_sim.config import GAME_CONFIG, GameConfig
from derby_sim.engine import (
    GamePhase,
    GameState,
    Horse,
    LifecycleEvent,
    Race,
    RaceResult,
    RaceState,
    TelemetryCollector,
    generate_horses,
    select_horses_for_races,
    simulate_race,
    slowest_time,
)
from derby_sim.errors import ConflictError, NotFoundError, PreconditionError, RaceCancelledError
from derby_sim.horse_name_generator import NameGenerator
from derby_sim.validation import Validator

SleepFn = Callable[[float], Awaitable[None]]


class RaceController:
    def __init__(
        self,
        config: Optional[GameConfig] = None,
        *,
        rng: Optional[random.Random] = None,
        np_rng: Optional[np.random.Generator] = None,
        sleep: SleepFn = asyncio.sleep,
        telemetry: Optional[TelemetryCollector] = None,
        names: Optional[NameGenerator] = None,
        verbose: bool = False,
    ) -> None:
        self.config = config or GAME_CONFIG
        self.rng = rng or random.Random()
        self.np_rng = np_rng if np_rng is not None else np.random.default_rng()
        self.names = names or NameGenerator(rng=self.rng)
        self.telemetry = telemetry or TelemetryCollector()
        self.verbose = verbose
        self.state = GameState(min_horses_for_race=self.config.min_horses_for_race)

        self._sleep = sleep
        self._race_timers: Dict[int, asyncio.Task] = {}
        self._delay_timer: Optional[asyncio.Task] = None
        self._countdown_task: Optional[asyncio.Task] = None
        self._schedule_token: Optional[object] = None

    # --- Read-only views ---

    @property
    def horses(self) -> List[Horse]:
        return self.state.horses

    @property
    def races(self) -> List[Race]:
        return self.state.races

    @property
    def phase(self) -> GamePhase:
        return self.state.phase

    @property
    def cursor(self) -> int:
        return self.state.current_race_index

    @property
    def race_delay_countdown(self) -> int:
        return self.state.race_delay_countdown

    @property
    def is_schedule_running(self) -> bool:
        return self._schedule_token is not None

    # --- Helpers ---

    def _log(self, message: str) -> None:
        if self.verbose:
            print(f"[RaceController] {message}")

    def _emit(self, kind: str, race_id: Optional[int] = None, **detail) -> None:
        self.telemetry.record(
            LifecycleEvent(
                kind=kind,
                phase=self.state.phase.value,
                cursor=self.state.current_race_index,
                race_id=race_id,
                detail=detail,
            )
        )

    def _any_racing(self) -> bool:
        return any(race.state is RaceState.RACING for race in self.state.races)

    def _ensure_not_busy(self, action: str) -> None:
        if self.is_schedule_running or self._any_racing():
            raise ConflictError(f"Cannot {action} while races are running")

    @staticmethod
    def _ensure_runnable(race: Race) -> None:
        if race.state is RaceState.COMPLETED:
            raise ConflictError("Race is already completed", race_id=race.race_id)
        if race.state is RaceState.RACING:
            raise ConflictError("Race is already in progress", race_id=race.race_id)

    def get_race(self, race_id: int) -> Race:
        Validator.validate_race_id(race_id)
        for race in self.state.races:
            if race.race_id == race_id:
                return race
        raise NotFoundError(f"Race with ID {race_id} not found", race_id=race_id)

    def get_horse(self, horse_id: int) -> Horse:
        Validator.validate_horse_id(horse_id)
        for horse in self.state.horses:
            if horse.horse_id == horse_id:
                return horse
        raise NotFoundError(f"Horse with ID {horse_id} not found", horse_id=horse_id)

    # --- Generation ---

    def generate_horses(self, count: Optional[int] = None) -> List[Horse]:
        """Replaces the horse pool with `count` freshly generated horses."""
        if count is None:
            count = self.config.default_horses_generated
        try:
            Validator.validate_horse_count(count)
            self._ensure_not_busy("generate horses")

            self._log(f"Generating {count} horses...")
            self.state.phase = GamePhase.GENERATING
            horses = generate_horses(count, rng=self.rng, names=self.names)

            self.state.horses = horses
            self.state.phase = GamePhase.IDLE
            self._log(f"Generated {len(horses)} horses.")
            self._emit("horses_generated", count=len(horses))
            return horses
        except Exception as e:
            print(f"[RaceController] Failed to generate horses: {e}")
            if not self.is_schedule_running and not self._any_racing():
                self.state.phase = GamePhase.IDLE
            raise

    def generate_race_schedule(self) -> List[Race]:
        """
        Builds one race per configured distance, each with a full quota of horses.

        The previous schedule is only replaced once every group was allocated.
        """
        try:
            self._ensure_not_busy("generate a race schedule")
            horses = self.state.horses
            if not horses:
                raise PreconditionError("No horses available. Generate horses first.", code="NO_HORSES")
            if len(horses) < self.config.min_horses_for_race:
                raise PreconditionError(
                    f"Not enough horses available. Generate at least {self.config.min_horses_for_race} horses.",
                    code="INSUFFICIENT_HORSES",
                    available=len(horses),
                    required=self.config.min_horses_for_race,
                )

            distances = list(self.config.race_distances)
            for distance in distances:
                Validator.validate_race_distance(distance)
            for horse in horses:
                Validator.validate_horse_condition(horse.condition)
            groups = select_horses_for_races(
                horses, len(distances), self.config.max_horses_per_race, rng=self.rng
            )
            races = [
                Race(race_id=index + 1, round=index + 1, distance=distance, horses=group)
                for index, (distance, group) in enumerate(zip(distances, groups))
            ]

            self.state.races = races
            self.state.current_race_index = 0
            self.state.phase = GamePhase.IDLE
            self._log(f"Scheduled {len(races)} races from {len(horses)} horses.")
            self._emit("schedule_generated", races=len(races))
            return races
        except Exception as e:
            print(f"[RaceController] Failed to generate race schedule: {e}")
            if not self.is_schedule_running and not self._any_racing():
                self.state.phase = GamePhase.IDLE
            raise

    # --- Running ---

    async def _run_race(self, race: Race) -> List[RaceResult]:
        self._ensure_runnable(race)
        race.state = RaceState.RACING
        self._emit("race_started", race.race_id, distance=race.distance, field_size=len(race.horses))
        self._log(f"Race {race.race_id} ({race.distance}m) is off with {len(race.horses)} horses.")

        try:
            results = simulate_race(race.horses, race.distance, rng=self.np_rng)
        except Exception:
            race.state = RaceState.PENDING
            raise

        duration_ms = max(slowest_time(results) * 1000, self.config.min_race_duration_ms)
        timer = asyncio.ensure_future(self._sleep(duration_ms / 1000))
        self._race_timers[race.race_id] = timer
        try:
            await timer
            if self._race_timers.get(race.race_id) is not timer:
                # Reset landed after the wait finished but before we resumed
                raise RaceCancelledError(
                    f"Race {race.race_id} was reset before it finished", race_id=race.race_id
                )
        except asyncio.CancelledError:
            if self._race_timers.get(race.race_id) is timer:
                # Cancelled by our own caller rather than a reset
                race.reset()
                raise
            raise RaceCancelledError(
                f"Race {race.race_id} was reset before it finished", race_id=race.race_id
            ) from None
        except RaceCancelledError:
            raise
        except Exception:
            race.reset()
            raise
        finally:
            if self._race_timers.get(race.race_id) is timer:
                del self._race_timers[race.race_id]

        race.results = results
        race.actual_duration_ms = duration_ms
        race.state = RaceState.COMPLETED
        winner = results[0].horse.name if results else None
        self._log(f"Race {race.race_id} completed in {duration_ms:.0f}ms. Winner: {winner}")
        self._emit("race_completed", race.race_id, duration_ms=duration_ms, winner=winner)
        return results

    async def run_single_race(self, race_id: int) -> List[RaceResult]:
        """
        Runs one race on its own and returns its results.

        Different races may run side by side; the same race may not, and no
        single race can start while the full schedule is running.
        """
        try:
            race = self.get_race(race_id)
            if self.is_schedule_running:
                raise ConflictError("The full race schedule is already running", race_id=race_id)
            self._ensure_runnable(race)

            self.state.phase = GamePhase.RACING
            self.state.is_race_in_progress = True
            self.state.current_race_index = self.state.races.index(race)
            try:
                return await self._run_race(race)
            finally:
                if not self._any_racing() and not self.is_schedule_running:
                    self.state.phase = GamePhase.IDLE
                    self.state.is_race_in_progress = False
        except Exception as e:
            print(f"[RaceController] Failed to run race {race_id}: {e}")
            raise

    async def _run_countdown(self) -> None:
        while self.state.race_delay_countdown > 0:
            await self._sleep(1)
            self.state.race_delay_countdown = max(0, self.state.race_delay_countdown - 1)
            self._emit("countdown_tick", remaining=self.state.race_delay_countdown)

    async def _delay_between_races(self) -> None:
        delay_ms = self.config.race_delay_ms
        self.state.is_in_race_delay = True
        self.state.race_delay_countdown = math.ceil(delay_ms / 1000)
        self._emit("delay_started", delay_ms=delay_ms)

        timer = asyncio.ensure_future(self._sleep(delay_ms / 1000))
        countdown = asyncio.ensure_future(self._run_countdown())
        self._delay_timer = timer
        self._countdown_task = countdown
        try:
            await timer
            if self._delay_timer is not timer:
                raise RaceCancelledError("Race schedule was reset during the delay between races")
        except asyncio.CancelledError:
            if self._delay_timer is timer:
                raise
            raise RaceCancelledError("Race schedule was reset during the delay between races") from None
        finally:
            countdown.cancel()
            if self._delay_timer is timer:
                self._delay_timer = None
                self._countdown_task = None
                self.state.is_in_race_delay = False
                self.state.race_delay_countdown = 0

        self._emit("delay_finished")

    async def run_all_races(self) -> List[Race]:
        """
        Runs every scheduled race in round order with a delay between them.

        Races already completed are skipped. On success the phase is
        COMPLETED and the cursor sits one past the last race. Any failure
        stops the remaining races and returns the phase to IDLE; results of
        races that finished stay in place.
        """
        races = list(self.state.races)
        if not races:
            error = PreconditionError("No races scheduled. Generate race schedule first.", code="NO_RACES")
            print(f"[RaceController] Failed to start races: {error}")
            raise error
        try:
            self._ensure_not_busy("start the race schedule")
        except ConflictError as e:
            print(f"[RaceController] Failed to start races: {e}")
            raise

        token = object()
        self._schedule_token = token
        self.state.phase = GamePhase.RACING
        self.state.is_race_in_progress = True
        self.state.current_race_index = 0
        self._log(f"Starting {len(races)} races.")

        pending = [(index, race) for index, race in enumerate(races) if not race.is_completed]
        try:
            for step, (index, race) in enumerate(pending):
                if self._schedule_token is not token:
                    raise RaceCancelledError("Race schedule was reset")
                self.state.current_race_index = index
                await self._run_race(race)
                if step < len(pending) - 1:
                    await self._delay_between_races()

            if self._schedule_token is not token:
                raise RaceCancelledError("Race schedule was reset")
            self.state.current_race_index = len(races)
            self.state.phase = GamePhase.COMPLETED
            self.state.is_race_in_progress = False
            self._log("All races completed.")
            self._emit("schedule_completed", races=len(races))
            return races
        except (Exception, asyncio.CancelledError) as e:
            print(f"[RaceController] Race schedule aborted: {e!r}")
            if self._schedule_token is token:
                self.state.phase = GamePhase.IDLE
                self.state.is_race_in_progress = False
                self._emit("schedule_failed", error=type(e).__name__)
            raise
        finally:
            if self._schedule_token is token:
                self._schedule_token = None

    # --- Resets ---

    def _cancel_race_timer(self, race_id: int) -> None:
        timer = self._race_timers.pop(race_id, None)
        if timer is not None and not timer.done():
            timer.cancel()

    def _cancel_all_timers(self) -> None:
        for race_id in list(self._race_timers):
            self._cancel_race_timer(race_id)
        delay_timer, countdown = self._delay_timer, self._countdown_task
        self._delay_timer = None
        self._countdown_task = None
        for task in (delay_timer, countdown):
            if task is not None and not task.done():
                task.cancel()
        self._schedule_token = None

    def reset_race(self, race_id: int) -> Race:
        """Returns a race to pending, cancelling its completion if it is mid-flight."""
        try:
            race = self.get_race(race_id)
        except Exception as e:
            print(f"[RaceController] Failed to reset race {race_id}: {e}")
            raise
        self._cancel_race_timer(race_id)
        race.reset()
        self._log(f"Race {race_id} reset.")
        self._emit("race_reset", race_id)
        return race

    def reset_all_races(self) -> None:
        self._cancel_all_timers()
        for race in self.state.races:
            race.reset()
        self.state.current_race_index = 0
        self.state.phase = GamePhase.IDLE
        self.state.is_race_in_progress = False
        self.state.is_in_race_delay = False
        self.state.race_delay_countdown = 0
        self._log(f"Reset {len(self.state.races)} races.")
        self._emit("races_reset", races=len(self.state.races))

    def reset_game(self) -> None:
        self._cancel_all_timers()
        self.state.clear()
        self._log("Game reset.")
        self._emit("game_reset")
