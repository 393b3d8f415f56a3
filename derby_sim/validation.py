"""
Input checks applied at the controller boundary before any game logic runs.

The engine modules assume these already hold and never re-check them.
"""

from __future__ import annotations

import math
from numbers import Integral, Real

from derby_sim.config import VALIDATION_CONSTANTS, ValidationConstants
from derby_sim.errors import ValidationError


def _is_integer(value) -> bool:
    return isinstance(value, Integral) and not isinstance(value, bool)


def _is_finite_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


class Validator:
    limits: ValidationConstants = VALIDATION_CONSTANTS

    @classmethod
    def validate_horse_count(cls, count) -> None:
        if not _is_integer(count):
            raise ValidationError("Horse count must be an integer", field="count", value=count)
        if count < cls.limits.min_horse_count:
            raise ValidationError(
                f"Horse count must be at least {cls.limits.min_horse_count}", field="count", value=count
            )
        if count > cls.limits.max_horse_count:
            raise ValidationError(
                f"Horse count cannot exceed {cls.limits.max_horse_count}", field="count", value=count
            )

    @staticmethod
    def validate_race_id(race_id) -> None:
        if not _is_integer(race_id):
            raise ValidationError("Race ID must be an integer", field="race_id", value=race_id)
        if race_id < 1:
            raise ValidationError("Race ID must be positive", field="race_id", value=race_id)

    @staticmethod
    def validate_horse_id(horse_id) -> None:
        if not _is_integer(horse_id):
            raise ValidationError("Horse ID must be an integer", field="horse_id", value=horse_id)
        if horse_id < 1:
            raise ValidationError("Horse ID must be positive", field="horse_id", value=horse_id)

    @classmethod
    def validate_race_distance(cls, distance) -> None:
        if not _is_finite_number(distance):
            raise ValidationError("Race distance must be a finite number", field="distance", value=distance)
        if distance < cls.limits.min_race_distance:
            raise ValidationError(
                f"Race distance must be at least {cls.limits.min_race_distance} meters",
                field="distance",
                value=distance,
            )
        if distance > cls.limits.max_race_distance:
            raise ValidationError(
                f"Race distance cannot exceed {cls.limits.max_race_distance} meters",
                field="distance",
                value=distance,
            )

    @classmethod
    def validate_horse_condition(cls, condition) -> None:
        if not _is_finite_number(condition):
            raise ValidationError("Horse condition must be a finite number", field="condition", value=condition)
        if condition < cls.limits.min_horse_condition:
            raise ValidationError(
                f"Horse condition must be at least {cls.limits.min_horse_condition}",
                field="condition",
                value=condition,
            )
        if condition > cls.limits.max_horse_condition:
            raise ValidationError(
                f"Horse condition cannot exceed {cls.limits.max_horse_condition}",
                field="condition",
                value=condition,
            )
