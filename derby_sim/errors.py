from __future__ import annotations

from typing import Any, Dict, Optional


class GameError(Exception):
    """Base class for every failure the game core reports to its callers."""

    code = "GAME_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.context: Dict[str, Any] = {key: value for key, value in context.items() if value is not None}

    def __str__(self) -> str:
        return self.message


class ValidationError(GameError):
    """Malformed input: wrong type or out of range."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, **context: Any) -> None:
        super().__init__(message, field=field, **context)


class PreconditionError(GameError):
    """The game is not in a state where the operation makes sense yet."""

    code = "PRECONDITION_FAILED"


class NotFoundError(GameError):
    code = "NOT_FOUND"


class ConflictError(GameError):
    """The target race is in a state incompatible with the operation."""

    code = "CONFLICT"


class RaceCancelledError(ConflictError):
    """A running race was reset before its completion was written."""

    code = "RACE_CANCELLED"
