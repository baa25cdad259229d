# engine_py/src/tysiac_engine/errors.py

from .constants import (
    ERROR_ILLEGAL_MOVE, ERROR_INTERNAL, ERROR_NOT_FOUND, ERROR_NOT_HOST,
    ERROR_NOT_YOUR_TURN, ERROR_ROOM_FULL, ERROR_STALE_VERSION, ERROR_VALIDATION
)


class GameError(Exception):
    """Base exception for game-related errors."""
    code = ERROR_INTERNAL

    def __init__(self, message: str, code: str = None):
        self.code = code or self.code
        self.message = message
        super().__init__(f"[{self.code}] {message}")


class NotFoundError(GameError):
    """Room or player does not exist."""
    code = ERROR_NOT_FOUND


class ValidationError(GameError):
    """Malformed input or a capacity/state precondition is not met."""
    code = ERROR_VALIDATION


class RoomFullError(ValidationError):
    code = ERROR_ROOM_FULL


class TurnError(GameError):
    """Action attempted by a player who does not hold the turn."""
    code = ERROR_NOT_YOUR_TURN


class IllegalMoveError(GameError):
    """Rule violation: wrong suit, unknown card, bad meld."""
    code = ERROR_ILLEGAL_MOVE


class AuthorizationError(GameError):
    """Non-host attempting a host-only action."""
    code = ERROR_NOT_HOST


class ConflictError(GameError):
    """Request was built against an older room version."""
    code = ERROR_STALE_VERSION
