"""Error taxonomy shared by the game services."""

from __future__ import annotations


class GameError(RuntimeError):
    """Base class for failures that map to a user-facing reply."""


class NotFoundError(GameError):
    """Raised when a species, move, gym or trainer cannot be found."""


class InvalidStateError(GameError):
    """Raised when a command is not valid for the current game state."""


class PersistenceError(GameError):
    """Raised when a JSON store cannot be read or written."""
