"""Chat-driven creature collection and battle game."""

from .config import GameConfig, load_config
from .services import CommandDispatcher, Reply

__all__ = [
    "CommandDispatcher",
    "GameConfig",
    "Reply",
    "load_config",
]
