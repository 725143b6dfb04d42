"""Shared dataclasses for trainers, gyms and creatures."""

from .creature import Creature, MoveInfo, Stats
from .trainer import Gym, Trainer

__all__ = [
    "Creature",
    "MoveInfo",
    "Stats",
    "Gym",
    "Trainer",
]
