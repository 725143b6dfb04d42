"""JSON persistence for trainer and gym records."""

from .json_store import GymStore, JsonStore, TrainerStore

__all__ = ["GymStore", "JsonStore", "TrainerStore"]
