"""Creature and move dataclasses persisted inside trainer and gym records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_MOVE_POWER = 40
DEFAULT_MOVE_TYPE = "normal"
DEFAULT_MOVE_ACCURACY = 100


@dataclass(slots=True)
class Stats:
    """Battle stats of a single creature."""

    hp: int
    max_hp: int
    attack: int
    defense: int
    speed: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "hp": self.hp,
            "max_hp": self.max_hp,
            "attack": self.attack,
            "defense": self.defense,
            "speed": self.speed,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Stats":
        max_hp = int(payload.get("max_hp", payload.get("hp", 1)))
        return cls(
            hp=max(0, min(max_hp, int(payload.get("hp", max_hp)))),
            max_hp=max_hp,
            attack=int(payload.get("attack", 1)),
            defense=int(payload.get("defense", 1)),
            speed=int(payload.get("speed", 1)),
        )


@dataclass(slots=True)
class MoveInfo:
    """Move data used by the damage calculator."""

    name: str
    power: int = DEFAULT_MOVE_POWER
    type: str = DEFAULT_MOVE_TYPE
    accuracy: int = DEFAULT_MOVE_ACCURACY

    @classmethod
    def default(cls, name: str) -> "MoveInfo":
        return cls(name=name)


@dataclass(slots=True)
class Creature:
    """A creature owned by exactly one trainer or gym roster."""

    species_id: int
    name: str
    stats: Stats
    level: int = 5
    experience: int = 0
    types: List[str] = field(default_factory=list)
    moves: List[str] = field(default_factory=list)
    evolves_from: Optional[str] = None
    evolves_to: Optional[str] = None
    image: Optional[str] = None

    @property
    def is_fainted(self) -> bool:
        return self.stats.hp <= 0

    @property
    def primary_type(self) -> str:
        return self.types[0] if self.types else DEFAULT_MOVE_TYPE

    def heal(self, amount: int) -> int:
        """Restore up to ``amount`` hp, never above ``max_hp``; returns hp gained."""

        before = self.stats.hp
        self.stats.hp = min(self.stats.max_hp, self.stats.hp + amount)
        return self.stats.hp - before

    def restore(self) -> None:
        self.stats.hp = self.stats.max_hp

    def to_dict(self) -> Dict[str, Any]:
        return {
            "species_id": self.species_id,
            "name": self.name,
            "level": self.level,
            "experience": self.experience,
            "stats": self.stats.to_dict(),
            "types": list(self.types),
            "moves": list(self.moves),
            "evolves_from": self.evolves_from,
            "evolves_to": self.evolves_to,
            "image": self.image,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Creature":
        return cls(
            species_id=int(payload.get("species_id", 0)),
            name=str(payload["name"]),
            stats=Stats.from_dict(payload.get("stats", {})),
            level=max(1, int(payload.get("level", 5))),
            experience=max(0, int(payload.get("experience", 0))),
            types=list(payload.get("types", [])),
            moves=list(payload.get("moves", []))[:4],
            evolves_from=payload.get("evolves_from"),
            evolves_to=payload.get("evolves_to"),
            image=payload.get("image"),
        )
