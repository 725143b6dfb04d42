"""Trainer and gym records stored in the JSON documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .creature import Creature


@dataclass(slots=True)
class Trainer:
    """A registered player and everything they own."""

    id: str
    name: str = "Trainer"
    roster: List[Creature] = field(default_factory=list)
    badges: List[str] = field(default_factory=list)
    items: Dict[str, int] = field(default_factory=dict)

    def has_badge(self, gym_name: str) -> bool:
        return gym_name in self.badges

    def award_badge(self, gym_name: str) -> bool:
        """Add a badge once; returns False when it was already held."""

        if self.has_badge(gym_name):
            return False
        self.badges.append(gym_name)
        return True

    def item_count(self, item: str) -> int:
        return self.items.get(item, 0)

    def consume_item(self, item: str) -> None:
        self.items[item] = max(0, self.item_count(item) - 1)

    def conscious_members(self) -> List[Creature]:
        return [creature for creature in self.roster if not creature.is_fainted]

    def first_fainted(self) -> Optional[Creature]:
        return next((creature for creature in self.roster if creature.is_fainted), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "roster": [creature.to_dict() for creature in self.roster],
            "badges": list(self.badges),
            "items": dict(self.items),
        }

    @classmethod
    def from_dict(cls, trainer_id: str, payload: Dict[str, Any]) -> "Trainer":
        badges: List[str] = []
        for badge in payload.get("badges", []):
            if badge not in badges:
                badges.append(badge)
        return cls(
            id=trainer_id,
            name=payload.get("name", "Trainer"),
            roster=[Creature.from_dict(entry) for entry in payload.get("roster", [])],
            badges=badges,
            items={key: max(0, int(value)) for key, value in payload.get("items", {}).items()},
        )


@dataclass(slots=True)
class Gym:
    """A gym and its leader's roster, generated on the first challenge."""

    name: str
    leader: str
    type: str
    defeated: bool = False
    roster: List[Creature] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "leader": self.leader,
            "type": self.type,
            "defeated": self.defeated,
            "roster": [creature.to_dict() for creature in self.roster],
        }

    @classmethod
    def from_dict(cls, name: str, payload: Dict[str, Any]) -> "Gym":
        return cls(
            name=name,
            leader=payload["leader"],
            type=payload["type"],
            defeated=bool(payload.get("defeated", False)),
            roster=[Creature.from_dict(entry) for entry in payload.get("roster", [])],
        )
