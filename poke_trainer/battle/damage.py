"""Damage calculation using the standard level/power/attack-defense formula."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Optional, Protocol

from ..data.types import damage_multiplier
from ..models import Creature, MoveInfo

CRIT_CHANCE = 0.1
CRIT_MULTIPLIER = 1.5


class AccuracyPolicy(Protocol):
    def hits(self, move: MoveInfo, rng: random.Random) -> bool: ...


class AlwaysHit:
    """Every move connects; accuracy is carried on the move but never rolled."""

    def hits(self, move: MoveInfo, rng: random.Random) -> bool:
        return True


class AccuracyRoll:
    """Miss when a percentile roll lands at or above the move's accuracy."""

    def hits(self, move: MoveInfo, rng: random.Random) -> bool:
        return rng.random() * 100 < move.accuracy


@dataclass
class DamageResult:
    """Result of a single damage roll."""

    damage: int
    critical: bool
    effectiveness: float = 1.0


class DamageCalculator:
    """Computes damage for one attack.

    Formula: floor(((2 * Level / 5 + 2) * Power * A/D) / 50 + 2) * crit

    The critical multiplier is 1.5 with a 10% chance. The result is floored and
    never below 1. Type effectiveness is only applied when enabled.
    """

    def __init__(
        self,
        *,
        crit_chance: float = CRIT_CHANCE,
        crit_multiplier: float = CRIT_MULTIPLIER,
        type_effectiveness: bool = False,
    ) -> None:
        self.crit_chance = crit_chance
        self.crit_multiplier = crit_multiplier
        self.type_effectiveness = type_effectiveness

    def calculate(
        self,
        attacker: Creature,
        defender: Creature,
        move: MoveInfo,
        rng: Optional[random.Random] = None,
    ) -> DamageResult:
        rng = rng or random.Random()
        level_factor = (2 * attacker.level) / 5 + 2
        ratio = attacker.stats.attack / max(1, defender.stats.defense)
        base_damage = math.floor((level_factor * move.power * ratio) / 50 + 2)

        effectiveness = 1.0
        if self.type_effectiveness:
            effectiveness = damage_multiplier(move.type, defender.types)
            base_damage = math.floor(base_damage * effectiveness)

        critical = rng.random() < self.crit_chance
        if critical:
            base_damage = math.floor(base_damage * self.crit_multiplier)

        return DamageResult(damage=max(1, int(base_damage)), critical=critical, effectiveness=effectiveness)


def compute_damage(
    attacker: Creature,
    defender: Creature,
    move: MoveInfo,
    rng: Optional[random.Random] = None,
) -> int:
    """Baseline damage with no type effectiveness."""

    return DamageCalculator().calculate(attacker, defender, move, rng).damage
