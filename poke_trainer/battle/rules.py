"""Catch, healing and evolution rules."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional, Protocol

from ..errors import InvalidStateError
from ..models import Creature, Trainer

logger = logging.getLogger(__name__)

CAPTURE_ITEM = "pokeball"
EVOLUTION_LEVEL = 30
MAX_TEAM_SIZE = 6
POTION_HEAL = 20


class SpeciesCatalog(Protocol):
    def get_creature(self, id_or_name: str) -> Optional[Creature]: ...


@dataclass(slots=True)
class CatchResult:
    success: bool
    retained: bool
    probability: float


def catch_probability(level: int) -> float:
    return 0.5 + (5 / max(1, level)) * 0.1


def attempt_catch(
    trainer: Trainer,
    creature: Creature,
    *,
    rng: Optional[random.Random] = None,
    max_team_size: int = MAX_TEAM_SIZE,
) -> CatchResult:
    """Throw one capture device at ``creature``.

    The device is spent whatever the outcome. A successful catch with a full
    roster still counts as caught but the creature is not kept.
    """

    if trainer.item_count(CAPTURE_ITEM) <= 0:
        raise InvalidStateError("You're out of Poké Balls!")
    rng = rng or random.Random()
    trainer.consume_item(CAPTURE_ITEM)

    probability = catch_probability(creature.level)
    success = rng.random() < probability
    retained = success and len(trainer.roster) < max_team_size
    if retained:
        trainer.roster.append(creature)
    logger.info(
        "Trainer %s threw a ball at %s: success=%s retained=%s",
        trainer.id,
        creature.name,
        success,
        retained,
    )
    return CatchResult(success=success, retained=retained, probability=probability)


def use_potion(creature: Creature, amount: int = POTION_HEAL) -> int:
    """Heal any creature, fainted ones included, capped at ``max_hp``."""

    return creature.heal(amount)


def use_revive(trainer: Trainer) -> Creature:
    creature = trainer.first_fainted()
    if creature is None:
        raise InvalidStateError("No fainted Pokémon to revive!")
    creature.stats.hp = creature.stats.max_hp // 2
    return creature


def can_evolve(creature: Creature, min_level: int = EVOLUTION_LEVEL) -> bool:
    return bool(creature.evolves_to) and creature.level >= min_level


def evolve_creature(
    creature: Creature,
    catalog: SpeciesCatalog,
    min_level: int = EVOLUTION_LEVEL,
) -> Optional[Creature]:
    """Return the evolved form, or ``None`` when ineligible or unavailable."""

    if not can_evolve(creature, min_level):
        return None
    evolved = catalog.get_creature(creature.evolves_to)
    if evolved is None:
        logger.warning("Evolution target %r for %s could not be fetched", creature.evolves_to, creature.name)
        return None
    evolved.level = creature.level
    evolved.experience = creature.experience
    return evolved
