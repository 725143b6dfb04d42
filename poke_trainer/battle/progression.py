"""Post-battle rewards: experience, level-ups and badges."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..models import Creature, Gym, Trainer

logger = logging.getLogger(__name__)

GYM_VICTORY_EXPERIENCE = 100
TRAINER_VICTORY_EXPERIENCE = 50


@dataclass(slots=True)
class LevelUp:
    creature: str
    level: int


@dataclass(slots=True)
class ProgressionReport:
    """What changed on the trainer record after a battle."""

    victory: bool
    experience: int = 0
    badge: Optional[str] = None
    new_badge: bool = False
    level_ups: List[LevelUp] = field(default_factory=list)


def apply_experience(creature: Creature, amount: int) -> Optional[LevelUp]:
    """Grant experience and level up while the threshold ``level * 100`` is met."""

    creature.experience += amount
    leveled = False
    while creature.experience >= creature.level * 100:
        creature.level += 1
        creature.experience = 0
        leveled = True
    return LevelUp(creature.name, creature.level) if leveled else None


class ProgressionResolver:
    """Applies rewards once per finished battle for the initiating trainer."""

    def __init__(
        self,
        *,
        gym_experience: int = GYM_VICTORY_EXPERIENCE,
        trainer_experience: int = TRAINER_VICTORY_EXPERIENCE,
    ) -> None:
        self.gym_experience = gym_experience
        self.trainer_experience = trainer_experience

    def resolve(self, trainer: Trainer, *, won: bool, gym: Optional[Gym] = None) -> ProgressionReport:
        if not won:
            logger.info("Trainer %s lost; no progression applied", trainer.id)
            return ProgressionReport(victory=False)

        report = ProgressionReport(victory=True)
        if gym is not None:
            gym.defeated = True
            report.badge = gym.name
            report.new_badge = trainer.award_badge(gym.name)
            report.experience = self.gym_experience
        else:
            report.experience = self.trainer_experience

        for creature in trainer.roster:
            if creature.is_fainted:
                continue
            level_up = apply_experience(creature, report.experience)
            if level_up:
                report.level_ups.append(level_up)

        logger.info(
            "Trainer %s won: +%d exp, badge=%s, %d level-ups",
            trainer.id,
            report.experience,
            report.badge,
            len(report.level_ups),
        )
        return report
