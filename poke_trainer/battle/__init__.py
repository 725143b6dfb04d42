"""Battle engine, damage, progression and creature rules."""

from .damage import AccuracyRoll, AlwaysHit, DamageCalculator, compute_damage
from .engine import Attack, BattleEngine, BattleKind, BattleSide, Side, Switch, TurnResult, TurnStatus
from .progression import ProgressionReport, ProgressionResolver
from .registry import ActiveBattle, BattleRegistry, KeyedLocks

__all__ = [
    "AccuracyRoll",
    "AlwaysHit",
    "DamageCalculator",
    "compute_damage",
    "Attack",
    "BattleEngine",
    "BattleKind",
    "BattleSide",
    "Side",
    "Switch",
    "TurnResult",
    "TurnStatus",
    "ProgressionReport",
    "ProgressionResolver",
    "ActiveBattle",
    "BattleRegistry",
    "KeyedLocks",
]
