"""Turn-based battle session between two rosters."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol, Union

from ..errors import InvalidStateError
from ..models import Creature, MoveInfo
from .damage import AccuracyPolicy, AlwaysHit, DamageCalculator

logger = logging.getLogger(__name__)

MAX_ROSTER_SLOTS = 6


class MoveCatalog(Protocol):
    def get_move(self, move_name: str) -> MoveInfo: ...


class Side(str, Enum):
    A = "A"
    B = "B"

    @property
    def other(self) -> "Side":
        return Side.B if self is Side.A else Side.A


class BattleKind(str, Enum):
    GYM = "gym"
    TRAINER = "trainer"


class TurnStatus(str, Enum):
    CONTINUE = "continue"
    KNOCKOUT = "knockout"
    SWITCHED = "switched"
    MISSED = "missed"
    FAILED = "failed"


@dataclass(frozen=True)
class Attack:
    move: str


@dataclass(frozen=True)
class Switch:
    index: int


BattleAction = Union[Attack, Switch]


@dataclass
class TurnResult:
    """Outcome of one executed action."""

    status: TurnStatus
    side: Side
    damage: int = 0
    critical: bool = False
    move: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status is TurnStatus.FAILED


class BattleSide:
    """One participant: a display name and an index into the owner's roster.

    ``roster`` is the owner's own list, so damage recorded here is damage on
    the trainer or gym record.
    """

    def __init__(self, name: str, roster: List[Creature], active_index: int = 0) -> None:
        self.name = name
        self.roster = roster
        self.active_index = active_index

    @property
    def active(self) -> Creature:
        return self.roster[self.active_index]

    @property
    def all_fainted(self) -> bool:
        return all(creature.is_fainted for creature in self.roster)

    def first_conscious_index(self) -> Optional[int]:
        for index, creature in enumerate(self.roster):
            if not creature.is_fainted:
                return index
        return None

    def can_switch_to(self, index: int) -> bool:
        if not 0 <= index < MAX_ROSTER_SLOTS or index >= len(self.roster):
            return False
        if index == self.active_index:
            return False
        return not self.roster[index].is_fainted

    def receive_damage(self, amount: int) -> int:
        """Apply damage to the active creature; returns its remaining hp."""

        creature = self.active
        creature.stats.hp = max(0, creature.stats.hp - amount)
        return creature.stats.hp


class BattleEngine:
    """State machine over a battle session.

    Side A is always the initiating trainer. After a knockout the turn stays
    with the attacker and the knocked-out side owes a replacement switch;
    otherwise every successful action hands the turn to the other side.
    """

    def __init__(
        self,
        side_a: BattleSide,
        side_b: BattleSide,
        *,
        catalog: MoveCatalog,
        turn_owner: Side = Side.A,
        calculator: Optional[DamageCalculator] = None,
        accuracy: Optional[AccuracyPolicy] = None,
        rng: Optional[random.Random] = None,
        kind: BattleKind = BattleKind.TRAINER,
        gym_name: Optional[str] = None,
    ) -> None:
        self.sides = {Side.A: side_a, Side.B: side_b}
        self.catalog = catalog
        self.turn_owner = turn_owner
        self.calculator = calculator or DamageCalculator()
        self.accuracy = accuracy or AlwaysHit()
        self.rng = rng or random.Random()
        self.kind = kind
        self.gym_name = gym_name
        self.pending_replacement: Optional[Side] = None
        self.winner: Optional[Side] = None
        self.log: List[str] = []

    @classmethod
    def start(
        cls,
        side_a: BattleSide,
        side_b: BattleSide,
        *,
        catalog: MoveCatalog,
        rng: Optional[random.Random] = None,
        **kwargs,
    ) -> "BattleEngine":
        if not side_a.roster or not side_b.roster:
            raise InvalidStateError("Both sides need at least one Pokémon to battle.")
        rng = rng or random.Random()
        for side in (side_a, side_b):
            side.active_index = 0
            if side.roster[0].is_fainted:
                side.active_index = side.first_conscious_index() or 0
        turn_owner = Side.A if rng.random() < 0.5 else Side.B
        engine = cls(side_a, side_b, catalog=catalog, turn_owner=turn_owner, rng=rng, **kwargs)
        logger.info("Battle started: %s vs %s, %s moves first", side_a.name, side_b.name, engine.side(turn_owner).name)
        return engine

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def side(self, key: Side) -> BattleSide:
        return self.sides[key]

    @property
    def acting_side(self) -> Side:
        """The side whose input the session is waiting for."""

        if self.pending_replacement is not None:
            return self.pending_replacement
        return self.turn_owner

    @property
    def is_over(self) -> bool:
        return self.winner is not None

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def execute_turn(self, action: BattleAction) -> TurnResult:
        if self.is_over:
            return TurnResult(TurnStatus.FAILED, self.acting_side)
        if isinstance(action, Attack):
            return self._attack(action.move)
        if isinstance(action, Switch):
            return self._switch(action.index)
        raise TypeError(f"Unsupported battle action: {action!r}")

    def check_battle_end(self) -> Optional[Side]:
        """Return the winning side once the other side has no conscious creature."""

        if self.winner is not None:
            return self.winner
        if self.side(Side.A).all_fainted:
            self.winner = Side.B
        elif self.side(Side.B).all_fainted:
            self.winner = Side.A
        if self.winner is not None:
            self.pending_replacement = None
            logger.info("Battle over: %s wins", self.side(self.winner).name)
        return self.winner

    def forfeit(self, side: Side) -> Side:
        self.winner = side.other
        self.pending_replacement = None
        self.log.append(f"{self.side(side).name} forfeited the battle!")
        return self.winner

    def _attack(self, move_name: str) -> TurnResult:
        if self.pending_replacement is not None:
            return TurnResult(TurnStatus.FAILED, self.pending_replacement, move=move_name)

        key = self.turn_owner
        attacker, defender = self.side(key), self.side(key.other)
        move = self.catalog.get_move(move_name)
        self.log.append(f"{attacker.name}'s {attacker.active.name} used {move_name}!")

        if not self.accuracy.hits(move, self.rng):
            self.log.append(f"{attacker.name}'s {attacker.active.name} missed!")
            self.turn_owner = key.other
            return TurnResult(TurnStatus.MISSED, key, move=move_name)

        result = self.calculator.calculate(attacker.active, defender.active, move, self.rng)
        remaining = defender.receive_damage(result.damage)
        self.log.append(
            f"It dealt {result.damage} damage to {defender.name}'s {defender.active.name}!"
        )

        if remaining <= 0:
            self.log.append(f"{defender.name}'s {defender.active.name} fainted!")
            self.pending_replacement = key.other
            return TurnResult(TurnStatus.KNOCKOUT, key, result.damage, result.critical, move_name)

        self.turn_owner = key.other
        return TurnResult(TurnStatus.CONTINUE, key, result.damage, result.critical, move_name)

    def _switch(self, index: int) -> TurnResult:
        key = self.acting_side
        side = self.side(key)
        if not side.can_switch_to(index):
            return TurnResult(TurnStatus.FAILED, key)

        side.active_index = index
        self.log.append(f"{side.name} switched to {side.active.name}!")
        self.pending_replacement = None
        self.turn_owner = self.turn_owner.other
        return TurnResult(TurnStatus.SWITCHED, key)
