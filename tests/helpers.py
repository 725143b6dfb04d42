"""Fakes and builders shared by the test modules."""

from __future__ import annotations

import random
from pathlib import Path
from typing import Dict, List, Optional, Set

from poke_trainer.models import Creature, MoveInfo, Stats


class ScriptedRandom:
    """``random()`` returns scripted values, then ``default``.

    ``choice`` and ``sample`` come from a seeded generator so they never eat
    the scripted rolls.
    """

    def __init__(self, *values: float, default: float = 0.99) -> None:
        self.values = list(values)
        self.default = default
        self._seeded = random.Random(0)

    def random(self) -> float:
        if self.values:
            return self.values.pop(0)
        return self.default

    def choice(self, seq):
        return self._seeded.choice(seq)

    def sample(self, population, k):
        return self._seeded.sample(population, k)


def make_creature(
    name: str = "pikachu",
    *,
    hp: int = 35,
    max_hp: Optional[int] = None,
    attack: int = 55,
    defense: int = 40,
    speed: int = 90,
    level: int = 5,
    experience: int = 0,
    types: Optional[List[str]] = None,
    moves: Optional[List[str]] = None,
    evolves_to: Optional[str] = None,
    species_id: int = 25,
) -> Creature:
    return Creature(
        species_id=species_id,
        name=name,
        level=level,
        experience=experience,
        stats=Stats(hp=hp, max_hp=max_hp if max_hp is not None else hp, attack=attack, defense=defense, speed=speed),
        types=types or ["electric"],
        moves=moves if moves is not None else ["tackle", "thunderbolt"],
        evolves_to=evolves_to,
        image=f"https://img.example/{name}.png",
    )


class FakeCatalog:
    """In-memory stand-in for the PokeAPI client."""

    def __init__(
        self,
        species: Optional[Dict[str, dict]] = None,
        moves: Optional[Dict[str, MoveInfo]] = None,
        pools: Optional[Dict[str, Set[str]]] = None,
    ) -> None:
        self.species = species or {}
        self.moves = moves or {}
        self.pools = pools or {}
        self.move_lookups: List[str] = []

    def get_creature(self, id_or_name) -> Optional[Creature]:
        overrides = self.species.get(str(id_or_name).lower())
        if overrides is None:
            return None
        return make_creature(str(id_or_name).lower(), **overrides)

    def get_move(self, move_name: str) -> MoveInfo:
        self.move_lookups.append(move_name)
        return self.moves.get(move_name, MoveInfo.default(move_name))

    def get_species_pool_by_type(self, type_name: str) -> Set[str]:
        return set(self.pools.get(type_name, set()))


class FakeRenderer:
    """Records render calls and hands back fake paths."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir
        self.calls: List[tuple] = []
        self.purged = 0

    def render_battle_scene(self, attacker, defender, move_label, damage) -> Path:
        self.calls.append(("battle", attacker.name, defender.name, move_label, damage))
        return self.output_dir / "battle.png"

    def render_capture_scene(self, creature, success) -> Path:
        self.calls.append(("capture", creature.name, success))
        return self.output_dir / "capture.png"

    def render_evolution_scene(self, before, after) -> Path:
        self.calls.append(("evolve", before.name, after.name))
        return self.output_dir / "evolve.png"

    def purge(self, max_age_seconds: int) -> int:
        self.purged += 1
        return 0
