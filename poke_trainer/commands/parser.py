"""Parser turning chat text into command objects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Union


@dataclass(frozen=True)
class StartCommand:
    pass


@dataclass(frozen=True)
class PokemonInfoCommand:
    name: Optional[str] = None


@dataclass(frozen=True)
class CatchCommand:
    name: Optional[str] = None


@dataclass(frozen=True)
class TeamCommand:
    pass


@dataclass(frozen=True)
class GymCommand:
    name: Optional[str] = None


@dataclass(frozen=True)
class ItemCommand:
    action: Optional[str] = None
    item: Optional[str] = None


@dataclass(frozen=True)
class EvolveCommand:
    index: Optional[int] = None


@dataclass(frozen=True)
class BattleCommand:
    opponent: Optional[str] = None


@dataclass(frozen=True)
class HelpCommand:
    pass


@dataclass(frozen=True)
class UnknownCommand:
    text: str = ""


@dataclass(frozen=True)
class AttackCommand:
    move: Optional[str] = None


@dataclass(frozen=True)
class SwitchCommand:
    """``index`` is zero-based; ``None`` when the argument was not a number."""

    index: Optional[int] = None


@dataclass(frozen=True)
class UsePotionCommand:
    pass


@dataclass(frozen=True)
class ForfeitCommand:
    pass


@dataclass(frozen=True)
class BattleHelpCommand:
    text: str = ""


Command = Union[
    StartCommand,
    PokemonInfoCommand,
    CatchCommand,
    TeamCommand,
    GymCommand,
    ItemCommand,
    EvolveCommand,
    BattleCommand,
    HelpCommand,
    UnknownCommand,
]

BattleInput = Union[
    AttackCommand,
    SwitchCommand,
    UsePotionCommand,
    ForfeitCommand,
    BattleHelpCommand,
]


def parse_command(raw_text: str, *, prefix: str = "!") -> Command:
    """Parse a top-level command such as ``!catch pikachu``."""

    keyword, args = _tokenize(raw_text, prefix)
    if keyword == "start":
        return StartCommand()
    if keyword == "pokemon":
        return PokemonInfoCommand(name=_lower(_first(args)))
    if keyword == "catch":
        return CatchCommand(name=_lower(_first(args)))
    if keyword == "team":
        return TeamCommand()
    if keyword == "gym":
        return GymCommand(name=" ".join(args).lower() or None)
    if keyword == "item":
        return ItemCommand(action=_lower(_first(args)), item=_lower(_first(args[1:])))
    if keyword == "evolve":
        index = _parse_index(_first(args))
        return EvolveCommand(index=index)
    if keyword == "battle":
        # Trainer ids are matched exactly as typed.
        return BattleCommand(opponent=_first(args))
    if keyword == "help":
        return HelpCommand()
    return UnknownCommand(text=raw_text.strip())


def parse_battle_command(raw_text: str, *, prefix: str = "!") -> BattleInput:
    """Parse a command sent while a battle is in progress."""

    keyword, args = _tokenize(raw_text, prefix)
    if keyword == "attack" and args:
        return AttackCommand(move=args[0].lower())
    if keyword == "switch" and args:
        return SwitchCommand(index=_parse_index(args[0]))
    if keyword == "use" and _lower(_first(args)) == "potion":
        return UsePotionCommand()
    if keyword in {"forfeit", "run"}:
        return ForfeitCommand()
    return BattleHelpCommand(text=raw_text.strip())


def _tokenize(raw_text: str, prefix: str) -> tuple[str, List[str]]:
    tokens = raw_text.strip().split()
    if not tokens:
        return "", []
    keyword = tokens[0].lower()
    if prefix and keyword.startswith(prefix):
        keyword = keyword[len(prefix):]
    return keyword, tokens[1:]


def _first(args: List[str]) -> Optional[str]:
    return args[0] if args else None


def _lower(value: Optional[str]) -> Optional[str]:
    return value.lower() if value is not None else None


def _parse_index(value: Optional[str]) -> Optional[int]:
    """Convert a 1-based roster number to a zero-based index."""

    if value is None:
        return None
    try:
        return int(value) - 1
    except ValueError:
        return None
