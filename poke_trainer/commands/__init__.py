"""Chat command parsing."""

from .parser import BattleInput, Command, parse_battle_command, parse_command

__all__ = ["BattleInput", "Command", "parse_battle_command", "parse_command"]
