"""FastMCP server exposing the game as tools."""

from __future__ import annotations

import logging
from typing import Annotated, Any, Dict, List

from fastmcp import FastMCP

from .config import load_config
from .services import CommandDispatcher

logger = logging.getLogger(__name__)

app = FastMCP("poke-trainer", version="0.1.0")
_config = load_config()
_dispatcher = CommandDispatcher(config=_config)


@app.tool()
def send_command(
    sender: Annotated[str, "Identifier of the player sending the message"],
    text: Annotated[str, "Chat command, e.g. '!catch pikachu'"],
) -> List[Dict[str, Any]]:
    """Run one chat command for a player and return the replies."""

    return [reply.to_dict() for reply in _dispatcher.handle(sender, text)]


@app.tool()
def get_pokemon_data(
    species: Annotated[str, "Species name (e.g., 'pikachu')"],
) -> str:
    """Get basic typing, stats and moves for a Pokémon via PokéAPI."""

    creature = _dispatcher.catalog.get_creature(species)
    if creature is None:
        return f"Pokémon '{species}' not found"
    stats = creature.stats.to_dict()
    return (
        f"Name: {creature.name}\n"
        f"Types: {', '.join(creature.types) or 'unknown'}\n"
        f"Moves: {', '.join(creature.moves) or 'unknown'}\n"
        f"Stats: {stats}"
    )


def run() -> None:
    """Entry point for `python -m poke_trainer.server` or console script."""

    logging.basicConfig(level=_config.log_level)
    logger.info("Starting MCP server. Press Ctrl+C to stop.")
    app.run()


if __name__ == "__main__":
    run()
