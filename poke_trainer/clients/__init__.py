"""External data clients used by the game services."""

from .pokeapi import CatalogClientError, PokeAPIClient

__all__ = [
    "CatalogClientError",
    "PokeAPIClient",
]
