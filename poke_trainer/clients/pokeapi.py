"""PokeAPI-backed creature catalog with naive in-memory caching."""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Dict, List, Optional, Set

import requests

from ..errors import GameError
from ..models import Creature, MoveInfo, Stats
from ..models.creature import DEFAULT_MOVE_ACCURACY, DEFAULT_MOVE_POWER, DEFAULT_MOVE_TYPE

logger = logging.getLogger(__name__)

ARTWORK_URL = (
    "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/"
    "other/official-artwork/{id}.png"
)


class CatalogClientError(GameError):
    """Raised when the PokeAPI request fails or returns a malformed payload."""


class PokeAPIClient:
    """Looks up species, moves and type pools on PokeAPI."""

    BASE_URL = "https://pokeapi.co/api/v2"

    def __init__(
        self,
        *,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        cache_ttl: int = 600,
        timeout: int = 10,
        starting_level: int = 5,
        user_agent: str = "poke-trainer/0.1 (+https://github.com/)",
    ) -> None:
        self.session = session or requests.Session()
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.cache_ttl = cache_ttl
        self.timeout = timeout
        self.starting_level = starting_level
        self.user_agent = user_agent
        self._cache: Dict[str, tuple[float, Any]] = {}
        self._move_cache: Dict[str, MoveInfo] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get_creature(self, id_or_name: str | int) -> Optional[Creature]:
        """Build a fresh level-5 creature, or ``None`` when it cannot be fetched."""

        slug = self._slugify_name(str(id_or_name))
        if not slug:
            return None
        try:
            payload = self._get_json(f"pokemon/{slug}", allow_404=True)
            if payload is None:
                logger.info("Species %r not found in catalog", id_or_name)
                return None
            species = self._get_json(f"pokemon-species/{payload['id']}", allow_404=True) or {}
            return self._parse_creature(payload, species)
        except (CatalogClientError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Failed to fetch species %r: %s", id_or_name, exc)
            return None

    def get_move(self, move_name: str) -> MoveInfo:
        """Return move data, degrading to the default move on any failure."""

        slug = self._slugify_name(move_name)
        cached = self._move_cache.get(slug)
        if cached:
            return cached

        try:
            payload = self._get_json(f"move/{slug}", allow_404=True) if slug else None
        except CatalogClientError as exc:
            logger.warning("Move lookup for %r failed, using default: %s", move_name, exc)
            return MoveInfo.default(move_name)

        if payload is None:
            logger.info("Move %r not found, using default", move_name)
            data = MoveInfo.default(move_name)
        else:
            data = MoveInfo(
                name=payload.get("name", move_name),
                power=payload.get("power") or DEFAULT_MOVE_POWER,
                type=(payload.get("type") or {}).get("name") or DEFAULT_MOVE_TYPE,
                accuracy=payload.get("accuracy") or DEFAULT_MOVE_ACCURACY,
            )
        self._move_cache[slug] = data
        return data

    def get_species_pool_by_type(self, type_name: str) -> Set[str]:
        """Names of every species carrying ``type_name``; empty when unavailable."""

        slug = self._slugify_type(type_name)
        try:
            payload = self._get_json(f"type/{slug}", allow_404=True)
        except CatalogClientError as exc:
            logger.warning("Type pool lookup for %r failed: %s", type_name, exc)
            return set()
        if payload is None:
            return set()
        return {
            entry["pokemon"]["name"]
            for entry in payload.get("pokemon", [])
            if (entry.get("pokemon") or {}).get("name")
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _parse_creature(self, payload: Dict[str, Any], species: Dict[str, Any]) -> Creature:
        stats = {entry["stat"]["name"]: entry["base_stat"] for entry in payload.get("stats", [])}
        max_hp = stats.get("hp", 1)
        sprites = payload.get("sprites") or {}
        artwork = ((sprites.get("other") or {}).get("official-artwork") or {}).get("front_default")
        evolves_from = (species.get("evolves_from_species") or {}).get("name")

        return Creature(
            species_id=payload["id"],
            name=payload["name"],
            level=self.starting_level,
            experience=0,
            stats=Stats(
                hp=max_hp,
                max_hp=max_hp,
                attack=stats.get("attack", 1),
                defense=stats.get("defense", 1),
                speed=stats.get("speed", 1),
            ),
            types=[slot["type"]["name"] for slot in payload.get("types", [])],
            moves=[entry["move"]["name"] for entry in payload.get("moves", [])[:4]],
            evolves_from=evolves_from,
            evolves_to=self._find_evolution_target(payload["name"], species),
            image=artwork or sprites.get("front_default") or ARTWORK_URL.format(id=payload["id"]),
        )

    def _find_evolution_target(self, name: str, species: Dict[str, Any]) -> Optional[str]:
        chain_url = (species.get("evolution_chain") or {}).get("url")
        if not chain_url:
            return None
        try:
            chain = self._get_json(chain_url, allow_404=True)
        except CatalogClientError as exc:
            logger.warning("Evolution chain lookup for %r failed: %s", name, exc)
            return None
        if not chain:
            return None

        species_name = (species.get("name") or name).lower()
        pending: List[Dict[str, Any]] = [chain.get("chain") or {}]
        while pending:
            node = pending.pop()
            if (node.get("species") or {}).get("name") == species_name:
                targets = node.get("evolves_to") or []
                if targets:
                    return targets[0]["species"]["name"]
                return None
            pending.extend(node.get("evolves_to") or [])
        return None

    def _get_json(self, endpoint: str, *, allow_404: bool = False) -> Optional[Dict[str, Any]]:
        url = self._build_url(endpoint)
        now = time.time()
        cached = self._cache.get(url)
        if cached and now - cached[0] < self.cache_ttl:
            return cached[1]

        try:
            response = self.session.get(
                url,
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
            )
            if response.status_code == 404 and allow_404:
                return None
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise CatalogClientError(str(exc)) from exc
        except ValueError as exc:
            raise CatalogClientError(f"Malformed response from {url}") from exc

        self._cache[url] = (now, payload)
        return payload

    def _build_url(self, endpoint: str) -> str:
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        endpoint = endpoint.lstrip("/")
        return f"{self.base_url}/{endpoint}"

    @staticmethod
    def _slugify_name(name: str) -> str:
        slug = name.strip().lower()
        slug = re.sub(r"[\s\.]+", "-", slug)
        slug = slug.replace("'", "")
        slug = slug.replace(":", "")
        slug = re.sub(r"[^a-z0-9\-]", "", slug)
        return slug

    @staticmethod
    def _slugify_type(type_name: str) -> str:
        return type_name.strip().lower().replace(" ", "-")
