"""Runtime configuration loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Tuple

from dotenv import load_dotenv

DEFAULT_ITEMS: Dict[str, int] = {"pokeball": 5, "potion": 3, "revive": 1}
STARTERS: Tuple[str, ...] = ("bulbasaur", "charmander", "squirtle")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class GameConfig:
    """Settings for the catalog client, stores, renderer and rules."""

    pokeapi_base_url: str = "https://pokeapi.co/api/v2"
    data_dir: Path = Path("data")
    temp_dir: Path = Path("temp")
    http_timeout: int = 10
    cache_ttl: int = 600
    max_team_size: int = 6
    gym_team_size: int = 3
    potion_heal: int = 20
    evolution_level: int = 30
    type_effectiveness: bool = False
    accuracy_checks: bool = False
    image_max_age: int = 3600
    log_level: str = "INFO"
    command_prefix: str = "!"
    starters: Tuple[str, ...] = STARTERS
    starting_items: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_ITEMS))

    @property
    def trainers_file(self) -> Path:
        return self.data_dir / "trainers.json"

    @property
    def gyms_file(self) -> Path:
        return self.data_dir / "gyms.json"


def load_config() -> GameConfig:
    """Build a :class:`GameConfig` from ``.env`` files and the process environment."""

    # .env.local wins over .env.
    load_dotenv()
    load_dotenv(".env.local", override=True)

    return GameConfig(
        pokeapi_base_url=os.getenv("POKEAPI_BASE_URL", GameConfig.pokeapi_base_url),
        data_dir=Path(os.getenv("POKE_TRAINER_DATA_DIR", "data")),
        temp_dir=Path(os.getenv("POKE_TRAINER_TEMP_DIR", "temp")),
        http_timeout=_env_int("HTTP_TIMEOUT", GameConfig.http_timeout),
        cache_ttl=_env_int("CACHE_TTL", GameConfig.cache_ttl),
        max_team_size=_env_int("MAX_TEAM_SIZE", GameConfig.max_team_size),
        gym_team_size=_env_int("GYM_TEAM_SIZE", GameConfig.gym_team_size),
        potion_heal=_env_int("POTION_HEAL", GameConfig.potion_heal),
        evolution_level=_env_int("EVOLUTION_LEVEL", GameConfig.evolution_level),
        type_effectiveness=_env_bool("TYPE_EFFECTIVENESS", False),
        accuracy_checks=_env_bool("ACCURACY_CHECKS", False),
        image_max_age=_env_int("IMAGE_MAX_AGE", GameConfig.image_max_age),
        log_level=os.getenv("LOG_LEVEL", GameConfig.log_level).upper(),
    )
