"""Tests for the PokeAPI client parsing and fallbacks."""

from __future__ import annotations

import requests

from poke_trainer.clients import PokeAPIClient

BASE = "https://pokeapi.test/api/v2"

PIKACHU = {
    "id": 25,
    "name": "pikachu",
    "stats": [
        {"stat": {"name": "hp"}, "base_stat": 35},
        {"stat": {"name": "attack"}, "base_stat": 55},
        {"stat": {"name": "defense"}, "base_stat": 40},
        {"stat": {"name": "speed"}, "base_stat": 90},
    ],
    "types": [{"type": {"name": "electric"}}],
    "moves": [{"move": {"name": name}} for name in ("mega-punch", "pay-day", "thunder-punch", "slam", "mega-kick")],
    "sprites": {
        "front_default": "https://img.test/25-front.png",
        "other": {"official-artwork": {"front_default": "https://img.test/25.png"}},
    },
}

PIKACHU_SPECIES = {
    "name": "pikachu",
    "evolves_from_species": {"name": "pichu"},
    "evolution_chain": {"url": f"{BASE}/evolution-chain/10/"},
}

CHAIN = {
    "chain": {
        "species": {"name": "pichu"},
        "evolves_to": [
            {
                "species": {"name": "pikachu"},
                "evolves_to": [{"species": {"name": "raichu"}, "evolves_to": []}],
            }
        ],
    }
}


class FakeResponse:
    def __init__(self, status_code: int, payload=None) -> None:
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._payload is None:
            raise ValueError("no body")
        return self._payload


class FakeSession:
    def __init__(self, routes=None, *, error: Exception | None = None) -> None:
        self.routes = routes or {}
        self.error = error
        self.calls: list[str] = []

    def get(self, url, timeout=None, headers=None):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        if url not in self.routes:
            return FakeResponse(404)
        return FakeResponse(200, self.routes[url])


def _client(session: FakeSession) -> PokeAPIClient:
    return PokeAPIClient(session=session, base_url=BASE)


def test_get_creature_parses_species() -> None:
    session = FakeSession(
        {
            f"{BASE}/pokemon/pikachu": PIKACHU,
            f"{BASE}/pokemon-species/25": PIKACHU_SPECIES,
            f"{BASE}/evolution-chain/10/": CHAIN,
        }
    )

    creature = _client(session).get_creature("Pikachu")

    assert creature is not None
    assert creature.species_id == 25
    assert creature.level == 5
    assert creature.experience == 0
    assert creature.stats.hp == creature.stats.max_hp == 35
    assert creature.stats.attack == 55
    assert creature.types == ["electric"]
    assert creature.moves == ["mega-punch", "pay-day", "thunder-punch", "slam"]
    assert creature.evolves_from == "pichu"
    assert creature.evolves_to == "raichu"
    assert creature.image == "https://img.test/25.png"


def test_get_creature_without_species_data() -> None:
    session = FakeSession({f"{BASE}/pokemon/pikachu": PIKACHU})

    creature = _client(session).get_creature("pikachu")

    assert creature is not None
    assert creature.evolves_from is None
    assert creature.evolves_to is None


def test_unknown_species_returns_none() -> None:
    assert _client(FakeSession()).get_creature("missingno") is None


def test_network_failure_returns_none() -> None:
    session = FakeSession(error=requests.ConnectionError("offline"))

    assert _client(session).get_creature("pikachu") is None


def test_get_move_reads_payload_and_caches() -> None:
    session = FakeSession(
        {f"{BASE}/move/thunderbolt": {"name": "thunderbolt", "power": 90, "type": {"name": "electric"}, "accuracy": 100}}
    )
    client = _client(session)

    first = client.get_move("Thunderbolt")
    second = client.get_move("thunderbolt")

    assert (first.power, first.type, first.accuracy) == (90, "electric", 100)
    assert second is first
    assert len(session.calls) == 1


def test_get_move_defaults() -> None:
    session = FakeSession({f"{BASE}/move/growl": {"name": "growl", "power": None, "type": {"name": "normal"}, "accuracy": None}})
    client = _client(session)

    growl = client.get_move("growl")
    missing = client.get_move("splashdance")
    offline = _client(FakeSession(error=requests.Timeout("slow"))).get_move("tackle")

    assert (growl.power, growl.accuracy) == (40, 100)
    assert (missing.name, missing.power, missing.type, missing.accuracy) == ("splashdance", 40, "normal", 100)
    assert (offline.power, offline.type) == (40, "normal")


def test_species_pool_by_type() -> None:
    session = FakeSession(
        {
            f"{BASE}/type/rock": {
                "pokemon": [
                    {"pokemon": {"name": "geodude"}},
                    {"pokemon": {"name": "onix"}},
                    {"pokemon": {}},
                ]
            }
        }
    )
    client = _client(session)

    assert client.get_species_pool_by_type("Rock") == {"geodude", "onix"}
    assert client.get_species_pool_by_type("shadow") == set()
    assert _client(FakeSession(error=requests.ConnectionError("x"))).get_species_pool_by_type("rock") == set()
