"""End-to-end command flows through the dispatcher with fake collaborators."""

from __future__ import annotations

import pytest

from poke_trainer.battle import ActiveBattle, BattleRegistry, Side
from poke_trainer.config import GameConfig
from poke_trainer.errors import InvalidStateError
from poke_trainer.models import Trainer
from poke_trainer.services import CommandDispatcher
from poke_trainer.services.dispatcher import BATTLE_HELP, GENERIC_ERROR, NOT_REGISTERED, UNKNOWN_COMMAND
from poke_trainer.storage import GymStore, TrainerStore

from helpers import FakeCatalog, FakeRenderer, ScriptedRandom, make_creature

SPECIES = {
    "pikachu": {"hp": 200, "attack": 50, "moves": ["tackle", "thunderbolt"], "evolves_to": "raichu"},
    "geodude": {"hp": 3, "defense": 25, "types": ["rock"], "moves": ["tackle"], "species_id": 74},
    "raichu": {"hp": 260, "attack": 90, "moves": ["thunder"], "species_id": 26},
}


def _dispatcher(tmp_path, *rolls: float, catalog=None, **overrides) -> CommandDispatcher:
    config = GameConfig(data_dir=tmp_path / "data", temp_dir=tmp_path / "temp", gym_team_size=1, **overrides)
    return CommandDispatcher(
        config=config,
        catalog=catalog or FakeCatalog(species=SPECIES, pools={"rock": {"geodude"}}),
        trainers=TrainerStore(config.trainers_file),
        gyms=GymStore(config.gyms_file),
        renderer=FakeRenderer(tmp_path),
        rng=ScriptedRandom(*rolls),
    )


def _register(dispatcher: CommandDispatcher, trainer_id: str = "ash", **creature) -> Trainer:
    trainer = Trainer(
        id=trainer_id,
        roster=[make_creature(**{"hp": 200, "attack": 50, "moves": ["tackle"], **creature})],
        items={"pokeball": 5, "potion": 3, "revive": 1},
    )
    dispatcher.trainers.save(trainer)
    return trainer


def _texts(replies) -> list[str]:
    return [reply.text for reply in replies]


def test_start_registers_once(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path)

    welcome = dispatcher.handle("ash", "!start")
    again = dispatcher.handle("ash", "!start")

    assert "!catch bulbasaur" in welcome[0].text
    assert again[0].text == "You've already started your Pokémon journey!"
    trainer = dispatcher.get_trainer("ash")
    assert trainer.items == {"pokeball": 5, "potion": 3, "revive": 1}
    assert trainer.roster == []


def test_catch_requires_registration(tmp_path) -> None:
    assert _texts(_dispatcher(tmp_path).handle("ash", "!catch pikachu")) == [NOT_REGISTERED]


def test_catch_success_adds_creature(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path, 0.1)
    dispatcher.handle("ash", "!start")

    replies = dispatcher.handle("ash", "!catch pikachu")

    assert replies[0].text == "You caught PIKACHU! It's been added to your team."
    assert replies[0].image == str(tmp_path / "capture.png")
    trainer = dispatcher.get_trainer("ash")
    assert [creature.name for creature in trainer.roster] == ["pikachu"]
    assert trainer.items["pokeball"] == 4


def test_catch_unknown_species_keeps_ball(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path)
    dispatcher.handle("ash", "!start")

    assert _texts(dispatcher.handle("ash", "!catch missingno")) == ["Invalid Pokémon name!"]
    assert dispatcher.get_trainer("ash").items["pokeball"] == 5


def test_team_listing(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path)
    assert _texts(dispatcher.handle("ash", "!team")) == ["Your team is empty! Use !catch to add Pokémon."]

    _register(dispatcher, hp=150, max_hp=200)

    assert "1. PIKACHU (Lv. 5) - HP: 150/200" in dispatcher.handle("ash", "!team")[0].text


def test_unknown_command_and_help(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path)

    assert _texts(dispatcher.handle("ash", "!dance")) == [UNKNOWN_COMMAND]
    assert "!battle <player>" in dispatcher.handle("ash", "!help")[0].text


def test_pokemon_info(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path)

    reply = dispatcher.handle("ash", "!pokemon pikachu")[0]

    assert reply.text.startswith("*PIKACHU*")
    assert "Evolves into: raichu (Lv. 30+)" in reply.text
    assert reply.image == "https://img.example/pikachu.png"
    assert _texts(dispatcher.handle("ash", "!pokemon missingno")) == ["Pokémon not found! Try another name."]


def test_gym_listing_marks_badges(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path)
    trainer = _register(dispatcher)
    trainer.badges = ["Pewter City"]
    dispatcher.trainers.save(trainer)

    text = dispatcher.handle("ash", "!gym")[0].text

    assert "✓ Pewter City - Leader: Brock (rock type)" in text
    assert "✗ Cerulean City - Leader: Misty (water type)" in text


def test_gym_victory_awards_badge(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path, 0.1)
    _register(dispatcher)

    intro = dispatcher.handle("ash", "!gym pewter city")
    assert intro[0].text.startswith("Gym Battle against Brock!")
    assert "ash" in dispatcher.registry

    replies = dispatcher.handle("ash", "!attack tackle")

    assert replies[0].text.startswith("Trainer's pikachu used tackle!")
    assert "Brock's geodude fainted!" in replies[0].text
    assert replies[-1].text == "🏆 You defeated Brock and earned the Pewter City Badge! 🏆"
    assert "ash" not in dispatcher.registry

    trainer = dispatcher.get_trainer("ash")
    assert trainer.badges == ["Pewter City"]
    assert trainer.roster[0].experience == 100
    gym = dispatcher.gyms.get("Pewter City")
    assert gym.defeated is True
    assert [creature.name for creature in gym.roster] == ["geodude"]

    assert _texts(dispatcher.handle("ash", "!gym pewter city")) == ["You've already defeated Pewter City's Brock!"]


def test_gym_opponent_moves_first_when_it_wins_the_toss(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path, 0.7)
    _register(dispatcher)

    replies = dispatcher.handle("ash", "!gym pewter city")

    assert replies[1].text.startswith("Brock's geodude used tackle!")
    assert dispatcher.get_trainer("ash").roster[0].stats.hp == 194
    assert dispatcher.registry.get("ash").engine.acting_side is Side.A


def test_gym_without_species_pool(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path)
    _register(dispatcher)

    replies = dispatcher.handle("ash", "!gym cerulean city")

    assert _texts(replies) == ["Misty isn't ready to battle yet. Please try again later."]
    assert "ash" not in dispatcher.registry


def test_gym_refused_with_fainted_team(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path)
    _register(dispatcher, hp=0, max_hp=200)

    assert _texts(dispatcher.handle("ash", "!gym pewter city")) == [
        "All your Pokémon are fainted! Heal them with potions first."
    ]


def test_battle_input_while_in_session(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path, 0.1)
    _register(dispatcher, hp=150, max_hp=200)
    dispatcher.handle("ash", "!gym pewter city")

    assert _texts(dispatcher.handle("ash", "!team")) == [BATTLE_HELP]
    assert _texts(dispatcher.handle("ash", "!switch 9")) == ["Invalid Pokémon number (1-6)!"]
    assert _texts(dispatcher.handle("ash", "!switch 2")) == ["Cannot switch to that Pokémon!"]
    assert _texts(dispatcher.handle("ash", "!switch 1")) == ["Cannot switch to that Pokémon!"]
    assert dispatcher.handle("ash", "!attack surf")[0].text.startswith("pikachu doesn't know surf!")

    potion = dispatcher.handle("ash", "!use potion")[0].text
    assert potion == "Used Potion on pikachu! It recovered 20 HP.\nCurrent HP: 170/200"
    assert dispatcher.get_trainer("ash").items["potion"] == 2
    assert "ash" in dispatcher.registry


def test_forfeit_ends_session_as_loss(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path, 0.1)
    _register(dispatcher)
    dispatcher.handle("ash", "!gym pewter city")

    replies = dispatcher.handle("ash", "!forfeit")

    assert _texts(replies) == [
        "You ran from the battle!",
        "You lost the battle... Heal your Pokémon and try again!",
    ]
    assert "ash" not in dispatcher.registry
    assert dispatcher.get_trainer("ash").badges == []
    assert dispatcher.gyms.get("Pewter City").defeated is False


def test_trainer_battle_leaves_opponent_record_alone(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path, 0.1)
    _register(dispatcher)
    misty = Trainer(id="misty", name="Misty", roster=[make_creature("geodude", hp=3, defense=25, moves=["tackle"])])
    dispatcher.trainers.save(misty)

    dispatcher.handle("ash", "!battle misty")
    replies = dispatcher.handle("ash", "!attack tackle")

    assert replies[-1].text == "You won the battle! Your Pokémon gained experience!"
    assert dispatcher.get_trainer("misty").roster[0].stats.hp == 3
    assert dispatcher.get_trainer("ash").roster[0].experience == 50
    assert dispatcher.get_trainer("ash").badges == []


def test_battle_challenge_needs_opponent(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path)
    _register(dispatcher)

    assert dispatcher.handle("ash", "!battle nobody")[0].text.startswith("Usage: !battle")
    assert _texts(dispatcher.handle("ash", "!battle ash")) == ["You can't battle yourself!"]


def test_items_and_revive(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path)
    _register(dispatcher, hp=0, max_hp=200)

    inventory = dispatcher.handle("ash", "!item")[0].text
    revived = dispatcher.handle("ash", "!item use revive")[0].text

    assert "pokeball: 5" in inventory
    assert revived == "pikachu was revived! (HP: 100/200)"
    assert _texts(dispatcher.handle("ash", "!item use revive")) == ["You're out of revives!"]


def test_potion_heals_fainted_lead(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path)
    _register(dispatcher, hp=0, max_hp=200)

    assert _texts(dispatcher.handle("ash", "!item use potion")) == [
        "Used Potion on pikachu! It recovered 20 HP.\nCurrent HP: 20/200"
    ]
    trainer = dispatcher.get_trainer("ash")
    assert trainer.items["potion"] == 2
    assert trainer.roster[0].stats.hp == 20


def test_evolution(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path)
    _register(dispatcher, level=30, experience=40, evolves_to="raichu")

    replies = dispatcher.handle("ash", "!evolve 1")

    assert replies[0].text == "Congratulations! PIKACHU evolved into RAICHU!"
    evolved = dispatcher.get_trainer("ash").roster[0]
    assert (evolved.name, evolved.level, evolved.experience) == ("raichu", 30, 40)


def test_evolution_requires_level(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path)
    _register(dispatcher, evolves_to="raichu")

    assert _texts(dispatcher.handle("ash", "!evolve 1")) == ["pikachu can't evolve right now! (Needs level 30+)"]
    assert _texts(dispatcher.handle("ash", "!evolve 4")) == [
        "Invalid Pokémon number! Use !team to check your Pokémon."
    ]


def test_unexpected_failure_becomes_generic_reply(tmp_path) -> None:
    class BrokenCatalog(FakeCatalog):
        def get_creature(self, id_or_name):
            raise RuntimeError("boom")

    dispatcher = _dispatcher(tmp_path, catalog=BrokenCatalog())

    assert _texts(dispatcher.handle("ash", "!pokemon mew")) == [GENERIC_ERROR]


def test_old_images_are_purged(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path, image_max_age=0)

    dispatcher.handle("ash", "!help")

    assert dispatcher.renderer.purged == 1


def test_registry_rejects_second_session(tmp_path) -> None:
    registry = BattleRegistry()
    session = ActiveBattle(engine=None, trainer=Trainer(id="ash"))
    registry.create("ash", session)

    with pytest.raises(InvalidStateError):
        registry.create("ash", session)
    assert registry.end("ash") is session
    assert len(registry) == 0


def test_overlapping_gym_challenges_keep_defeat_recorded(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path, 0.1, 0.1)
    _register(dispatcher, "misty")
    _register(dispatcher, "ash")

    dispatcher.handle("misty", "!gym pewter city")
    dispatcher.handle("ash", "!gym pewter city")
    won = dispatcher.handle("ash", "!attack tackle")

    assert won[-1].text == "🏆 You defeated Brock and earned the Pewter City Badge! 🏆"
    assert dispatcher.gyms.get("Pewter City").defeated is True
    assert dispatcher.registry.get("misty").engine.side(Side.B).active.stats.hp == 3

    dispatcher.handle("misty", "!forfeit")

    gym = dispatcher.gyms.get("Pewter City")
    assert gym.defeated is True
    assert [creature.name for creature in gym.roster] == ["geodude"]
    assert gym.roster[0].stats.hp == gym.roster[0].stats.max_hp
    assert dispatcher.get_trainer("misty").badges == []
    assert dispatcher.get_trainer("ash").badges == ["Pewter City"]


def test_gym_roster_generated_once_for_all_challengers(tmp_path) -> None:
    catalog = FakeCatalog(species=SPECIES, pools={"rock": {"geodude"}})
    pool_lookups = []
    original = catalog.get_species_pool_by_type

    def counting_pool(type_name):
        pool_lookups.append(type_name)
        return original(type_name)

    catalog.get_species_pool_by_type = counting_pool
    dispatcher = _dispatcher(tmp_path, 0.1, 0.1, catalog=catalog)
    _register(dispatcher, "misty")
    _register(dispatcher, "ash")

    dispatcher.handle("misty", "!gym pewter city")
    dispatcher.handle("ash", "!gym pewter city")

    assert pool_lookups == ["rock"]
    assert "misty" in dispatcher.registry and "ash" in dispatcher.registry


def test_battle_opponent_id_keeps_its_case(tmp_path) -> None:
    dispatcher = _dispatcher(tmp_path, 0.1)
    _register(dispatcher, "ash")
    _register(dispatcher, "Gary")

    replies = dispatcher.handle("ash", "!Battle Gary")

    assert replies[0].text.startswith("Battle started vs Trainer!")
    assert "ash" in dispatcher.registry
    assert _texts(dispatcher.handle("misty", "!battle gary"))[0].startswith("Usage: !battle")
