"""Routes chat commands to the game rules, battle engine and stores."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, get_args

from ..battle import (
    AccuracyRoll,
    ActiveBattle,
    AlwaysHit,
    Attack,
    BattleEngine,
    BattleKind,
    BattleRegistry,
    BattleSide,
    DamageCalculator,
    KeyedLocks,
    ProgressionReport,
    ProgressionResolver,
    Side,
    Switch,
    TurnStatus,
)
from ..battle import rules
from ..clients import PokeAPIClient
from ..commands.parser import (
    AttackCommand,
    BattleCommand,
    BattleHelpCommand,
    BattleInput,
    CatchCommand,
    Command,
    EvolveCommand,
    ForfeitCommand,
    GymCommand,
    HelpCommand,
    ItemCommand,
    PokemonInfoCommand,
    StartCommand,
    SwitchCommand,
    TeamCommand,
    UnknownCommand,
    UsePotionCommand,
    parse_battle_command,
    parse_command,
)
from ..config import GameConfig
from ..errors import InvalidStateError, NotFoundError
from ..models import Creature, Gym, Trainer
from ..render import SceneRenderer
from ..storage import GymStore, TrainerStore

logger = logging.getLogger(__name__)

GENERIC_ERROR = "An error occurred. Please try again."
UNKNOWN_COMMAND = "Unknown command. Try !help"
NOT_REGISTERED = "Please start your journey with !start first"
BATTLE_HELP = "In battle commands:\n!attack <move>\n!switch <1-6>\n!use potion\n!forfeit"
HELP_TEXT = (
    "*POKÉMON BOT COMMANDS*\n\n"
    "!start - Begin your journey\n"
    "!catch <pokemon> - Attempt to catch a Pokémon\n"
    "!team - View your current team\n"
    "!pokemon <name> - Get info about a Pokémon\n"
    "!gym - List/challenge gyms\n"
    "!item - Use/view your items\n"
    "!evolve <number> - Evolve a Pokémon\n"
    "!battle <player> - Battle another trainer\n"
    "!help - Show this menu"
)
FALLBACK_MOVE = "tackle"
AUTOPILOT_STEP_LIMIT = 16


@dataclass
class Reply:
    """One outbound message; ``image`` is a file path or URL."""

    text: str
    image: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "image": self.image}


class CommandDispatcher:
    """Entry point for every inbound ``(sender, text)`` pair.

    Commands from one sender are processed one at a time. While the sender has
    a battle in progress every message is read as a battle command.
    """

    def __init__(
        self,
        *,
        config: Optional[GameConfig] = None,
        catalog: Optional[PokeAPIClient] = None,
        trainers: Optional[TrainerStore] = None,
        gyms: Optional[GymStore] = None,
        renderer: Optional[SceneRenderer] = None,
        registry: Optional[BattleRegistry] = None,
        progression: Optional[ProgressionResolver] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.catalog = catalog or PokeAPIClient(
            base_url=self.config.pokeapi_base_url,
            cache_ttl=self.config.cache_ttl,
            timeout=self.config.http_timeout,
        )
        self.trainers = trainers or TrainerStore(self.config.trainers_file)
        self.gyms = gyms or GymStore(self.config.gyms_file)
        self.renderer = renderer or SceneRenderer(self.config.temp_dir)
        self.registry = registry or BattleRegistry()
        self.progression = progression or ProgressionResolver()
        self.rng = rng or random.Random()
        self.locks = KeyedLocks()
        self.gym_locks = KeyedLocks()
        self._last_purge = time.time()

        self._handlers: Dict[type, Callable[[str, Any], List[Reply]]] = {
            StartCommand: self._handle_start,
            PokemonInfoCommand: self._handle_pokemon_info,
            CatchCommand: self._handle_catch,
            TeamCommand: self._handle_team,
            GymCommand: self._handle_gym,
            ItemCommand: self._handle_item,
            EvolveCommand: self._handle_evolve,
            BattleCommand: self._handle_battle_challenge,
            HelpCommand: self._handle_help,
            UnknownCommand: self._handle_unknown,
        }
        self._battle_handlers: Dict[type, Callable[[str, ActiveBattle, Any], List[Reply]]] = {
            AttackCommand: self._battle_attack,
            SwitchCommand: self._battle_switch,
            UsePotionCommand: self._battle_use_potion,
            ForfeitCommand: self._battle_forfeit,
            BattleHelpCommand: self._battle_help,
        }
        missing = (set(get_args(Command)) - set(self._handlers)) | (
            set(get_args(BattleInput)) - set(self._battle_handlers)
        )
        if missing:
            raise TypeError(f"No handler registered for {sorted(t.__name__ for t in missing)}")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def handle(self, sender: str, text: str) -> List[Reply]:
        with self.locks.hold(sender):
            try:
                active = self.registry.get(sender)
                if active is not None:
                    battle_input = parse_battle_command(text, prefix=self.config.command_prefix)
                    return self._battle_handlers[type(battle_input)](sender, active, battle_input)
                command = parse_command(text, prefix=self.config.command_prefix)
                return self._handlers[type(command)](sender, command)
            except (NotFoundError, InvalidStateError) as exc:
                return [Reply(str(exc))]
            except Exception:
                logger.exception("Command %r from %s failed", text, sender)
                return [Reply(GENERIC_ERROR)]
            finally:
                self._maybe_purge_images()

    def get_trainer(self, sender: str) -> Optional[Trainer]:
        return self.trainers.get(sender)

    # ------------------------------------------------------------------
    # Top-level commands
    # ------------------------------------------------------------------
    def _handle_start(self, sender: str, command: StartCommand) -> List[Reply]:
        if self.trainers.exists(sender):
            return [Reply("You've already started your Pokémon journey!")]

        trainer = Trainer(id=sender, items=dict(self.config.starting_items))
        self.trainers.save(trainer)
        logger.info("Registered trainer %s", sender)
        starters = "\n".join(f"!catch {name}" for name in self.config.starters)
        return [
            Reply(
                "Welcome to the world of Pokémon!\n\n"
                f"Choose your starter Pokémon with:\n{starters}\n\n"
                "Or catch any Pokémon you encounter!"
            )
        ]

    def _handle_pokemon_info(self, sender: str, command: PokemonInfoCommand) -> List[Reply]:
        if not command.name:
            return [Reply("Usage: !pokemon <name> (e.g., !pokemon pikachu)")]
        creature = self.catalog.get_creature(command.name)
        if creature is None:
            raise NotFoundError("Pokémon not found! Try another name.")

        lines = [
            f"*{creature.name.upper()}*",
            f"Type: {', '.join(creature.types)}",
            f"Level: {creature.level}",
            f"HP: {creature.stats.hp}",
            f"Attack: {creature.stats.attack}",
            f"Defense: {creature.stats.defense}",
            f"Speed: {creature.stats.speed}",
            f"Moves: {', '.join(creature.moves)}",
        ]
        if creature.evolves_from:
            lines.append(f"Evolves from: {creature.evolves_from}")
        if creature.evolves_to:
            lines.append(f"Evolves into: {creature.evolves_to} (Lv. {self.config.evolution_level}+)")
        return [Reply("\n".join(lines), image=creature.image)]

    def _handle_catch(self, sender: str, command: CatchCommand) -> List[Reply]:
        if not command.name:
            return [Reply("Usage: !catch <pokemon> (e.g., !catch pikachu)")]
        trainer = self._require_trainer(sender)
        if trainer.item_count(rules.CAPTURE_ITEM) <= 0:
            return [Reply("You're out of Poké Balls!")]

        creature = self.catalog.get_creature(command.name)
        if creature is None:
            raise NotFoundError("Invalid Pokémon name!")

        result = rules.attempt_catch(
            trainer,
            creature,
            rng=self.rng,
            max_team_size=self.config.max_team_size,
        )
        self.trainers.save(trainer)
        image = self._render(self.renderer.render_capture_scene, creature, result.success)

        name = creature.name.upper()
        if not result.success:
            text = f"Oh no! {name} broke free!"
        elif result.retained:
            text = f"You caught {name}! It's been added to your team."
        else:
            text = f"You caught {name}! But your team is full. Use !team to manage your Pokémon."
        return [Reply(text, image=image)]

    def _handle_team(self, sender: str, command: TeamCommand) -> List[Reply]:
        trainer = self.trainers.get(sender)
        if trainer is None or not trainer.roster:
            return [Reply("Your team is empty! Use !catch to add Pokémon.")]

        lines = ["*YOUR POKÉMON TEAM*", ""]
        for number, creature in enumerate(trainer.roster, start=1):
            lines.append(
                f"{number}. {creature.name.upper()} (Lv. {creature.level}) - "
                f"HP: {creature.stats.hp}/{creature.stats.max_hp}"
            )
        return [Reply("\n".join(lines))]

    def _handle_gym(self, sender: str, command: GymCommand) -> List[Reply]:
        if not command.name:
            return [Reply(self._gym_listing(self.trainers.get(sender)))]

        trainer = self._require_trainer(sender)
        gym = self.gyms.find(command.name)
        if gym is None:
            raise NotFoundError("Gym not found! Use !gym to see available gyms.")
        if trainer.has_badge(gym.name):
            return [Reply(f"You've already defeated {gym.name}'s {gym.leader}!")]
        if not trainer.conscious_members():
            return [Reply("All your Pokémon are fainted! Heal them with potions first.")]

        gym = self._prepare_gym(gym)
        if not gym.roster:
            return [Reply(f"{gym.leader} isn't ready to battle yet. Please try again later.")]

        engine = BattleEngine.start(
            BattleSide(trainer.name, trainer.roster),
            BattleSide(gym.leader, gym.roster),
            catalog=self.catalog,
            rng=self.rng,
            kind=BattleKind.GYM,
            gym_name=gym.name,
            **self._engine_options(),
        )
        active = self.registry.create(sender, ActiveBattle(engine, trainer, gym, gym.leader))
        mine, theirs = engine.side(Side.A).active, engine.side(Side.B).active
        intro = (
            f"Gym Battle against {gym.leader}!\n\n"
            f"Your {mine.name} (Lv. {mine.level}) vs {theirs.name} (Lv. {theirs.level})\n\n"
            "Available commands:\n!attack <move>\n!switch <pokemon number>\n!use potion"
        )
        return self._open_battle(sender, active, intro)

    def _handle_battle_challenge(self, sender: str, command: BattleCommand) -> List[Reply]:
        trainer = self.trainers.get(sender)
        opponent = self.trainers.get(command.opponent) if command.opponent else None
        if trainer is None or not trainer.roster or opponent is None or not opponent.roster:
            return [Reply("Usage: !battle <opponent-number>\nExample: !battle 1234567890@s.whatsapp.net")]
        if opponent.id == trainer.id:
            raise InvalidStateError("You can't battle yourself!")
        if not trainer.conscious_members():
            return [Reply("All your Pokémon are fainted! Heal them with potions first.")]

        # The opponent's record is never written, so battle against a copy.
        opponent_roster = [Creature.from_dict(creature.to_dict()) for creature in opponent.roster]
        engine = BattleEngine.start(
            BattleSide(trainer.name, trainer.roster),
            BattleSide(opponent.name, opponent_roster),
            catalog=self.catalog,
            rng=self.rng,
            kind=BattleKind.TRAINER,
            **self._engine_options(),
        )
        active = self.registry.create(sender, ActiveBattle(engine, trainer, None, opponent.name))
        intro = f"Battle started vs {opponent.name}!\n\nCommands: !attack <move>, !switch <1-6>, !use potion"
        return self._open_battle(sender, active, intro)

    def _handle_item(self, sender: str, command: ItemCommand) -> List[Reply]:
        trainer = self._require_trainer(sender)
        if not command.action:
            lines = ["*YOUR ITEMS*", ""]
            lines.extend(f"{item}: {quantity}" for item, quantity in trainer.items.items())
            lines.extend(["", "Use items with: !item use <item>"])
            return [Reply("\n".join(lines))]
        if command.action != "use":
            return [Reply("Usage: !item use <item>")]

        if command.item == "potion":
            if not trainer.roster:
                return [Reply("You don't have any Pokémon to heal!")]
            return self._use_potion(trainer, trainer.roster[0])
        if command.item == "revive":
            if trainer.item_count("revive") <= 0:
                return [Reply("You're out of revives!")]
            creature = rules.use_revive(trainer)
            trainer.consume_item("revive")
            self.trainers.save(trainer)
            return [Reply(f"{creature.name} was revived! (HP: {creature.stats.hp}/{creature.stats.max_hp})")]
        return [Reply("Unknown item. Use !item to see your inventory.")]

    def _handle_evolve(self, sender: str, command: EvolveCommand) -> List[Reply]:
        if command.index is None:
            return [Reply("Usage: !evolve <pokemon number> (from your !team)")]
        trainer = self.trainers.get(sender)
        if trainer is None or not 0 <= command.index < len(trainer.roster):
            raise InvalidStateError("Invalid Pokémon number! Use !team to check your Pokémon.")

        creature = trainer.roster[command.index]
        if not rules.can_evolve(creature, self.config.evolution_level):
            return [Reply(f"{creature.name} can't evolve right now! (Needs level {self.config.evolution_level}+)")]

        evolved = rules.evolve_creature(creature, self.catalog, self.config.evolution_level)
        if evolved is None:
            return [Reply("Evolution failed!")]

        image = self._render(self.renderer.render_evolution_scene, creature, evolved)
        trainer.roster[command.index] = evolved
        self.trainers.save(trainer)
        logger.info("Trainer %s evolved %s into %s", sender, creature.name, evolved.name)
        return [
            Reply(
                f"Congratulations! {creature.name.upper()} evolved into {evolved.name.upper()}!",
                image=image,
            )
        ]

    def _handle_help(self, sender: str, command: HelpCommand) -> List[Reply]:
        return [Reply(HELP_TEXT)]

    def _handle_unknown(self, sender: str, command: UnknownCommand) -> List[Reply]:
        return [Reply(UNKNOWN_COMMAND)]

    # ------------------------------------------------------------------
    # In-battle commands
    # ------------------------------------------------------------------
    def _battle_attack(self, sender: str, active: ActiveBattle, command: AttackCommand) -> List[Reply]:
        engine = active.engine
        mine = engine.side(Side.A).active
        if engine.pending_replacement is Side.A:
            return [Reply(f"Your {mine.name} fainted! Send out another with !switch <1-6>")]
        if mine.moves and command.move not in mine.moves:
            return [Reply(f"{mine.name} doesn't know {command.move}! Moves: {', '.join(mine.moves)}")]

        mark = len(engine.log)
        result = engine.execute_turn(Attack(command.move))
        if result.failed:
            return [Reply("You can't attack right now!")]
        return self._after_player_action(sender, active, mark, command.move, result.damage)

    def _battle_switch(self, sender: str, active: ActiveBattle, command: SwitchCommand) -> List[Reply]:
        if command.index is None or not 0 <= command.index < 6:
            return [Reply("Invalid Pokémon number (1-6)!")]
        engine = active.engine
        mark = len(engine.log)
        result = engine.execute_turn(Switch(command.index))
        if result.failed:
            return [Reply("Cannot switch to that Pokémon!")]
        return self._after_player_action(sender, active, mark, "switch", 0)

    def _battle_use_potion(self, sender: str, active: ActiveBattle, command: UsePotionCommand) -> List[Reply]:
        return self._use_potion(active.trainer, active.engine.side(Side.A).active)

    def _battle_forfeit(self, sender: str, active: ActiveBattle, command: ForfeitCommand) -> List[Reply]:
        winner = active.engine.forfeit(Side.A)
        return [Reply("You ran from the battle!")] + self._finish_battle(sender, active, winner)

    def _battle_help(self, sender: str, active: ActiveBattle, command: BattleHelpCommand) -> List[Reply]:
        return [Reply(BATTLE_HELP)]

    # ------------------------------------------------------------------
    # Battle flow
    # ------------------------------------------------------------------
    def _open_battle(self, sender: str, active: ActiveBattle, intro: str) -> List[Reply]:
        engine = active.engine
        mine, theirs = engine.side(Side.A).active, engine.side(Side.B).active
        image = self._render(self.renderer.render_battle_scene, mine, theirs, "start", 0)
        replies = [Reply(intro, image=image)]

        mark = len(engine.log)
        winner = engine.check_battle_end()
        if winner is None:
            self._play_opponent(engine)
            winner = engine.check_battle_end()
        self.trainers.save(active.trainer)

        opening = engine.log[mark:]
        if opening:
            replies.append(Reply("\n\n".join(opening)))
        if winner is not None:
            replies.extend(self._finish_battle(sender, active, winner))
        elif engine.pending_replacement is Side.A:
            replies.append(Reply(f"Your {engine.side(Side.A).active.name} fainted! Send out another with !switch <1-6>"))
        return replies

    def _after_player_action(
        self,
        sender: str,
        active: ActiveBattle,
        mark: int,
        move_label: str,
        damage: int,
    ) -> List[Reply]:
        engine = active.engine
        winner = engine.check_battle_end()
        if winner is None:
            self._play_opponent(engine)
            winner = engine.check_battle_end()
        self.trainers.save(active.trainer)

        mine, theirs = engine.side(Side.A).active, engine.side(Side.B).active
        image = self._render(self.renderer.render_battle_scene, mine, theirs, move_label, damage)
        replies = [Reply("\n\n".join(engine.log[mark:]), image=image)]
        if winner is not None:
            replies.extend(self._finish_battle(sender, active, winner))
        elif engine.pending_replacement is Side.A:
            replies.append(Reply(f"Your {mine.name} fainted! Send out another with !switch <1-6>"))
        return replies

    def _play_opponent(self, engine: BattleEngine) -> None:
        """Act for side B until side A is expected to move or the battle ends."""

        for _ in range(AUTOPILOT_STEP_LIMIT):
            if engine.is_over or engine.acting_side is not Side.B:
                return
            side = engine.side(Side.B)
            if engine.pending_replacement is Side.B:
                index = side.first_conscious_index()
                if index is None:
                    engine.check_battle_end()
                    return
                engine.execute_turn(Switch(index))
                continue
            move = self.rng.choice(side.active.moves) if side.active.moves else FALLBACK_MOVE
            result = engine.execute_turn(Attack(move))
            if result.status is TurnStatus.KNOCKOUT:
                engine.check_battle_end()
        logger.warning("Opponent autopilot hit its step limit")

    def _finish_battle(self, sender: str, active: ActiveBattle, winner: Side) -> List[Reply]:
        self.registry.end(sender)
        gym = active.gym if active.engine.kind is BattleKind.GYM else None
        report = self.progression.resolve(active.trainer, won=winner is Side.A, gym=gym)
        self.trainers.save(active.trainer)
        if gym is not None and report.victory:
            self._record_gym_defeat(gym.name)
        return self._progression_replies(active, report)

    def _progression_replies(self, active: ActiveBattle, report: ProgressionReport) -> List[Reply]:
        if not report.victory:
            return [Reply("You lost the battle... Heal your Pokémon and try again!")]
        replies = [Reply(f"{level_up.creature} leveled up to Lv. {level_up.level}!") for level_up in report.level_ups]
        if active.gym is not None and report.badge:
            replies.append(
                Reply(f"🏆 You defeated {active.gym.leader} and earned the {report.badge} Badge! 🏆")
            )
        else:
            replies.append(Reply("You won the battle! Your Pokémon gained experience!"))
        return replies

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _require_trainer(self, sender: str) -> Trainer:
        trainer = self.trainers.get(sender)
        if trainer is None:
            raise InvalidStateError(NOT_REGISTERED)
        return trainer

    def _use_potion(self, trainer: Trainer, creature: Creature) -> List[Reply]:
        if trainer.item_count("potion") <= 0:
            return [Reply("You're out of potions!")]
        healed = rules.use_potion(creature, self.config.potion_heal)
        trainer.consume_item("potion")
        self.trainers.save(trainer)
        return [
            Reply(
                f"Used Potion on {creature.name}! It recovered {healed} HP.\n"
                f"Current HP: {creature.stats.hp}/{creature.stats.max_hp}"
            )
        ]

    def _gym_listing(self, trainer: Optional[Trainer]) -> str:
        lines = ["*AVAILABLE GYMS*", ""]
        for gym in self.gyms.all():
            status = "✓" if trainer and trainer.has_badge(gym.name) else "✗"
            lines.append(f"{status} {gym.name} - Leader: {gym.leader} ({gym.type} type)")
        lines.extend(["", "Challenge a gym with: !gym <name>"])
        return "\n".join(lines)

    def _prepare_gym(self, found: Gym) -> Gym:
        """Reload the gym under its lock, generating its roster on first challenge.

        The returned record is private to this battle; its roster is at full hp.
        """

        with self.gym_locks.hold(found.name):
            gym = self.gyms.get(found.name) or found
            if not gym.roster:
                gym.roster = self._generate_gym_roster(gym)
                if not gym.roster:
                    return gym
                self.gyms.save(gym)
        for creature in gym.roster:
            creature.restore()
        return gym

    def _record_gym_defeat(self, name: str) -> None:
        with self.gym_locks.hold(name):
            stored = self.gyms.get(name)
            if stored is None:
                logger.warning("Gym %s vanished before its defeat could be recorded", name)
                return
            if not stored.defeated:
                stored.defeated = True
                self.gyms.save(stored)

    def _generate_gym_roster(self, gym: Gym) -> List[Creature]:
        pool = sorted(self.catalog.get_species_pool_by_type(gym.type))
        if not pool:
            logger.warning("No species pool for gym %s (%s type)", gym.name, gym.type)
            return []
        picks = self.rng.sample(pool, k=min(self.config.gym_team_size, len(pool)))
        roster = [creature for creature in map(self.catalog.get_creature, picks) if creature is not None]
        logger.info("Generated %s roster: %s", gym.name, [creature.name for creature in roster])
        return roster

    def _engine_options(self) -> Dict[str, Any]:
        return {
            "calculator": DamageCalculator(type_effectiveness=self.config.type_effectiveness),
            "accuracy": AccuracyRoll() if self.config.accuracy_checks else AlwaysHit(),
        }

    def _render(self, render: Callable[..., Any], *args: Any) -> Optional[str]:
        try:
            return str(render(*args))
        except Exception as exc:
            logger.warning("Scene rendering failed: %s", exc)
            return None

    def _maybe_purge_images(self) -> None:
        now = time.time()
        if now - self._last_purge < self.config.image_max_age:
            return
        self._last_purge = now
        try:
            self.renderer.purge(self.config.image_max_age)
        except OSError as exc:
            logger.warning("Image purge failed: %s", exc)
