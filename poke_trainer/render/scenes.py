"""Pillow compositor for battle, capture and evolution feedback images."""

from __future__ import annotations

import io
import logging
import random
import time
from pathlib import Path
from typing import Callable, Optional

import requests
from PIL import Image, ImageDraw, ImageFont

from ..data.types import type_color
from ..models import Creature

logger = logging.getLogger(__name__)

PLACEHOLDER_SPRITE = "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/0.png"
BALL_SPRITE = "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/items/poke-ball.png"

MOVE_COLORS = {
    "thunderbolt": "#F8D030",
    "flamethrower": "#F08030",
    "hydro-pump": "#6890F0",
    "tackle": "#A8A878",
}

ImageLoader = Callable[[Optional[str]], Optional[Image.Image]]


class HttpImageLoader:
    """Downloads sprites, returning ``None`` when they cannot be fetched."""

    def __init__(self, *, session: Optional[requests.Session] = None, timeout: int = 10) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def __call__(self, url: Optional[str]) -> Optional[Image.Image]:
        if not url:
            return None
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return Image.open(io.BytesIO(response.content)).convert("RGBA")
        except (requests.RequestException, OSError) as exc:
            logger.warning("Could not load sprite %s: %s", url, exc)
            return None


def hp_bar_color(hp: int, max_hp: int) -> str:
    ratio = hp / max(1, max_hp)
    if ratio > 0.5:
        return "#2ecc71"
    if ratio > 0.2:
        return "#f39c12"
    return "#e74c3c"


class SceneRenderer:
    """Writes PNG summaries into ``output_dir``; never mutates the creatures it draws."""

    def __init__(
        self,
        output_dir: str | Path,
        *,
        image_loader: Optional[ImageLoader] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.image_loader = image_loader or HttpImageLoader()
        self.rng = rng or random.Random()
        self.font = ImageFont.load_default()

    # ------------------------------------------------------------------
    # Scenes
    # ------------------------------------------------------------------
    def render_battle_scene(self, attacker: Creature, defender: Creature, move_label: str, damage: int) -> Path:
        canvas = Image.new("RGBA", (800, 400))
        draw = ImageDraw.Draw(canvas)
        draw.rectangle((0, 0, 400, 400), fill=type_color(attacker.primary_type))
        draw.rectangle((400, 0, 800, 400), fill=type_color(defender.primary_type))

        self._paste_sprite(canvas, attacker.image, (50, 130), 220)
        self._paste_sprite(canvas, defender.image, (500, 130), 220)

        self._draw_hp_bar(draw, attacker, 50, 100, 300)
        self._draw_hp_bar(draw, defender, 450, 100, 300)

        if damage > 0:
            radius = 30 + damage / 3
            draw.ellipse(
                (600 - radius, 250 - radius, 600 + radius, 250 + radius),
                fill=MOVE_COLORS.get(move_label.lower(), "#FFFFFF"),
            )

        draw.text((50, 40), attacker.name.upper(), fill="white", font=self.font)
        draw.text((450, 40), defender.name.upper(), fill="white", font=self.font)
        draw.text((50, 70), f"Lv. {attacker.level}", fill="white", font=self.font)
        draw.text((450, 70), f"Lv. {defender.level}", fill="white", font=self.font)
        draw.text((50, 370), f"{attacker.name} used {move_label.upper()}!", fill="white", font=self.font)
        draw.text((600, 370), f"-{damage} HP!", fill="white", font=self.font)
        return self._save(canvas, "battle")

    def render_capture_scene(self, creature: Creature, success: bool) -> Path:
        canvas = Image.new("RGBA", (600, 460), "#27ae60" if success else "#e74c3c")
        draw = ImageDraw.Draw(canvas)
        self._paste_sprite(canvas, creature.image, (150, 30), 300)
        self._paste_sprite(canvas, BALL_SPRITE, (250, 320), 80, placeholder=False)

        if success:
            for _ in range(5):
                x = 100 + self.rng.random() * 400
                y = 100 + self.rng.random() * 200
                r = 5 + self.rng.random() * 10
                draw.ellipse((x - r, y - r, x + r, y + r), fill=(255, 255, 255, 180))

        headline = "GOTCHA!" if success else "OH NO!"
        caption = f"{creature.name.upper()} was caught!" if success else f"{creature.name.upper()} broke free!"
        draw.text((260, 410), headline, fill="white", font=self.font)
        draw.text((200, 430), caption, fill="white", font=self.font)
        return self._save(canvas, "capture")

    def render_evolution_scene(self, before: Creature, after: Creature) -> Path:
        canvas = Image.new("RGBA", (800, 400))
        draw = ImageDraw.Draw(canvas)
        start, end = (0x8E, 0x44, 0xAD), (0x34, 0x98, 0xDB)
        for x in range(800):
            t = x / 799
            color = tuple(int(a + (b - a) * t) for a, b in zip(start, end))
            draw.line((x, 0, x, 400), fill=color)

        self._paste_sprite(canvas, before.image, (100, 100), 250)
        self._paste_sprite(canvas, after.image, (450, 100), 250)
        draw.text((380, 240), "->", fill="white", font=self.font)
        draw.text((360, 40), "EVOLUTION", fill="white", font=self.font)
        draw.text((150, 370), before.name.upper(), fill="white", font=self.font)
        draw.text((500, 370), after.name.upper(), fill="white", font=self.font)
        return self._save(canvas, "evolve")

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------
    def purge(self, max_age_seconds: int) -> int:
        """Delete generated images older than ``max_age_seconds``; returns the count."""

        cutoff = time.time() - max_age_seconds
        removed = 0
        for path in self.output_dir.glob("*.png"):
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except FileNotFoundError:
                continue
        if removed:
            logger.info("Purged %d rendered images from %s", removed, self.output_dir)
        return removed

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _paste_sprite(
        self,
        canvas: Image.Image,
        url: Optional[str],
        origin: tuple[int, int],
        size: int,
        *,
        placeholder: bool = True,
    ) -> None:
        sprite = self.image_loader(url)
        if sprite is None and placeholder:
            sprite = self.image_loader(PLACEHOLDER_SPRITE)
        if sprite is None:
            return
        sprite = sprite.convert("RGBA").resize((size, size), Image.LANCZOS)
        canvas.alpha_composite(sprite, dest=origin)

    def _draw_hp_bar(self, draw: ImageDraw.ImageDraw, creature: Creature, x: int, y: int, width: int) -> None:
        hp, max_hp = creature.stats.hp, creature.stats.max_hp
        filled = int(width * hp / max(1, max_hp))
        draw.rectangle((x, y, x + width, y + 20), fill="#333333")
        if filled > 0:
            draw.rectangle((x, y, x + filled, y + 20), fill=hp_bar_color(hp, max_hp))
        draw.rectangle((x, y, x + width, y + 20), outline="#000000", width=2)
        draw.text((x + 5, y + 4), f"{hp}/{max_hp}", fill="white", font=self.font)

    def _save(self, canvas: Image.Image, prefix: str) -> Path:
        path = self.output_dir / f"{prefix}_{time.time_ns()}.png"
        canvas.save(path, format="PNG")
        return path
