"""Whole-document JSON stores for trainers and gyms."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..data.gyms import DEFAULT_GYMS
from ..errors import PersistenceError
from ..models import Gym, Trainer

logger = logging.getLogger(__name__)


class JsonStore:
    """A JSON object on disk, read and written as a whole.

    Writes replace a single key under a store-wide lock and land through a
    temporary file plus ``os.replace`` so readers never see a partial document.
    """

    def __init__(self, path: str | Path, *, seed: Optional[Callable[[], Dict[str, Any]]] = None) -> None:
        self.path = Path(path)
        self._seed = seed or dict
        self._lock = threading.RLock()

    def load(self) -> Dict[str, Any]:
        with self._lock:
            if not self.path.exists():
                self._write(self._seed())
            try:
                payload = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                raise PersistenceError(f"Could not read {self.path}: {exc}") from exc
            if not isinstance(payload, dict):
                raise PersistenceError(f"{self.path} does not contain a JSON object")
            return payload

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        return self.load().get(key)

    def put(self, key: str, value: Dict[str, Any]) -> None:
        with self._lock:
            payload = self.load()
            payload[key] = value
            self._write(payload)

    def _write(self, payload: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(payload, handle, indent=2, ensure_ascii=False)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Could not write {self.path}: {exc}") from exc
        logger.debug("Wrote %s", self.path)


class TrainerStore:
    """Trainer id -> :class:`Trainer` record."""

    def __init__(self, path: str | Path) -> None:
        self._store = JsonStore(path)

    def exists(self, trainer_id: str) -> bool:
        return self._store.get(trainer_id) is not None

    def get(self, trainer_id: str) -> Optional[Trainer]:
        payload = self._store.get(trainer_id)
        if payload is None:
            return None
        return Trainer.from_dict(trainer_id, payload)

    def save(self, trainer: Trainer) -> None:
        self._store.put(trainer.id, trainer.to_dict())

    def all(self) -> List[Trainer]:
        return [Trainer.from_dict(key, value) for key, value in self._store.load().items()]


class GymStore:
    """Gym name -> :class:`Gym` record, seeded with the default gyms."""

    def __init__(self, path: str | Path, *, defaults: Optional[Dict[str, Any]] = None) -> None:
        seed_data = defaults if defaults is not None else DEFAULT_GYMS
        self._store = JsonStore(path, seed=lambda: json.loads(json.dumps(seed_data)))

    def get(self, name: str) -> Optional[Gym]:
        payload = self._store.get(name)
        if payload is None:
            return None
        return Gym.from_dict(name, payload)

    def find(self, name: str) -> Optional[Gym]:
        """Case-insensitive lookup, since chat input is lowercased."""

        wanted = name.strip().lower()
        for key, value in self._store.load().items():
            if key.lower() == wanted:
                return Gym.from_dict(key, value)
        return None

    def save(self, gym: Gym) -> None:
        self._store.put(gym.name, gym.to_dict())

    def all(self) -> List[Gym]:
        return [Gym.from_dict(key, value) for key, value in self._store.load().items()]
