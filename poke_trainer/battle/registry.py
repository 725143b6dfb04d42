"""Active battle sessions keyed by initiating sender."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, Optional

from ..errors import InvalidStateError
from ..models import Gym, Trainer
from .engine import BattleEngine


@dataclass
class ActiveBattle:
    """A running session plus the records whose rosters it references."""

    engine: BattleEngine
    trainer: Trainer
    gym: Optional[Gym] = None
    opponent_name: str = ""


class KeyedLocks:
    """One re-entrant lock per key, created on demand."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.RLock())
        with lock:
            yield


class BattleRegistry:
    """Holds at most one session per sender; a second challenge is rejected."""

    def __init__(self) -> None:
        self._sessions: Dict[str, ActiveBattle] = {}
        self._guard = threading.Lock()

    def get(self, sender: str) -> Optional[ActiveBattle]:
        with self._guard:
            return self._sessions.get(sender)

    def create(self, sender: str, session: ActiveBattle) -> ActiveBattle:
        with self._guard:
            if sender in self._sessions:
                raise InvalidStateError("You're already in a battle! Finish it or !forfeit first.")
            self._sessions[sender] = session
        return session

    def end(self, sender: str) -> Optional[ActiveBattle]:
        with self._guard:
            return self._sessions.pop(sender, None)

    def __contains__(self, sender: str) -> bool:
        with self._guard:
            return sender in self._sessions

    def __len__(self) -> int:
        with self._guard:
            return len(self._sessions)
