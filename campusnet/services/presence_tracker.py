# campusnet/services/presence_tracker.py
from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

PresenceListener = Callable[[list[int]], None]


class PresenceTracker:
    """
    Conjunto de sessões abertas por usuário (multi-device).

    Invariante: a chave de um usuário existe sse o set de sessões não é vazio.
    Toda mutação e leitura passa pelo mesmo lock; só snapshots saem daqui.
    O listener recebe a lista completa de online após cada mudança, o que é
    aceitável para um único campus mas não escala para milhares de usuários.
    """

    def __init__(self, on_change: PresenceListener | None = None) -> None:
        self._sessions: dict[int, set[str]] = {}
        self._lock = threading.Lock()
        # serializa mutação + broadcast: o último snapshot emitido é sempre o atual
        self._emit_lock = threading.Lock()
        self._on_change = on_change

    def set_listener(self, on_change: PresenceListener | None) -> None:
        self._on_change = on_change

    def add_session(self, user_id: int, session_id: str) -> bool:
        """Retorna True se a sessão não estava registrada."""
        with self._emit_lock:
            with self._lock:
                sessions = self._sessions.setdefault(int(user_id), set())
                added = session_id not in sessions
                sessions.add(session_id)
                snapshot = self._snapshot_locked()
            self._emit(snapshot)
        return added

    def remove_session(self, user_id: int, session_id: str) -> bool:
        """Retorna True se a sessão existia."""
        uid = int(user_id)
        with self._emit_lock:
            with self._lock:
                sessions = self._sessions.get(uid)
                if sessions is None or session_id not in sessions:
                    removed = False
                else:
                    sessions.discard(session_id)
                    if not sessions:
                        del self._sessions[uid]
                    removed = True
                snapshot = self._snapshot_locked()
            self._emit(snapshot)
        return removed

    def is_online(self, user_id: int) -> bool:
        with self._lock:
            return int(user_id) in self._sessions

    def online_users(self) -> set[int]:
        with self._lock:
            return set(self._sessions.keys())

    def sessions_of(self, user_id: int) -> set[str]:
        with self._lock:
            return set(self._sessions.get(int(user_id), ()))

    def _snapshot_locked(self) -> list[int]:
        return sorted(self._sessions.keys())

    def _emit(self, snapshot: list[int]) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(snapshot)
        except Exception:
            # broadcast é best-effort; o estado já está consistente
            logger.exception("presence broadcast failed")
