# campusnet/infrastructure/revocation/memory_revocation_store.py
from __future__ import annotations

import threading
import time
from typing import Callable

from campusnet.core.interfaces.revocation_store import RevocationStore


class InMemoryRevocationStore(RevocationStore):
    """
    Blacklist local ao processo (key -> revoked_until, epoch seconds).

    A revogação só vale no processo que fez o logout. A validade é decidida
    no momento da consulta; o sweep só libera memória.
    """

    backend_name = "memory"

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._entries: dict[str, float] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def revoke(self, credential_key: str, ttl_seconds: int) -> None:
        if not credential_key:
            return
        until = self._clock() + max(1, int(ttl_seconds))
        with self._lock:
            # nunca encurta uma revogação já existente
            current = self._entries.get(credential_key)
            if current is None or current < until:
                self._entries[credential_key] = until

    def is_revoked(self, credential_key: str) -> bool:
        now = self._clock()
        with self._lock:
            until = self._entries.get(credential_key)
        return until is not None and until > now

    def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [k for k, until in self._entries.items() if until <= now]
            for k in expired:
                del self._entries[k]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
