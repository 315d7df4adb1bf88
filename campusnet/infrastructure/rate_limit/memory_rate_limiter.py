# campusnet/infrastructure/rate_limit/memory_rate_limiter.py
from __future__ import annotations

import math
import threading
import time
from typing import Callable

from campusnet.core.interfaces.rate_limiter import RateLimiter, RateLimitResult


class InMemoryRateLimiter(RateLimiter):
    """
    Janela fixa por chave, local ao processo (key -> (início da janela, contagem)).

    Com vários processos cada um conta só as próprias requisições.
    """

    backend_name = "memory"
    SWEEP_THRESHOLD = 1024

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._windows: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitResult:
        now = self._clock()
        with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
            self._sweep_locked(now, window_seconds)

        reset_in = max(1, math.ceil(started + window_seconds - now))
        return RateLimitResult(
            allowed=count <= limit,
            remaining=max(0, limit - count),
            retry_after_seconds=reset_in,
        )

    def _sweep_locked(self, now: float, window_seconds: int) -> None:
        # janelas vencidas não seguram memória
        if len(self._windows) < self.SWEEP_THRESHOLD:
            return
        expired = [k for k, (started, _) in self._windows.items() if now - started >= window_seconds]
        for k in expired:
            del self._windows[k]

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)
