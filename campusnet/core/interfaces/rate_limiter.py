# campusnet/core/interfaces/rate_limiter.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    retry_after_seconds: int


class RateLimiter(Protocol):
    backend_name: str

    def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitResult:
        """Conta uma requisição para `key` na janela atual e diz se ela passa."""
        ...
