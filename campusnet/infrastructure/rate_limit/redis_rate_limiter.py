# campusnet/infrastructure/rate_limit/redis_rate_limiter.py
from __future__ import annotations

import logging

import redis
from redis.exceptions import RedisError

from campusnet.core.interfaces.rate_limiter import RateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


class RedisRateLimiter(RateLimiter):
    """
    Janela fixa compartilhada entre processos: `INCR` + `EXPIRE` na primeira batida.

    Se o Redis falhar a requisição passa (com warning); throttling não pode
    derrubar o login.
    """

    backend_name = "redis"
    KEY_PREFIX = "rate_limit:"

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float) -> "RedisRateLimiter":
        client = redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitResult:
        redis_key = f"{self.KEY_PREFIX}{key}"
        try:
            pipe = self._client.pipeline()
            pipe.incr(redis_key)
            pipe.ttl(redis_key)
            count, ttl = pipe.execute()
            if ttl is None or int(ttl) < 0:
                # primeira batida da janela (ou chave sem expiração)
                self._client.expire(redis_key, window_seconds)
                ttl = window_seconds
        except RedisError as e:
            logger.warning("Rate limit check skipped for %s: %s", key, e)
            return RateLimitResult(allowed=True, remaining=limit, retry_after_seconds=window_seconds)

        count = int(count)
        return RateLimitResult(
            allowed=count <= limit,
            remaining=max(0, limit - count),
            retry_after_seconds=max(1, int(ttl)),
        )

    def ping(self) -> bool:
        return bool(self._client.ping())
