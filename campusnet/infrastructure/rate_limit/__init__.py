# campusnet/infrastructure/rate_limit/__init__.py
from __future__ import annotations

import logging

from redis.exceptions import RedisError

from campusnet.config.settings import Settings
from campusnet.core.exceptions import ConfigError
from campusnet.core.interfaces.rate_limiter import RateLimiter
from campusnet.infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from campusnet.infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter

logger = logging.getLogger(__name__)


def build_rate_limiter(settings: Settings) -> RateLimiter:
    """Mesma escolha da revogação: Redis se configurado e acessível, senão memória."""
    if settings.redis_url:
        if not settings.redis_url.startswith(("redis://", "rediss://", "unix://")):
            raise ConfigError(f"Unsupported REDIS_URL scheme: {settings.redis_url.split(':', 1)[0]}")

        limiter = RedisRateLimiter.from_url(
            settings.redis_url,
            socket_timeout=settings.redis_socket_timeout_seconds,
        )
        try:
            limiter.ping()
        except RedisError as e:
            logger.warning("Redis unavailable at startup (%s); rate limits are per process.", e)
            return InMemoryRateLimiter()
        return limiter

    return InMemoryRateLimiter()


__all__ = ["InMemoryRateLimiter", "RedisRateLimiter", "build_rate_limiter"]
