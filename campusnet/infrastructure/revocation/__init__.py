# campusnet/infrastructure/revocation/__init__.py
from __future__ import annotations

import hashlib
import logging

from redis.exceptions import RedisError

from campusnet.config.settings import Settings
from campusnet.core.exceptions import ConfigError
from campusnet.core.interfaces.revocation_store import RevocationStore
from campusnet.infrastructure.revocation.memory_revocation_store import InMemoryRevocationStore
from campusnet.infrastructure.revocation.redis_revocation_store import RedisRevocationStore

logger = logging.getLogger(__name__)


def credential_key(token: str) -> str:
    # nunca guardamos o token cru
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def build_revocation_store(settings: Settings) -> RevocationStore:
    """Escolhe a variante uma única vez, no startup."""
    if settings.redis_url:
        if not settings.redis_url.startswith(("redis://", "rediss://", "unix://")):
            raise ConfigError(f"Unsupported REDIS_URL scheme: {settings.redis_url.split(':', 1)[0]}")

        store = RedisRevocationStore.from_url(
            settings.redis_url,
            socket_timeout=settings.redis_socket_timeout_seconds,
        )
        try:
            store.ping()
        except RedisError as e:
            logger.warning(
                "Redis unavailable at startup (%s); falling back to process-local revocation. "
                "A logout is only enforced by the process that handled it.",
                e,
            )
            return InMemoryRevocationStore()

        logger.info("Token revocation backed by Redis (shared across processes).")
        return store

    logger.warning(
        "REDIS_URL not set: token revocation uses process-local memory. "
        "A logout is only enforced by the process that handled it."
    )
    return InMemoryRevocationStore()


__all__ = [
    "InMemoryRevocationStore",
    "RedisRevocationStore",
    "build_revocation_store",
    "credential_key",
]
