# campusnet/infrastructure/revocation/redis_revocation_store.py
from __future__ import annotations

import redis

from campusnet.core.interfaces.revocation_store import RevocationStore
from campusnet.core.retry import retry_read


class RedisRevocationStore(RevocationStore):
    """
    Blacklist compartilhada entre processos. Cada entrada é `SET key 1 EX ttl`;
    a expiração por chave é do próprio Redis, então sweep não tem o que fazer.
    """

    backend_name = "redis"
    KEY_PREFIX = "blacklist:"

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float) -> "RedisRevocationStore":
        client = redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    def _key(self, credential_key: str) -> str:
        return f"{self.KEY_PREFIX}{credential_key}"

    def revoke(self, credential_key: str, ttl_seconds: int) -> None:
        if not credential_key:
            return
        # escrita: erro de conexão sobe pro chamador (logout não pode "sumir")
        self._client.set(self._key(credential_key), "1", ex=max(1, int(ttl_seconds)))

    @retry_read()
    def is_revoked(self, credential_key: str) -> bool:
        return bool(self._client.exists(self._key(credential_key)))

    def sweep(self) -> int:
        return 0

    def ping(self) -> bool:
        return bool(self._client.ping())
