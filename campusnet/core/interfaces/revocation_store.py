# campusnet/core/interfaces/revocation_store.py
from __future__ import annotations

from typing import Protocol


class RevocationStore(Protocol):
    backend_name: str

    def revoke(self, credential_key: str, ttl_seconds: int) -> None:
        ...

    def is_revoked(self, credential_key: str) -> bool:
        ...

    def sweep(self) -> int:
        ...
