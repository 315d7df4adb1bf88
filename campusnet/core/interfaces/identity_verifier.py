# campusnet/core/interfaces/identity_verifier.py
from __future__ import annotations

from typing import Protocol


class IdentityVerifier(Protocol):
    """Serviço externo de verificação de alunos (caixa-preta)."""

    def verify(self, college_id: str, secret: str) -> bool:
        ...
