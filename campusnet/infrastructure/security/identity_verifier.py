# campusnet/infrastructure/security/identity_verifier.py
from __future__ import annotations

import logging

from campusnet.core.interfaces.identity_verifier import IdentityVerifier

logger = logging.getLogger(__name__)


class BypassIdentityVerifier(IdentityVerifier):
    """Aceita qualquer par (dev only, SKIP_IDENTITY_CHECK=true)."""

    def verify(self, college_id: str, secret: str) -> bool:
        return True


class RejectingIdentityVerifier(IdentityVerifier):
    """Default quando nenhum verificador externo foi plugado: nega todo login."""

    def verify(self, college_id: str, secret: str) -> bool:
        return False


def build_identity_verifier(*, skip_identity_check: bool) -> IdentityVerifier:
    if skip_identity_check:
        logger.warning("Identity verification bypassed (SKIP_IDENTITY_CHECK=true); development only.")
        return BypassIdentityVerifier()

    logger.warning("No external identity verifier configured; every login will be rejected.")
    return RejectingIdentityVerifier()
