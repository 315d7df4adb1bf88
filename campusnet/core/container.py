# campusnet/core/container.py
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from campusnet.config.settings import Settings
from campusnet.core.interfaces.identity_verifier import IdentityVerifier
from campusnet.core.interfaces.message_notifier import MessageNotifier
from campusnet.core.interfaces.presence_notifier import PresenceNotifier
from campusnet.core.interfaces.rate_limiter import RateLimiter
from campusnet.core.interfaces.revocation_store import RevocationStore
from campusnet.infrastructure.security.jwt_provider import JwtProvider
from campusnet.services.auth_service import AuthService
from campusnet.services.connection_gateway import ConnectionGateway
from campusnet.services.presence_tracker import PresenceTracker

EXTENSION_KEY = "campusnet"


@dataclass
class Container:
    """Dependências de processo, montadas uma vez no create_app."""

    settings: Settings
    jwt_provider: JwtProvider
    revocation_store: RevocationStore
    identity_verifier: IdentityVerifier
    presence: PresenceTracker
    gateway: ConnectionGateway
    message_notifier: MessageNotifier
    presence_notifier: PresenceNotifier
    rate_limiter: RateLimiter

    @property
    def auth_service(self) -> AuthService:
        return AuthService(jwt_provider=self.jwt_provider, revocation_store=self.revocation_store)


def current_container() -> Container:
    return current_app.extensions[EXTENSION_KEY]
