# campusnet/services/auth_service.py

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from campusnet.core.exceptions import (
    InvalidCredentialError,
    MissingCredentialError,
    TokenRevokedError,
    UnauthorizedError,
    ValidationError,
)
from campusnet.core.interfaces.identity_verifier import IdentityVerifier
from campusnet.core.interfaces.revocation_store import RevocationStore
from campusnet.infrastructure.database.models.user_model import UserModel
from campusnet.infrastructure.revocation import credential_key
from campusnet.infrastructure.security.jwt_provider import JwtProvider
from campusnet.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

_COLLEGE_ID_RE = re.compile(r"^[a-zA-Z0-9@._-]{3,50}$")
DEFAULT_BIO = "Hello! This is my profile."


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: UserModel
    max_age_seconds: int


class AuthService:
    """
    Gate único de autenticação (REST e realtime):
    assinatura/expiração primeiro, depois blacklist.
    """

    def __init__(self, *, jwt_provider: JwtProvider, revocation_store: RevocationStore) -> None:
        self._jwt = jwt_provider
        self._revocations = revocation_store

    def authenticate(self, token: str | None) -> dict:
        if not token:
            raise MissingCredentialError()

        claims = self._jwt.decode(token)  # InvalidCredentialError

        if self._revocations.is_revoked(credential_key(token)):
            raise TokenRevokedError()

        try:
            claims["sub"] = str(int(claims["sub"]))
        except (TypeError, ValueError) as e:
            raise InvalidCredentialError("Invalid token") from e
        return claims

    def login(
        self,
        *,
        username: str,
        password: str,
        verifier: IdentityVerifier,
        users: UserRepository,
    ) -> LoginResult:
        college_id = (username or "").strip()
        if not college_id or not password:
            raise ValidationError("College ID & password required")
        if not _COLLEGE_ID_RE.match(college_id):
            raise ValidationError("Invalid College ID format")
        if len(password) < 4:
            raise ValidationError("Password too short")

        if not verifier.verify(college_id, password):
            logger.info("Login rejected by identity verifier")
            raise UnauthorizedError("Invalid College ID or Password")

        now = datetime.now(timezone.utc)
        user = users.get_or_create_by_college_id(
            college_id,
            defaults={"username": college_id[:30], "bio": DEFAULT_BIO, "created_at": now},
        )
        user.last_login = now

        token = self._jwt.issue_access_token(
            subject=str(user.id),
            payload={"college_id": user.college_id},
        )
        return LoginResult(token=token, user=user, max_age_seconds=self._jwt.access_minutes * 60)

    def logout(self, token: str | None) -> bool:
        """
        Revoga a credencial até a sua expiração natural. Retorna False
        quando não há nada a revogar (ausente, inválida ou expirada).
        """
        if not token:
            return False
        try:
            claims = self._jwt.decode(token)
        except InvalidCredentialError:
            return False

        ttl = self._jwt.remaining_lifetime(claims)
        self._revocations.revoke(credential_key(token), ttl)
        return True
