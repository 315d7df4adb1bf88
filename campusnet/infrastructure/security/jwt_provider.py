# campusnet/infrastructure/security/jwt_provider.py

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt

from campusnet.config.settings import Settings, settings as default_settings
from campusnet.core.exceptions import ConfigError, InvalidCredentialError


class JwtProvider:
    """Emite e valida credenciais de acesso assinadas (HS256), sem estado no servidor."""

    def __init__(self, config: Settings | None = None) -> None:
        cfg = config or default_settings
        if not cfg.jwt_secret:
            raise ConfigError("JWT_SECRET is required.")

        self._secret = cfg.jwt_secret
        self._issuer = cfg.jwt_issuer
        self._audience = cfg.jwt_audience
        self._access_minutes = cfg.jwt_access_minutes
        self._algorithm = "HS256"

    @property
    def access_minutes(self) -> int:
        return self._access_minutes

    def issue_access_token(self, *, subject: str, payload: dict | None = None, minutes: int = 0) -> str:
        # se minutes não for passado, usa settings.jwt_access_minutes
        ttl = minutes if minutes and minutes > 0 else self._access_minutes
        now = datetime.now(tz=timezone.utc)
        exp = now + timedelta(minutes=ttl)

        claims = dict(payload or {})
        claims.update(
            {
                "iss": self._issuer,
                "aud": self._audience,
                "sub": str(subject),
                "iat": int(now.timestamp()),
                "exp": int(exp.timestamp()),
                "jti": uuid4().hex,
                "typ": "access",
            }
        )
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> dict:
        # claims desconhecidos são ignorados (compatibilidade futura)
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={"require": ["exp", "iat", "sub", "jti"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidCredentialError("Token expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidCredentialError("Invalid token") from e

        if claims.get("typ", "access") != "access":
            raise InvalidCredentialError("Invalid token")
        return claims

    @staticmethod
    def remaining_lifetime(claims: dict, *, now: datetime | None = None) -> int:
        """Segundos até a expiração natural (mínimo 1)."""
        ref = now or datetime.now(tz=timezone.utc)
        remaining = int(claims["exp"]) - int(ref.timestamp())
        return max(1, remaining)
