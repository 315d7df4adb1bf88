# campusnet/services/connection_gateway.py
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from campusnet.core.exceptions import AppError, UnauthorizedError
from campusnet.services.auth_service import AuthService
from campusnet.services.presence_tracker import PresenceTracker

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    JOINED = "joined"
    CLOSED = "closed"


@dataclass
class ConnectionSession:
    sid: str
    state: ConnectionState = ConnectionState.CONNECTING
    user_id: int | None = None
    token: str | None = field(default=None, repr=False)
    expires_at: int | None = None
    opened_at: float = 0.0


class ConnectionGateway:
    """
    Máquina de estados por conexão: CONNECTING -> AUTHENTICATING -> JOINED -> CLOSED.

    A sessão só entra no PresenceTracker depois que a autenticação terminou;
    CLOSED é terminal (uma nova conexão recomeça do zero com outro sid).
    """

    def __init__(
        self,
        *,
        auth_service: AuthService,
        presence: PresenceTracker,
        handshake_timeout_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._auth = auth_service
        self._presence = presence
        self._handshake_timeout = float(handshake_timeout_seconds)
        self._clock = clock
        self._sessions: dict[str, ConnectionSession] = {}
        self._lock = threading.Lock()

    def open(self, sid: str) -> ConnectionSession:
        session = ConnectionSession(sid=sid, opened_at=self._clock())
        with self._lock:
            self._sessions[sid] = session
        logger.debug("socket %s connecting", sid)
        return session

    def authenticate(self, sid: str, token: str | None) -> dict:
        with self._lock:
            session = self._sessions.get(sid)
            if session is None or session.state != ConnectionState.CONNECTING:
                raise UnauthorizedError("Connection must re-authenticate")
            session.state = ConnectionState.AUTHENTICATING

        try:
            claims = self._auth.authenticate(token)
        except AppError as e:
            self._discard(sid)
            logger.info("socket %s rejected: %s", sid, e)
            raise
        except Exception:
            # falha inesperada também encerra a sessão
            self._discard(sid)
            raise

        with self._lock:
            # o transporte pode ter caído enquanto verificávamos
            if self._sessions.get(sid) is not session:
                raise UnauthorizedError("Connection closed during authentication")
            session.user_id = int(claims["sub"])
            session.token = token
            session.expires_at = int(claims["exp"])
        return claims

    def join(self, sid: str) -> int:
        """AUTHENTICATING -> JOINED; registra a presença (dispara broadcast)."""
        with self._lock:
            session = self._sessions.get(sid)
            if session is None or session.state != ConnectionState.AUTHENTICATING or session.user_id is None:
                raise UnauthorizedError("Connection is not authenticated")
            session.state = ConnectionState.JOINED
            user_id = session.user_id

        # presença fora do lock: o listener pode consultar o gateway
        self._presence.add_session(user_id, sid)

        with self._lock:
            still_open = self._sessions.get(sid) is session
        if not still_open:
            # close concorrente rodou antes do add_session
            self._presence.remove_session(user_id, sid)
            raise UnauthorizedError("Connection closed during join")

        logger.debug("socket %s joined as user %s", sid, user_id)
        return user_id

    def close(self, sid: str) -> int | None:
        """Qualquer estado -> CLOSED. Idempotente; devolve o user_id se estava JOINED."""
        with self._lock:
            session = self._sessions.pop(sid, None)
            if session is None:
                return None
            was_joined = session.state == ConnectionState.JOINED
            session.state = ConnectionState.CLOSED

        if was_joined and session.user_id is not None:
            self._presence.remove_session(session.user_id, sid)
            logger.debug("socket %s closed (user %s)", sid, session.user_id)
            return session.user_id
        return None

    def require_joined(self, sid: str) -> int:
        """
        Revalida a credencial da sessão a cada evento (expiração e blacklist).
        Falha => a sessão é fechada e o erro sobe pro handler.
        """
        session = self._get(sid)
        if session is None or session.state != ConnectionState.JOINED or session.user_id is None:
            raise UnauthorizedError("Connection is not authenticated")

        try:
            self._auth.authenticate(session.token)
        except AppError:
            self.close(sid)
            raise
        return session.user_id

    def state_of(self, sid: str) -> ConnectionState:
        session = self._get(sid)
        return session.state if session is not None else ConnectionState.CLOSED

    def user_of(self, sid: str) -> int | None:
        session = self._get(sid)
        if session is None or session.state != ConnectionState.JOINED:
            return None
        return session.user_id

    def stale_handshakes(self) -> list[str]:
        """sids que não chegaram a JOINED dentro do timeout de handshake."""
        deadline = self._clock() - self._handshake_timeout
        with self._lock:
            return [
                s.sid
                for s in self._sessions.values()
                if s.state in (ConnectionState.CONNECTING, ConnectionState.AUTHENTICATING)
                and s.opened_at <= deadline
            ]

    def _get(self, sid: str) -> ConnectionSession | None:
        with self._lock:
            return self._sessions.get(sid)

    def _discard(self, sid: str) -> ConnectionSession | None:
        with self._lock:
            return self._sessions.pop(sid, None)
