# campusnet/api/realtime/socket_handlers.py
from __future__ import annotations

import logging

from flask import request
from flask_socketio import ConnectionRefusedError, SocketIO, disconnect, join_room, leave_room
from pydantic import ValidationError as PydanticValidationError

from campusnet.api.middlewares.auth_middleware import extract_token
from campusnet.api.routes._services import message_service
from campusnet.api.schemas.message_schema import SendMessageRequest, TypingEvent
from campusnet.core.container import Container
from campusnet.core.exceptions import AppError
from campusnet.infrastructure.database.session import db_session
from campusnet.infrastructure.realtime.socketio_server import user_room
from campusnet.services.connection_gateway import ConnectionGateway
from campusnet.services.message_service import pack_message

logger = logging.getLogger(__name__)


def _handshake_token(auth, cookie_name: str) -> str | None:
    # 1) auth={"token": ...} do cliente socket.io
    if isinstance(auth, dict) and auth.get("token"):
        return str(auth["token"]).strip()

    # 2) Authorization: Bearer <token> / cookie
    token = extract_token(request, cookie_name=cookie_name)
    if token:
        return token

    # 3) querystring ?token=...
    token = request.args.get("token")
    if token:
        return str(token).strip()

    return None


def _fail(message: str) -> dict:
    return {"success": False, "message": message}


def reap_stale_handshakes(socketio: SocketIO, gateway: ConnectionGateway) -> list[str]:
    """Fecha e desconecta sockets que não terminaram o handshake a tempo."""
    reaped = gateway.stale_handshakes()
    for sid in reaped:
        logger.info("Socket %s did not finish handshake in time; closing", sid)
        gateway.close(sid)
        try:
            socketio.server.disconnect(sid, namespace="/")
        except Exception:
            logger.exception("Could not disconnect stale socket %s", sid)
    return reaped


def register_socket_handlers(socketio: SocketIO, container: Container) -> None:
    gateway = container.gateway

    def _joined_user(sid: str) -> int:
        # credencial inválida: sai da sala do usuário e derruba o transporte
        user_id = gateway.user_of(sid)
        try:
            return gateway.require_joined(sid)
        except AppError:
            if user_id is not None:
                leave_room(user_room(user_id))
            disconnect()
            raise

    @socketio.on("connect")
    def on_connect(auth=None):
        sid = request.sid
        gateway.open(sid)

        token = _handshake_token(auth, container.settings.cookie_name)
        user_id = None
        try:
            claims = gateway.authenticate(sid, token)
            user_id = int(claims["sub"])
            join_room(user_room(user_id))
            gateway.join(sid)
        except AppError as e:
            if user_id is not None:
                leave_room(user_room(user_id))
            gateway.close(sid)
            raise ConnectionRefusedError(_fail(str(e)))
        except Exception:
            logger.exception("Unexpected error while authenticating socket %s", sid)
            if user_id is not None:
                leave_room(user_room(user_id))
            gateway.close(sid)
            raise ConnectionRefusedError(_fail("Internal Server Error"))

        logger.info("Socket %s connected as user %s", sid, user_id)

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        user_id = gateway.close(request.sid)
        if user_id is not None:
            logger.info("Socket %s of user %s disconnected (%s)", request.sid, user_id, reason)

    @socketio.on("typing")
    def on_typing(data=None):
        from_user = _joined_user(request.sid)
        event = TypingEvent.model_validate(data or {})
        container.presence_notifier.notify_typing(from_user_id=from_user, to_user_id=event.to, chat_id=event.chat_id)

    @socketio.on("message:send")
    def on_message_send(data=None):
        sender_id = _joined_user(request.sid)
        payload = SendMessageRequest.model_validate(data or {})

        with db_session() as session:
            msg = message_service(session).send_message(
                chat_id=payload.chat_id,
                sender_id=sender_id,
                receiver_id=payload.receiver,
                text=payload.text,
            )
            body = pack_message(msg)

        return {"success": True, "message": body}

    @socketio.on_error_default
    def on_error(err: Exception):
        # erro de um evento não afeta as outras conexões
        if isinstance(err, AppError):
            logger.info("Socket event rejected for %s: %s", request.sid, err)
            return _fail(str(err))
        if isinstance(err, PydanticValidationError):
            return _fail("Invalid payload")

        logger.exception("Unhandled error in socket event for %s", request.sid)
        if container.settings.debug and not container.settings.is_production:
            return _fail(str(err) or "Internal Server Error")
        return _fail("Internal Server Error")


def start_background_tasks(socketio: SocketIO, container: Container) -> None:
    """Sweep periódico da revogação em memória e de handshakes parados."""
    settings = container.settings

    def _revocation_sweep():
        while True:
            socketio.sleep(settings.revocation_sweep_seconds)
            try:
                removed = container.revocation_store.sweep()
                if removed:
                    logger.debug("Revocation sweep reclaimed %s entries", removed)
            except Exception:
                logger.exception("Revocation sweep failed")

    def _handshake_reaper():
        while True:
            socketio.sleep(max(1, settings.handshake_timeout_seconds))
            reap_stale_handshakes(socketio, container.gateway)

    socketio.start_background_task(_revocation_sweep)
    socketio.start_background_task(_handshake_reaper)
