# campusnet/infrastructure/realtime/socketio_message_notifier.py
from __future__ import annotations

import logging

from flask_socketio import SocketIO

from campusnet.core.interfaces.message_notifier import (
    ChatUpdatedEvent,
    MessageCreatedEvent,
    MessageNotifier,
)
from campusnet.infrastructure.realtime.socketio_server import user_room

logger = logging.getLogger(__name__)


class SocketIOMessageNotifier(MessageNotifier):
    def __init__(self, server: SocketIO) -> None:
        self._server = server

    def notify_message_created(self, event: MessageCreatedEvent) -> None:
        # destinatário e remetente (outros devices do remetente também)
        for uid in (event.receiver_id, event.sender_id):
            self._emit("message:new", event.message, uid)

    def notify_chat_updated(self, event: ChatUpdatedEvent) -> None:
        payload = {
            "chatId": event.chat_id,
            "lastMessage": event.last_message,
            "at": event.at_iso,
        }
        for uid in event.participant_ids:
            self._emit("chat:updated", payload, uid)

    def _emit(self, name: str, payload: dict, user_id: int) -> None:
        # a mensagem já está gravada; falha de entrega não desfaz nada
        try:
            self._server.emit(name, payload, to=user_room(user_id))
        except Exception:
            logger.exception("emit %s to user %s failed", name, user_id)
