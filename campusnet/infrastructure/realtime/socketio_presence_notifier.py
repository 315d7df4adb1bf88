# campusnet/infrastructure/realtime/socketio_presence_notifier.py
from __future__ import annotations

from flask_socketio import SocketIO

from campusnet.core.interfaces.presence_notifier import PresenceNotifier
from campusnet.infrastructure.realtime.socketio_server import user_room


class SocketIOPresenceNotifier(PresenceNotifier):
    def __init__(self, server: SocketIO) -> None:
        self._server = server

    def notify_presence(self, online_user_ids: list[int]) -> None:
        self._server.emit("presence:update", list(online_user_ids))  # global

    def notify_typing(self, *, from_user_id: int, to_user_id: int, chat_id: int) -> None:
        # best-effort: sem sessão no canal do destinatário, simplesmente ninguém recebe
        self._server.emit(
            "typing",
            {"from": int(from_user_id), "chatId": chat_id},
            to=user_room(to_user_id),
        )
