# campusnet/infrastructure/realtime/socketio_server.py
from __future__ import annotations

from flask_socketio import SocketIO

# cors/async_mode definidos no init_app (dependem das settings)
socketio = SocketIO()


def user_room(user_id: int | str) -> str:
    # canal lógico por usuário: todas as sessões (devices) dele
    return f"user:{int(user_id)}"
