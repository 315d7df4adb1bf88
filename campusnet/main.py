# campusnet/main.py
from __future__ import annotations

import os

import eventlet

# PRECISA ser o primeiro comando do arquivo
eventlet.monkey_patch()

from campusnet.api.realtime.socket_handlers import start_background_tasks  # noqa: E402
from campusnet.app_factory import create_app  # noqa: E402
from campusnet.core.container import EXTENSION_KEY  # noqa: E402
from campusnet.infrastructure.realtime.socketio_server import socketio  # noqa: E402

app = create_app()
start_background_tasks(socketio, app.extensions[EXTENSION_KEY])

if __name__ == "__main__":
    # em produção: gunicorn -k eventlet -w 1 campusnet.main:app
    socketio.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=app.config["DEBUG"])
