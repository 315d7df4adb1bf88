# campusnet/api/routes/__init__.py

from flask import Flask

from campusnet.api.routes.auth_routes import bp_auth
from campusnet.api.routes.chat_routes import bp_chats
from campusnet.api.routes.health_routes import bp_health
from campusnet.api.routes.message_routes import bp_msg


def register_routes(app: Flask, *, api_prefix: str) -> None:
    prefix = api_prefix.rstrip("/")

    app.register_blueprint(bp_health, url_prefix=f"{prefix}/health")

    # /login, /logout, /me na raiz do prefixo
    app.register_blueprint(bp_auth, url_prefix=prefix or None)
    app.register_blueprint(bp_chats, url_prefix=f"{prefix}/chats")
    app.register_blueprint(bp_msg, url_prefix=f"{prefix}/messages")
