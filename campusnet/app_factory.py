# campusnet/app_factory.py
from __future__ import annotations

import logging

from flask import Flask
from flask_cors import CORS

from campusnet.api.middlewares.error_handler import register_error_handlers
from campusnet.api.middlewares.rate_limit_middleware import register_rate_limit
from campusnet.api.realtime.socket_handlers import register_socket_handlers
from campusnet.api.routes import register_routes
from campusnet.config.flask_config import configure_app
from campusnet.config.logging_config import configure_logging
from campusnet.config.settings import Settings, settings as default_settings
from campusnet.core.container import EXTENSION_KEY, Container
from campusnet.core.exceptions import ConfigError
from campusnet.core.interfaces.identity_verifier import IdentityVerifier
from campusnet.core.interfaces.rate_limiter import RateLimiter
from campusnet.core.interfaces.revocation_store import RevocationStore
from campusnet.core.retry import configure_retry
from campusnet.infrastructure.database.base_model import BaseModel
from campusnet.infrastructure.database.session import init_engine
from campusnet.infrastructure.rate_limit import build_rate_limiter
from campusnet.infrastructure.realtime.socketio_message_notifier import SocketIOMessageNotifier
from campusnet.infrastructure.realtime.socketio_presence_notifier import SocketIOPresenceNotifier
from campusnet.infrastructure.realtime.socketio_server import socketio
from campusnet.infrastructure.revocation import build_revocation_store
from campusnet.infrastructure.security.identity_verifier import build_identity_verifier
from campusnet.infrastructure.security.jwt_provider import JwtProvider
from campusnet.services.auth_service import AuthService
from campusnet.services.connection_gateway import ConnectionGateway
from campusnet.services.presence_tracker import PresenceTracker

import campusnet.infrastructure.database.models  # noqa: F401

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    identity_verifier: IdentityVerifier | None = None,
    revocation_store: RevocationStore | None = None,
    rate_limiter: RateLimiter | None = None,
    async_mode: str | None = None,
) -> Flask:
    cfg = settings or default_settings
    configure_logging(cfg)
    configure_retry(cfg)

    # sem chave de assinatura não existe auth: falha no startup, nunca por request
    if not cfg.jwt_secret:
        raise ConfigError("JWT_SECRET is required.")

    app = Flask(__name__)
    configure_app(app, cfg)

    engine = init_engine(cfg.database_url, echo=cfg.db_echo)
    BaseModel.metadata.create_all(engine)

    api_prefix = cfg.api_prefix.rstrip("/")
    CORS(
        app,
        resources={rf"{api_prefix}/*": {"origins": cfg.cors_origins}},
        supports_credentials=True,
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "OPTIONS"],
    )

    jwt_provider = JwtProvider(cfg)
    store = revocation_store if revocation_store is not None else build_revocation_store(cfg)
    presence = PresenceTracker()
    presence_notifier = SocketIOPresenceNotifier(socketio)
    presence.set_listener(presence_notifier.notify_presence)

    container = Container(
        settings=cfg,
        jwt_provider=jwt_provider,
        revocation_store=store,
        identity_verifier=identity_verifier or build_identity_verifier(skip_identity_check=cfg.skip_identity_check),
        presence=presence,
        gateway=ConnectionGateway(
            auth_service=AuthService(jwt_provider=jwt_provider, revocation_store=store),
            presence=presence,
            handshake_timeout_seconds=cfg.handshake_timeout_seconds,
        ),
        message_notifier=SocketIOMessageNotifier(socketio),
        presence_notifier=presence_notifier,
        rate_limiter=rate_limiter if rate_limiter is not None else build_rate_limiter(cfg),
    )
    app.extensions[EXTENSION_KEY] = container

    register_rate_limit(app)
    register_routes(app, api_prefix=api_prefix)
    register_error_handlers(app, cfg)

    socketio.init_app(
        app,
        cors_allowed_origins=cfg.cors_origins,
        async_mode=async_mode,
        path=f"{api_prefix}/socket.io" if api_prefix else "socket.io",
    )
    register_socket_handlers(socketio, container)

    logger.info(
        "campusnet started (env=%s, revocation=%s)",
        cfg.environment,
        store.backend_name,
    )
    return app
