# campusnet/api/middlewares/rate_limit_middleware.py
import logging

from flask import Flask, request

from campusnet.core.container import current_container
from campusnet.core.exceptions import RateLimitedError

logger = logging.getLogger(__name__)

LOGIN_MESSAGE = "Too many attempts. Try again later."


def client_key() -> str:
    return request.remote_addr or "unknown"


def enforce_rate_limit(bucket: str, *, limit: int, window_seconds: int, message: str = "Too many requests") -> None:
    """Conta a requisição atual no bucket; estoura => RateLimitedError (429)."""
    if limit <= 0:
        return

    limiter = current_container().rate_limiter
    result = limiter.hit(f"{bucket}:{client_key()}", limit=limit, window_seconds=window_seconds)
    if not result.allowed:
        logger.info("Rate limit %s exceeded by %s", bucket, client_key())
        raise RateLimitedError(message, retry_after=result.retry_after_seconds)


def throttle_login() -> None:
    settings = current_container().settings
    enforce_rate_limit(
        "login",
        limit=settings.login_rate_limit_attempts,
        window_seconds=settings.login_rate_limit_window_seconds,
        message=LOGIN_MESSAGE,
    )


def register_rate_limit(app: Flask) -> None:
    """Limite global por cliente em todas as rotas HTTP (preflight CORS fica de fora)."""

    @app.before_request
    def _global_rate_limit():
        if request.method == "OPTIONS":
            return None
        settings = current_container().settings
        enforce_rate_limit(
            "global",
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
        return None
