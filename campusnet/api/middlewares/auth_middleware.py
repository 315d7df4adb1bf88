from functools import wraps
from typing import Any, Callable, TypeVar

from flask import Request, g, request

from campusnet.core.container import current_container

F = TypeVar("F", bound=Callable[..., Any])


def extract_token(req: Request, *, cookie_name: str) -> str | None:
    # 1) Authorization: Bearer <token>
    auth = req.headers.get("Authorization", "")
    parts = auth.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]

    # 2) cookie HTTP-only espelhando o token
    token = req.cookies.get(cookie_name)
    if token:
        return token.strip()

    return None


def require_auth(fn: F) -> F:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        container = current_container()
        token = extract_token(request, cookie_name=container.settings.cookie_name)

        # Missing / Invalid / Revoked sobem como UnauthorizedError (401)
        g.auth = container.auth_service.authenticate(token)
        g.token = token

        return fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def auth_user_id() -> int:
    return int(g.auth["sub"])
