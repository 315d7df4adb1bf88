# campusnet/api/routes/auth_routes.py
import logging

from flask import Blueprint, jsonify, make_response, request

from campusnet.api.middlewares.auth_middleware import auth_user_id, extract_token, require_auth
from campusnet.api.middlewares.rate_limit_middleware import throttle_login
from campusnet.api.schemas.user_schema import LoginRequest, ProfileResponse
from campusnet.core.container import current_container
from campusnet.core.exceptions import NotFoundError
from campusnet.infrastructure.database.session import db_session
from campusnet.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

bp_auth = Blueprint("auth", __name__)


def _profile(user) -> dict:
    return ProfileResponse.model_validate(user).model_dump(by_alias=True)


@bp_auth.post("/login")
def login():
    throttle_login()
    payload = LoginRequest.model_validate(request.get_json(force=True))
    container = current_container()

    with db_session() as session:
        result = container.auth_service.login(
            username=payload.username,
            password=payload.password,
            verifier=container.identity_verifier,
            users=UserRepository(session),
        )
        session.flush()
        profile = _profile(result.user)

    logger.info("User %s logged in", profile["id"])

    settings = container.settings
    resp = make_response(jsonify({"success": True, "token": result.token, "profile": profile}), 200)
    resp.set_cookie(
        settings.cookie_name,
        result.token,
        max_age=result.max_age_seconds,
        path="/",
        httponly=True,
        secure=settings.secure_cookies,
        samesite="None" if settings.secure_cookies else "Lax",
    )
    return resp


@bp_auth.post("/logout")
def logout():
    # sem @require_auth: logout com credencial já inválida continua sendo sucesso
    container = current_container()
    settings = container.settings

    token = extract_token(request, cookie_name=settings.cookie_name)
    revoked = container.auth_service.logout(token)
    if revoked:
        logger.info("Credential revoked on logout")

    resp = make_response(jsonify({"success": True}), 200)
    resp.delete_cookie(
        settings.cookie_name,
        path="/",
        httponly=True,
        secure=settings.secure_cookies,
        samesite="None" if settings.secure_cookies else "Lax",
    )
    return resp


@bp_auth.get("/me")
@require_auth
def me():
    with db_session() as session:
        user = UserRepository(session).get_by_id(auth_user_id())
        if user is None:
            # credencial válida de um usuário que não existe mais
            raise NotFoundError("User not found")
        profile = _profile(user)

    return jsonify({"success": True, "profile": profile}), 200

