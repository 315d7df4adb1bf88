# campusnet/api/routes/chat_routes.py
from flask import Blueprint, jsonify, request

from campusnet.api.middlewares.auth_middleware import auth_user_id, require_auth
from campusnet.api.routes._services import chat_service
from campusnet.api.schemas.chat_schema import EnsureChatRequest
from campusnet.api.schemas.user_schema import UserMiniResponse
from campusnet.core.container import current_container
from campusnet.infrastructure.database.session import db_session

bp_chats = Blueprint("chats", __name__)


@bp_chats.post("/ensure")
@require_auth
def ensure_chat():
    payload = EnsureChatRequest.model_validate(request.get_json(force=True))
    user_id = auth_user_id()

    with db_session() as session:
        svc = chat_service(session)
        chat, created = svc.ensure_chat(user_id=user_id, with_user_id=payload.with_user_id)
        body = svc.pack_chat(chat)

    return jsonify({"success": True, "chat": body}), (201 if created else 200)


@bp_chats.get("")
@require_auth
def list_chats():
    with db_session() as session:
        chats = chat_service(session).list_chats(user_id=auth_user_id())

    return jsonify({"success": True, "chats": chats}), 200


@bp_chats.get("/online")
@require_auth
def online_partners():
    online = current_container().presence.online_users()

    with db_session() as session:
        users = chat_service(session).online_partners(user_id=auth_user_id(), online_ids=online)
        items = [UserMiniResponse.model_validate(u).model_dump(by_alias=True) for u in users]

    return jsonify({"success": True, "online": items}), 200
