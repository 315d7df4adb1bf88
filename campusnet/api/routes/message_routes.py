# campusnet/api/routes/message_routes.py
from flask import Blueprint, jsonify, request

from campusnet.api.middlewares.auth_middleware import auth_user_id, require_auth
from campusnet.api.routes._services import message_service
from campusnet.api.schemas.message_schema import ListMessagesQuery, SendMessageRequest
from campusnet.infrastructure.database.session import db_session
from campusnet.services.message_service import pack_message

bp_msg = Blueprint("messages", __name__)


@bp_msg.post("")
@require_auth
def send_message():
    payload = SendMessageRequest.model_validate(request.get_json(force=True))

    with db_session() as session:
        msg = message_service(session).send_message(
            chat_id=payload.chat_id,
            sender_id=auth_user_id(),
            receiver_id=payload.receiver,
            text=payload.text,
        )
        body = pack_message(msg)

    return jsonify({"success": True, "message": body}), 201


@bp_msg.get("/<int:chat_id>")
@require_auth
def list_messages(chat_id: int):
    query = ListMessagesQuery.model_validate(request.args.to_dict())

    with db_session() as session:
        items = message_service(session).list_messages(
            chat_id=chat_id,
            user_id=auth_user_id(),
            before=query.before,
            limit=query.limit,
        )
        messages = [pack_message(m) for m in items]

    return jsonify({"success": True, "messages": messages}), 200


@bp_msg.put("/<int:chat_id>/seen")
@require_auth
def mark_seen(chat_id: int):
    with db_session() as session:
        updated = message_service(session).mark_seen(chat_id=chat_id, user_id=auth_user_id())

    return jsonify({"success": True, "updated": updated}), 200
