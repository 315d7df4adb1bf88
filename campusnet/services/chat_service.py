# campusnet/services/chat_service.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from campusnet.api.schemas._datetime_serializer import serialize_dt as iso
from campusnet.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from campusnet.infrastructure.database.models.chat_model import ChatModel
from campusnet.infrastructure.database.models.user_model import UserModel
from campusnet.repositories.chat_repository import ChatRepository
from campusnet.repositories.user_repository import UserRepository


def pack_user_mini(u: UserModel | None) -> dict[str, Any] | None:
    if u is None:
        return None
    return {
        "id": int(u.id),
        "username": u.username,
        "collegeId": u.college_id,
        "profilePic": u.profile_pic or "",
    }


class ChatService:
    def __init__(self, *, chat_repo: ChatRepository, user_repo: UserRepository) -> None:
        self._chats = chat_repo
        self._users = user_repo

    def ensure_chat(self, *, user_id: int, with_user_id: int) -> tuple[ChatModel, bool]:
        if int(with_user_id) == int(user_id):
            raise ValidationError("Cannot open a chat with yourself")
        if self._users.get_by_id(int(with_user_id)) is None:
            raise NotFoundError("User not found")

        return self._chats.get_or_create_by_pair(
            user_id, with_user_id, now=datetime.now(timezone.utc)
        )

    def get_chat_for_participant(self, *, chat_id: int, user_id: int) -> ChatModel:
        chat = self._chats.get_by_id(chat_id)
        if chat is None:
            raise NotFoundError("Chat not found")
        if not chat.has_participant(int(user_id)):
            raise ForbiddenError("Not a participant of this chat")
        return chat

    def pack_chat(self, chat: ChatModel, *, unread: int | None = None, users: dict[int, UserModel] | None = None) -> dict[str, Any]:
        low, high = chat.participants
        payload: dict[str, Any] = {
            "chatId": int(chat.id),
            "participants": [low, high],
            "lastMessage": chat.last_message_text or "",
            "lastMessageAt": iso(chat.last_message_at or chat.created_at),
            "createdAt": iso(chat.created_at),
        }
        if users is not None:
            payload["participantProfiles"] = [pack_user_mini(users.get(low)), pack_user_mini(users.get(high))]
        if unread is not None:
            payload["unread"] = int(unread)
        return payload

    def list_chats(self, *, user_id: int) -> list[dict[str, Any]]:
        """Chats do usuário por atividade mais recente, com contagem de não lidas."""
        chats = self._chats.list_for_user(user_id)
        unread = self._chats.unread_counts(user_id)

        ids: set[int] = set()
        for c in chats:
            ids.update(c.participants)
        users = {int(u.id): u for u in self._users.list_by_ids(sorted(ids))}

        return [self.pack_chat(c, unread=unread.get(int(c.id), 0), users=users) for c in chats]

    def online_partners(self, *, user_id: int, online_ids: set[int]) -> list[UserModel]:
        partners = self._chats.partner_ids(user_id)
        return self._users.list_by_ids(sorted(partners & set(online_ids)))
