# campusnet/services/message_service.py
from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any

from campusnet.core.exceptions import ValidationError
from campusnet.core.interfaces.message_notifier import (
    ChatUpdatedEvent,
    MessageCreatedEvent,
    MessageNotifier,
)
from campusnet.infrastructure.database.models.message_model import MessageModel
from campusnet.repositories.chat_repository import ChatRepository
from campusnet.repositories.message_repository import MessageRepository
from campusnet.services.chat_service import ChatService, iso

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

# persistência global sequencial: uma mensagem por vez, na ordem de chegada
_send_lock = threading.Lock()


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def pack_message(msg: MessageModel) -> dict[str, Any]:
    # payload 100% JSON-safe (mesmo formato no REST e no socket)
    return {
        "messageId": int(msg.id),
        "chatId": int(msg.chat_id),
        "senderId": int(msg.sender_id),
        "receiverId": int(msg.receiver_id),
        "text": msg.text,
        "createdAt": iso(msg.created_at),
        "seen": bool(msg.seen),
    }


def clamp_limit(limit: int | None) -> int:
    if limit is None or limit <= 0:
        return DEFAULT_PAGE_SIZE
    return min(int(limit), MAX_PAGE_SIZE)


class MessageService:
    def __init__(
        self,
        *,
        chat_service: ChatService,
        chat_repo: ChatRepository,
        msg_repo: MessageRepository,
        notifier: MessageNotifier,
    ) -> None:
        self._chat_service = chat_service
        self._chat_repo = chat_repo
        self._msg_repo = msg_repo
        self._notifier = notifier

    def _next_created_at(self, chat_id: int) -> datetime:
        # estritamente crescente dentro do chat (paginação por `before` sem buraco)
        now = datetime.now(timezone.utc)
        latest = self._msg_repo.latest_created_at(chat_id=chat_id)
        if latest is not None:
            floor = _as_utc(latest) + timedelta(microseconds=1)
            if now < floor:
                now = floor
        return now

    def send_message(self, *, chat_id: int, sender_id: int, receiver_id: int, text: str | None) -> MessageModel:
        """
        Persiste a mensagem e o resumo do chat numa única transação e só
        depois emite `message:new` e `chat:updated` para os dois participantes.
        """
        clean = (text or "").strip()
        if not clean:
            raise ValidationError("Message text cannot be empty")

        chat = self._chat_service.get_chat_for_participant(chat_id=chat_id, user_id=sender_id)
        if int(receiver_id) != chat.other_participant(int(sender_id)):
            raise ValidationError("Receiver is not the other participant of this chat")

        with _send_lock:
            created_at = self._next_created_at(int(chat.id))
            msg = self._msg_repo.add(
                MessageModel(
                    chat_id=int(chat.id),
                    sender_id=int(sender_id),
                    receiver_id=int(receiver_id),
                    text=clean,
                    created_at=created_at,
                    seen=False,
                )
            )
            self._chat_repo.set_last_message(chat_id=int(chat.id), text=clean, at=created_at)

            # TransientStoreError sobe: nada é emitido sem estar gravado
            self._msg_repo.commit()

            payload = pack_message(msg)
            self._notifier.notify_message_created(
                MessageCreatedEvent(
                    chat_id=int(chat.id),
                    sender_id=int(sender_id),
                    receiver_id=int(receiver_id),
                    message=payload,
                )
            )
            self._notifier.notify_chat_updated(
                ChatUpdatedEvent(
                    chat_id=int(chat.id),
                    participant_ids=chat.participants,
                    last_message=clean,
                    at_iso=payload["createdAt"],
                )
            )

        logger.debug("message %s persisted in chat %s", msg.id, chat.id)
        return msg

    def list_messages(
        self,
        *,
        chat_id: int,
        user_id: int,
        before: datetime | None = None,
        limit: int | None = DEFAULT_PAGE_SIZE,
    ) -> list[MessageModel]:
        self._chat_service.get_chat_for_participant(chat_id=chat_id, user_id=user_id)
        return self._msg_repo.list_page(
            chat_id=chat_id,
            before=_as_utc(before) if before is not None else None,
            limit=clamp_limit(limit),
        )

    def mark_seen(self, *, chat_id: int, user_id: int) -> int:
        """Marca como vistas as mensagens endereçadas a user_id; idempotente."""
        self._chat_service.get_chat_for_participant(chat_id=chat_id, user_id=user_id)
        updated = self._msg_repo.mark_seen(chat_id=chat_id, receiver_id=user_id)
        self._msg_repo.commit()
        return updated
