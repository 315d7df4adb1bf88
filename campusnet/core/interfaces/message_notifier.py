# campusnet/core/interfaces/message_notifier.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class MessageCreatedEvent:
    chat_id: int
    sender_id: int
    receiver_id: int

    # objeto completo (schema-like, JSON-safe)
    message: dict[str, Any]


@dataclass(frozen=True)
class ChatUpdatedEvent:
    chat_id: int
    participant_ids: tuple[int, int]
    last_message: str
    at_iso: str


class MessageNotifier(Protocol):
    def notify_message_created(self, event: MessageCreatedEvent) -> None:
        ...

    def notify_chat_updated(self, event: ChatUpdatedEvent) -> None:
        ...
