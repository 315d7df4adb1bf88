# campusnet/core/interfaces/presence_notifier.py
from __future__ import annotations

from typing import Protocol


class PresenceNotifier(Protocol):
    def notify_presence(self, online_user_ids: list[int]) -> None:
        ...

    def notify_typing(self, *, from_user_id: int, to_user_id: int, chat_id: int) -> None:
        ...
