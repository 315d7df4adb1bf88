# campusnet/repositories/chat_repository.py

from datetime import datetime

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campusnet.core.base_repository import BaseRepository
from campusnet.core.retry import retry_read
from campusnet.infrastructure.database.models.chat_model import ChatModel
from campusnet.infrastructure.database.models.message_model import MessageModel


def normalize_pair(user_a: int, user_b: int) -> tuple[int, int]:
    a, b = int(user_a), int(user_b)
    return (a, b) if a < b else (b, a)


class ChatRepository(BaseRepository[ChatModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def _order_by_last_activity(self):
        # ORDER BY COALESCE(last_message_at, created_at) DESC, id DESC
        return (
            func.coalesce(ChatModel.last_message_at, ChatModel.created_at).desc(),
            ChatModel.id.desc(),
        )

    def get_by_id(self, chat_id: int) -> ChatModel | None:
        stmt = select(ChatModel).where(ChatModel.id == chat_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def get_by_pair(self, user_a: int, user_b: int) -> ChatModel | None:
        low, high = normalize_pair(user_a, user_b)
        stmt = select(ChatModel).where(ChatModel.user_low_id == low, ChatModel.user_high_id == high)
        return self._session.execute(stmt).scalar_one_or_none()

    def get_or_create_by_pair(self, user_a: int, user_b: int, *, now: datetime) -> tuple[ChatModel, bool]:
        """Retorna (chat, created). A unique (user_low_id, user_high_id) é o árbitro final."""
        existing = self.get_by_pair(user_a, user_b)
        if existing is not None:
            return existing, False

        low, high = normalize_pair(user_a, user_b)
        model = ChatModel(
            user_low_id=low,
            user_high_id=high,
            last_message_text="",
            last_message_at=None,
            created_at=now,
        )
        try:
            with self._session.begin_nested():
                self._session.add(model)
                self._session.flush()
        except IntegrityError:
            # outra requisição criou o mesmo par entre o select e o insert
            winner = self.get_by_pair(low, high)
            if winner is None:
                raise
            return winner, False
        return model, True

    @retry_read()
    def list_for_user(self, user_id: int) -> list[ChatModel]:
        stmt = (
            select(ChatModel)
            .where(or_(ChatModel.user_low_id == user_id, ChatModel.user_high_id == user_id))
            .order_by(*self._order_by_last_activity())
        )
        return list(self._session.execute(stmt).scalars().all())

    def partner_ids(self, user_id: int) -> set[int]:
        out: set[int] = set()
        for chat in self.list_for_user(user_id):
            out.add(chat.other_participant(user_id))
        return out

    @retry_read()
    def unread_counts(self, user_id: int) -> dict[int, int]:
        """
        Retorna um dict:
        {
            chat_id: unread_count
        }
        contando só mensagens endereçadas a user_id ainda não vistas.
        """
        stmt = (
            select(MessageModel.chat_id, func.count(MessageModel.id).label("unread_count"))
            .where(MessageModel.receiver_id == user_id, MessageModel.seen.is_(False))
            .group_by(MessageModel.chat_id)
        )
        rows = self._session.execute(stmt).all()
        return {int(row.chat_id): int(row.unread_count) for row in rows}

    def set_last_message(self, *, chat_id: int, text: str, at: datetime) -> bool:
        stmt = (
            update(ChatModel)
            .where(ChatModel.id == chat_id)
            .values(last_message_text=text, last_message_at=at, updated_at=at)
        )
        res = self._session.execute(stmt)
        return (res.rowcount or 0) > 0
