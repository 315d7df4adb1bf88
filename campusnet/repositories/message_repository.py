# campusnet/repositories/message_repository.py

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from campusnet.core.base_repository import BaseRepository
from campusnet.core.retry import retry_read
from campusnet.infrastructure.database.models.message_model import MessageModel


class MessageRepository(BaseRepository[MessageModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def add(self, model: MessageModel) -> MessageModel:
        self._session.add(model)
        self._session.flush()
        return model

    def latest_created_at(self, *, chat_id: int) -> datetime | None:
        stmt = (
            select(MessageModel.created_at)
            .where(MessageModel.chat_id == chat_id)
            .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
            .limit(1)
        )
        return self._session.execute(stmt).scalar_one_or_none()

    @retry_read()
    def list_page(self, *, chat_id: int, before: datetime | None, limit: int) -> list[MessageModel]:
        # pega os `limit` mais recentes (desc) e devolve em ordem ascendente
        stmt = select(MessageModel).where(MessageModel.chat_id == chat_id)
        if before is not None:
            stmt = stmt.where(MessageModel.created_at < before)
        stmt = stmt.order_by(MessageModel.created_at.desc(), MessageModel.id.desc()).limit(limit)

        rows = list(self._session.execute(stmt).scalars().all())
        rows.reverse()
        return rows

    def mark_seen(self, *, chat_id: int, receiver_id: int) -> int:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.chat_id == chat_id,
                MessageModel.receiver_id == receiver_id,
                MessageModel.seen.is_(False),
            )
            .values(seen=True)
            .execution_options(synchronize_session=False)
        )
        res = self._session.execute(stmt)
        return int(res.rowcount or 0)
