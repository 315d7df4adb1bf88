# campusnet/infrastructure/database/models/message_model.py

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Index, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from campusnet.infrastructure.database.base_model import BaseModel, BigIntPK


class MessageModel(BaseModel):
    __tablename__ = "tbMessages"

    __table_args__ = (
        Index("ix_tbMessages_chat_created", "chat_id", "created_at", "id"),
        Index("ix_tbMessages_unread", "chat_id", "receiver_id", "seen"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)

    chat_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tbChats.id"), nullable=False
    )

    sender_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tbUsers.id"), nullable=False
    )
    receiver_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tbUsers.id"), nullable=False
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)

    # definido pela aplicação (monotônico por processo), não pelo banco
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # false -> true apenas
    seen: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
