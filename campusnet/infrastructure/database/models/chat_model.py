# campusnet/infrastructure/database/models/chat_model.py

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from campusnet.infrastructure.database.base_model import BaseModel, BigIntPK


class ChatModel(BaseModel):
    __tablename__ = "tbChats"

    # par não ordenado normalizado: user_low < user_high
    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uq_tbChats_pair"),
        CheckConstraint("user_low_id < user_high_id", name="ck_tbChats_pair_order"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)

    user_low_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tbUsers.id"), nullable=False, index=True
    )
    user_high_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tbUsers.id"), nullable=False, index=True
    )

    last_message_text: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")

    # ✅ sem Optional/Union no Mapped (mesmo sendo nullable)
    last_message_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def participants(self) -> tuple[int, int]:
        return (int(self.user_low_id), int(self.user_high_id))

    def other_participant(self, user_id: int) -> int:
        low, high = self.participants
        return high if user_id == low else low

    def has_participant(self, user_id: int) -> bool:
        return user_id in self.participants
