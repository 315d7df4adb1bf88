# campusnet/infrastructure/database/models/user_model.py

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from campusnet.infrastructure.database.base_model import BaseModel, BigIntPK


class UserModel(BaseModel):
    __tablename__ = "tbUsers"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)

    # identificador institucional (login no verificador externo)
    college_id: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    username: Mapped[str] = mapped_column(String(30), nullable=False)
    bio: Mapped[str] = mapped_column(Text, nullable=True)

    profile_pic: Mapped[str] = mapped_column(String(500), nullable=True)
    cover_pic: Mapped[str] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    last_login: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
