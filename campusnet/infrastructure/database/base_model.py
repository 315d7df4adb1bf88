# campusnet/infrastructure/database/base_model.py
from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase

# sqlite só faz autoincrement em INTEGER PRIMARY KEY
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


class BaseModel(DeclarativeBase):
    pass
