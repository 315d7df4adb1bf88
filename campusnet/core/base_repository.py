from typing import Generic, TypeVar

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from campusnet.core.exceptions import TransientStoreError

TModel = TypeVar("TModel")


class BaseRepository(Generic[TModel]):
    def __init__(self, session: Session) -> None:
        self._session = session

    def commit(self) -> None:
        # escrita não confirmada sobe pro chamador, nunca é descartada
        try:
            self._session.commit()
        except OperationalError as e:
            self._session.rollback()
            raise TransientStoreError("Could not persist changes, try again.") from e
        except SQLAlchemyError:
            self._session.rollback()
            raise

    def _recover_from_transient(self) -> None:
        self._session.rollback()
