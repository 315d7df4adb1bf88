# campusnet/repositories/user_repository.py

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campusnet.core.base_repository import BaseRepository
from campusnet.infrastructure.database.models.user_model import UserModel


class UserRepository(BaseRepository[UserModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get_by_id(self, user_id: int) -> UserModel | None:
        stmt = select(UserModel).where(UserModel.id == user_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def get_by_college_id(self, college_id: str) -> UserModel | None:
        stmt = select(UserModel).where(UserModel.college_id == college_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def list_by_ids(self, user_ids: list[int]) -> list[UserModel]:
        if not user_ids:
            return []
        stmt = select(UserModel).where(UserModel.id.in_(user_ids)).order_by(UserModel.id.asc())
        return list(self._session.execute(stmt).scalars().all())

    def add(self, model: UserModel) -> UserModel:
        self._session.add(model)
        self._session.flush()
        return model

    def get_or_create_by_college_id(self, college_id: str, *, defaults: dict) -> UserModel:
        existing = self.get_by_college_id(college_id)
        if existing is not None:
            return existing

        model = UserModel(college_id=college_id, **defaults)
        try:
            with self._session.begin_nested():
                self.add(model)
        except IntegrityError:
            # login concorrente do mesmo aluno
            winner = self.get_by_college_id(college_id)
            if winner is None:
                raise
            return winner
        return model
