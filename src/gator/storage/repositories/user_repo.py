"""
User repository for database operations.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from gator.exceptions import NotFoundError
from gator.models import UserCreate, UserModel
from gator.storage.repositories.base import BaseRepository


class UserRepository(BaseRepository[UserModel, UserCreate]):
    """Repository for User operations."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, UserModel)

    def conflict_message(self, data: UserCreate) -> str:
        return f"user {data.name!r} already exists"

    def get_by_name(self, name: str) -> Optional[UserModel]:
        return self.session.scalars(select(UserModel).where(UserModel.name == name)).first()

    def require_by_name(self, name: str) -> UserModel:
        """Get a user by name.

        Raises:
            NotFoundError: If no user has that name
        """
        user = self.get_by_name(name)
        if user is None:
            raise NotFoundError(f"user {name!r} does not exist")
        return user

    def list(self, **kwargs) -> list[UserModel]:
        kwargs.setdefault("order_by", "name")
        return super().list(**kwargs)
