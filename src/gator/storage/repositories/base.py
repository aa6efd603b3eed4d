"""
Generic repository with the CRUD operations shared by all models.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel
from sqlalchemy import asc, delete, desc, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gator.exceptions import ConflictError
from gator.models import Base

ModelT = TypeVar("ModelT", bound=Base)
CreateT = TypeVar("CreateT", bound=BaseModel)


def is_unique_violation(error: IntegrityError) -> bool:
    """Check whether an IntegrityError comes from a unique constraint.

    Foreign key and NOT NULL violations are also IntegrityErrors but are not
    conflicts.
    """
    orig = error.orig
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code is not None:
        return code == "23505"
    message = str(orig)
    return "UNIQUE constraint failed" in message or "duplicate key" in message


class BaseRepository(Generic[ModelT, CreateT]):
    """Repository base class.

    Subclasses pass their ORM model class and may override ``conflict_message``
    to describe unique key violations.
    """

    def __init__(self, session: Session, model: type[ModelT]) -> None:
        """Initialize repository.

        Args:
            session: SQLAlchemy Session instance
            model: ORM model class managed by this repository
        """
        self.session = session
        self.model = model

    def conflict_message(self, data: CreateT) -> str:
        return f"{self.model.__tablename__} record already exists"

    def create(self, data: CreateT) -> ModelT:
        """Create a new record.

        Args:
            data: Pydantic creation schema

        Returns:
            Created model instance

        Raises:
            ConflictError: If a unique constraint is violated. The session
                must be rolled back before it is used again.
        """
        instance = self.model(**data.model_dump())
        self.session.add(instance)
        try:
            self.session.flush()
        except IntegrityError as e:
            if is_unique_violation(e):
                raise ConflictError(self.conflict_message(data)) from e
            raise
        self.session.refresh(instance)
        return instance

    def get_by_id(self, id: int) -> Optional[ModelT]:
        return self.session.get(self.model, id)

    def list(
        self,
        limit: Optional[int] = None,
        offset: int = 0,
        order_by: str = "created_at",
        order_desc: bool = False,
    ) -> list[ModelT]:
        """List records.

        Args:
            limit: Maximum number of results (None for all)
            offset: Number of results to skip
            order_by: Column to order by
            order_desc: Sort in descending order
        """
        column = getattr(self.model, order_by)
        stmt = (
            select(self.model)
            .order_by(desc(column) if order_desc else asc(column), asc(self.model.id))
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.scalars(stmt))

    def count(self) -> int:
        return self.session.scalar(select(func.count()).select_from(self.model)) or 0

    def delete(self, instance: ModelT) -> None:
        self.session.delete(instance)
        self.session.flush()

    def delete_all(self) -> int:
        """Delete every record of this model.

        Returns:
            Number of deleted rows
        """
        result = self.session.execute(delete(self.model))
        self.session.flush()
        return result.rowcount
