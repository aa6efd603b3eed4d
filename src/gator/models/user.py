"""
User data model.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gator.models.base import Base, utcnow

if TYPE_CHECKING:
    from gator.models.feed import FeedModel
    from gator.models.feed_follow import FeedFollowModel


class UserModel(Base):
    """SQLAlchemy ORM model for User."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    feeds: Mapped[list["FeedModel"]] = relationship(
        "FeedModel",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    follows: Mapped[list["FeedFollowModel"]] = relationship(
        "FeedFollowModel",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, name='{self.name}')>"


class UserCreate(BaseModel):
    """Schema for creating a new user."""

    name: str = Field(..., min_length=1, max_length=255, description="Unique user name")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("User name must not be blank")
        return v
