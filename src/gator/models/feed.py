"""
Feed data model for RSS subscription sources.
"""

from datetime import datetime
from typing import Optional, TYPE_CHECKING

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gator.models.base import Base, utcnow

if TYPE_CHECKING:
    from gator.models.feed_follow import FeedFollowModel
    from gator.models.post import PostModel
    from gator.models.user import UserModel


class FeedModel(Base):
    """SQLAlchemy ORM model for Feed."""

    __tablename__ = "feeds"

    # Serves the least-recently-fetched selection
    __table_args__ = (
        Index("ix_feeds_last_fetched_created", "last_fetched_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    url: Mapped[str] = mapped_column(String(2048), unique=True, nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )
    last_fetched_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    user: Mapped["UserModel"] = relationship("UserModel", back_populates="feeds")

    follows: Mapped[list["FeedFollowModel"]] = relationship(
        "FeedFollowModel",
        back_populates="feed",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    posts: Mapped[list["PostModel"]] = relationship(
        "PostModel",
        back_populates="feed",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<FeedModel(id={self.id}, url='{self.url}', name='{self.name}')>"


class FeedCreate(BaseModel):
    """Schema for creating a new feed."""

    name: str = Field(..., min_length=1, max_length=500, description="Feed name")
    url: str = Field(..., min_length=1, max_length=2048, description="Feed URL")
    user_id: int = Field(..., description="Owning user ID")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Require an absolute http(s) URL."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Unsupported feed URL: {v!r}")
        return v
