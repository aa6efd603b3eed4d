"""
FeedFollow data model: a user's subscription to a feed.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel
from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gator.models.base import Base, utcnow

if TYPE_CHECKING:
    from gator.models.feed import FeedModel
    from gator.models.user import UserModel


class FeedFollowModel(Base):
    """SQLAlchemy ORM model for FeedFollow."""

    __tablename__ = "feed_follows"

    __table_args__ = (
        UniqueConstraint("user_id", "feed_id", name="uq_feed_follows_user_feed"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    feed_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("feeds.id", ondelete="CASCADE"), nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    user: Mapped["UserModel"] = relationship("UserModel", back_populates="follows")
    feed: Mapped["FeedModel"] = relationship("FeedModel", back_populates="follows")

    def __repr__(self) -> str:
        return f"<FeedFollowModel(id={self.id}, user_id={self.user_id}, feed_id={self.feed_id})>"


class FeedFollowCreate(BaseModel):
    """Schema for creating a feed follow."""

    user_id: int
    feed_id: int
