"""
Post data model: one item parsed from a feed.
"""

from datetime import datetime
from typing import Optional, TYPE_CHECKING

from pydantic import BaseModel, Field
from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gator.models.base import Base, utcnow

if TYPE_CHECKING:
    from gator.models.feed import FeedModel


class PostModel(Base):
    """SQLAlchemy ORM model for Post.

    ``url`` is globally unique; repeated fetches of the same item are rejected
    by the database.
    """

    __tablename__ = "posts"

    __table_args__ = (
        Index("ix_posts_feed_published", "feed_id", "published_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    feed_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("feeds.id", ondelete="CASCADE"), nullable=False, index=True
    )

    title: Mapped[str] = mapped_column(String(1000), nullable=False)
    url: Mapped[str] = mapped_column(String(2048), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    feed: Mapped["FeedModel"] = relationship("FeedModel", back_populates="posts")

    def __repr__(self) -> str:
        return f"<PostModel(id={self.id}, title='{self.title}', url='{self.url}')>"


class PostCreate(BaseModel):
    """Schema for creating a post."""

    feed_id: int
    title: str = Field(..., max_length=1000, description="Post title")
    url: str = Field(..., min_length=1, max_length=2048, description="Post URL")
    description: Optional[str] = Field(None, description="Post description")
    published_at: Optional[datetime] = Field(None, description="Publication date")
