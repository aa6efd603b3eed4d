"""
FeedFollow repository for database operations.
"""

from typing import Optional

from sqlalchemy import asc, select
from sqlalchemy.orm import Session, contains_eager

from gator.exceptions import NotFoundError
from gator.models import FeedFollowCreate, FeedFollowModel, FeedModel
from gator.storage.repositories.base import BaseRepository


class FeedFollowRepository(BaseRepository[FeedFollowModel, FeedFollowCreate]):
    """Repository for FeedFollow operations."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, FeedFollowModel)

    def conflict_message(self, data: FeedFollowCreate) -> str:
        return f"user {data.user_id} already follows feed {data.feed_id}"

    def follow(self, user_id: int, feed_id: int) -> FeedFollowModel:
        """Create a follow.

        Raises:
            ConflictError: If the user already follows the feed
        """
        return self.create(FeedFollowCreate(user_id=user_id, feed_id=feed_id))

    def get(self, user_id: int, feed_id: int) -> Optional[FeedFollowModel]:
        stmt = select(FeedFollowModel).where(
            FeedFollowModel.user_id == user_id,
            FeedFollowModel.feed_id == feed_id,
        )
        return self.session.scalars(stmt).first()

    def list_for_user(self, user_id: int) -> list[FeedFollowModel]:
        """List a user's follows with their feeds loaded, oldest first."""
        stmt = (
            select(FeedFollowModel)
            .join(FeedFollowModel.feed)
            .where(FeedFollowModel.user_id == user_id)
            .options(contains_eager(FeedFollowModel.feed))
            .order_by(asc(FeedFollowModel.created_at), asc(FeedFollowModel.id))
        )
        return list(self.session.scalars(stmt))

    def unfollow(self, user_id: int, feed_url: str) -> FeedModel:
        """Delete a user's follow of the feed with the given URL.

        Returns:
            The feed that was unfollowed

        Raises:
            NotFoundError: If the feed does not exist or is not followed
        """
        stmt = (
            select(FeedFollowModel)
            .join(FeedFollowModel.feed)
            .where(FeedFollowModel.user_id == user_id, FeedModel.url == feed_url)
            .options(contains_eager(FeedFollowModel.feed))
        )
        feed_follow = self.session.scalars(stmt).first()
        if feed_follow is None:
            raise NotFoundError(f"not following feed {feed_url!r}")

        feed = feed_follow.feed
        self.delete(feed_follow)
        return feed
