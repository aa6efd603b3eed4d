"""
Post repository for database operations.
"""

from typing import Optional

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session, contains_eager

from gator.models import FeedFollowModel, FeedModel, PostCreate, PostModel
from gator.storage.repositories.base import BaseRepository


class PostRepository(BaseRepository[PostModel, PostCreate]):
    """Repository for Post operations.

    ``create`` raises ConflictError when a post with the same URL exists,
    which is how repeated fetches of a feed are deduplicated.
    """

    def __init__(self, session: Session) -> None:
        super().__init__(session, PostModel)

    def conflict_message(self, data: PostCreate) -> str:
        return f"post {data.url!r} already exists"

    def get_by_url(self, url: str) -> Optional[PostModel]:
        return self.session.scalars(select(PostModel).where(PostModel.url == url)).first()

    def count(self, feed_id: Optional[int] = None) -> int:
        stmt = select(func.count()).select_from(PostModel)
        if feed_id is not None:
            stmt = stmt.where(PostModel.feed_id == feed_id)
        return self.session.scalar(stmt) or 0

    def list_for_user(self, user_id: int, limit: int = 2) -> list[PostModel]:
        """List the newest posts from feeds a user follows.

        Posts without a publication date sort after dated ones.

        Args:
            user_id: Following user's ID
            limit: Maximum number of posts
        """
        stmt = (
            select(PostModel)
            .join(PostModel.feed)
            .join(FeedFollowModel, FeedFollowModel.feed_id == FeedModel.id)
            .where(FeedFollowModel.user_id == user_id)
            .options(contains_eager(PostModel.feed))
            .order_by(desc(PostModel.published_at).nulls_last(), desc(PostModel.id))
            .limit(limit)
        )
        return list(self.session.scalars(stmt))
