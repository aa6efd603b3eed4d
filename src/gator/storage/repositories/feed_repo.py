"""
Feed repository for database operations.

Besides CRUD, this is where the aggregator selects and claims the next feed
to fetch.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import asc, select, update
from sqlalchemy.orm import Session, joinedload

from gator.exceptions import NotFoundError
from gator.logger import get_logger
from gator.models import FeedCreate, FeedModel, utcnow
from gator.storage.repositories.base import BaseRepository

logger = get_logger(__name__)

# Sentinel for "do not check the previous last_fetched_at"
_ANY: Any = object()


class FeedRepository(BaseRepository[FeedModel, FeedCreate]):
    """Repository for Feed operations."""

    def __init__(self, session: Session) -> None:
        """Initialize repository with a database session.

        Args:
            session: SQLAlchemy Session instance
        """
        super().__init__(session, FeedModel)

    def conflict_message(self, data: FeedCreate) -> str:
        return f"feed {data.url!r} already exists"

    def get_by_url(self, url: str) -> Optional[FeedModel]:
        """Get a feed by URL.

        Args:
            url: Feed URL

        Returns:
            FeedModel instance or None
        """
        return self.session.scalars(select(FeedModel).where(FeedModel.url == url)).first()

    def require_by_url(self, url: str) -> FeedModel:
        """Get a feed by URL.

        Raises:
            NotFoundError: If no feed has that URL
        """
        feed = self.get_by_url(url)
        if feed is None:
            raise NotFoundError(f"feed {url!r} does not exist")
        return feed

    def list_with_owner(self) -> list[FeedModel]:
        """List all feeds with their owning user loaded."""
        stmt = (
            select(FeedModel)
            .options(joinedload(FeedModel.user))
            .order_by(asc(FeedModel.created_at), asc(FeedModel.id))
        )
        return list(self.session.scalars(stmt))

    def get_next_feed_to_fetch(self) -> Optional[FeedModel]:
        """Get the feed that was fetched least recently.

        Never-fetched feeds (NULL last_fetched_at) come first; ties are broken
        by creation order.

        Returns:
            FeedModel instance or None if there are no feeds
        """
        stmt = (
            select(FeedModel)
            .order_by(
                asc(FeedModel.last_fetched_at).nulls_first(),
                asc(FeedModel.created_at),
                asc(FeedModel.id),
            )
            .limit(1)
        )
        return self.session.scalars(stmt).first()

    def mark_fetched(
        self,
        feed_id: int,
        fetched_at: Optional[datetime] = None,
        only_if_last_fetched_at: Any = _ANY,
    ) -> Optional[FeedModel]:
        """Set a feed's last_fetched_at.

        With ``only_if_last_fetched_at`` the update is a compare-and-set: it
        only applies while last_fetched_at still holds that value (None
        meaning never fetched).

        Args:
            feed_id: Feed ID
            fetched_at: Timestamp to store (defaults to now, UTC)
            only_if_last_fetched_at: Expected current value

        Returns:
            Updated FeedModel, or None if the compare-and-set lost

        Raises:
            NotFoundError: If the feed does not exist
        """
        fetched_at = fetched_at or utcnow()

        stmt = update(FeedModel).where(FeedModel.id == feed_id)
        if only_if_last_fetched_at is not _ANY:
            if only_if_last_fetched_at is None:
                stmt = stmt.where(FeedModel.last_fetched_at.is_(None))
            else:
                stmt = stmt.where(FeedModel.last_fetched_at == only_if_last_fetched_at)
        stmt = stmt.values(last_fetched_at=fetched_at, updated_at=fetched_at)

        result = self.session.execute(stmt.execution_options(synchronize_session=False))

        feed = self.session.get(FeedModel, feed_id, populate_existing=True)
        if feed is None:
            raise NotFoundError(f"feed {feed_id} does not exist")

        if result.rowcount != 1:
            return None
        return feed

    def claim_next_feed(
        self, fetched_at: Optional[datetime] = None, max_attempts: int = 5
    ) -> Optional[FeedModel]:
        """Select the least recently fetched feed and mark it fetched.

        The mark is a compare-and-set against the value that was read, so two
        workers can never claim the same feed in the same round. A worker that
        loses the race selects again.

        Args:
            fetched_at: Claim timestamp (defaults to now, UTC)
            max_attempts: Selection attempts before giving up

        Returns:
            The claimed FeedModel, or None if there are no feeds or every
            attempt lost a race. The caller must commit to publish the claim.
        """
        for attempt in range(max_attempts):
            feed = self.get_next_feed_to_fetch()
            if feed is None:
                return None

            claimed = self.mark_fetched(
                feed.id,
                fetched_at=fetched_at,
                only_if_last_fetched_at=feed.last_fetched_at,
            )
            if claimed is not None:
                return claimed

            logger.debug(f"Lost claim race for feed {feed.id} (attempt {attempt + 1})")

        logger.warning(f"Could not claim a feed after {max_attempts} attempts")
        return None
