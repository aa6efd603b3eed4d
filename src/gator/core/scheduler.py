"""
Aggregation scheduler.

Uses APScheduler to run an aggregation tick on a fixed interval. Each tick
claims the least recently fetched feed, fetches it, and stores its items as
posts. The claim is committed before the network call so that a slow fetch
is never picked up a second time by another worker.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from apscheduler.events import EVENT_JOB_MAX_INSTANCES, JobSubmissionEvent
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from gator.config import get_config
from gator.core.fetcher import FeedFetcher, create_fetcher
from gator.core.parser import RSSItem
from gator.exceptions import ConflictError, FetchError
from gator.logger import get_logger
from gator.models import PostCreate, utcnow
from gator.storage.database import DatabaseManager
from gator.storage.repositories.feed_repo import FeedRepository
from gator.storage.repositories.post_repo import PostRepository

logger = get_logger(__name__)

AGGREGATE_JOB_ID = "aggregate_feeds"


@dataclass
class ClaimedFeed:
    """A feed reserved for one tick, detached from its session."""

    id: int
    name: str
    url: str
    claimed_at: datetime


@dataclass
class ScrapeResult:
    """Outcome of one feed's fetch and persist."""

    feed_id: int
    feed_name: str
    feed_url: str
    success: bool
    items_count: int = 0
    posts_created: int = 0
    duplicates: int = 0
    failed_inserts: int = 0
    skipped_items: int = 0
    error: Optional[str] = None

    def __post_init__(self):
        if self.success and self.error:
            raise ValueError("Successful scrape cannot have an error")
        if not self.success and not self.error:
            self.error = "Unknown error"


@dataclass
class AggregatorStats:
    """Counters across all ticks."""

    total_ticks: int = 0
    idle_ticks: int = 0
    skipped_ticks: int = 0
    successful_fetches: int = 0
    failed_fetches: int = 0
    posts_created: int = 0
    duplicates_skipped: int = 0
    failed_inserts: int = 0
    last_tick_time: Optional[datetime] = None

    def add_result(self, result: ScrapeResult) -> None:
        if result.success:
            self.successful_fetches += 1
        else:
            self.failed_fetches += 1
        self.posts_created += result.posts_created
        self.duplicates_skipped += result.duplicates
        self.failed_inserts += result.failed_inserts


class FeedAggregator:
    """Periodically fetches the least recently fetched feed."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        interval_seconds: Optional[float] = None,
        fetcher: Optional[FeedFetcher] = None,
        max_workers: Optional[int] = None,
        blocking: bool = True,
    ):
        """Initialize the aggregator.

        Args:
            db_manager: Database manager that hands out a session per step
            interval_seconds: Seconds between ticks (default from config)
            fetcher: Feed fetcher (default built from config)
            max_workers: Ticks allowed to run at once (default from config)
            blocking: Run the scheduler in the foreground (CLI) or in a
                background thread
        """
        config = get_config()

        self.db_manager = db_manager
        self.interval_seconds = interval_seconds or config.scheduler.default_interval_seconds
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.fetcher = fetcher or create_fetcher()
        self.max_workers = max_workers or config.scheduler.max_workers
        self.misfire_grace_time = config.scheduler.misfire_grace_time

        scheduler_class = BlockingScheduler if blocking else BackgroundScheduler
        self.scheduler = scheduler_class(
            executors={"default": ThreadPoolExecutor(max_workers=self.max_workers)},
            timezone=config.scheduler.timezone,
        )
        self.scheduler.add_listener(self._on_job_max_instances, EVENT_JOB_MAX_INSTANCES)

        self.stats = AggregatorStats()
        self._stats_lock = threading.Lock()

    def start(self) -> None:
        """Start ticking. The first tick runs immediately.

        With a blocking scheduler this call returns only after stop() or an
        interrupt.
        """
        if self.scheduler.running:
            logger.warning("Aggregator is already running")
            return

        self.scheduler.add_job(
            func=self.tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=AGGREGATE_JOB_ID,
            name="Aggregate feeds",
            max_instances=self.max_workers,
            coalesce=True,
            misfire_grace_time=self.misfire_grace_time,
            next_run_time=datetime.now(timezone.utc),
            replace_existing=True,
        )

        logger.info(
            f"Aggregator started: every {self.interval_seconds:g}s "
            f"with {self.max_workers} worker(s)"
        )
        self.scheduler.start()

    def run_forever(self) -> None:
        """Start a blocking aggregator and shut down cleanly on Ctrl-C."""
        try:
            self.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("Interrupted, shutting down")
        finally:
            self.stop(wait=False)

    def stop(self, wait: bool = True) -> None:
        """Stop the aggregator.

        Args:
            wait: Whether to wait for running ticks to complete
        """
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
            logger.info(
                f"Aggregator stopped after {self.stats.total_ticks} ticks, "
                f"{self.stats.posts_created} new posts"
            )

    def is_running(self) -> bool:
        return self.scheduler.running

    def tick(self) -> Optional[ScrapeResult]:
        """Run one aggregation cycle.

        Never raises: every failure is logged so the schedule keeps going.

        Returns:
            ScrapeResult for the claimed feed, or None if there was nothing to
            fetch or the cycle failed before a feed was claimed
        """
        with self._stats_lock:
            self.stats.total_ticks += 1
            self.stats.last_tick_time = utcnow()

        try:
            claimed = self.claim_next_feed()
        except Exception as e:
            logger.exception(f"Could not claim a feed: {e}")
            return None

        if claimed is None:
            logger.debug("No feeds to fetch")
            with self._stats_lock:
                self.stats.idle_ticks += 1
            return None

        try:
            result = self.scrape_feed(claimed)
        except Exception as e:
            logger.exception(f"Unexpected error scraping {claimed.url}: {e}")
            result = ScrapeResult(
                feed_id=claimed.id,
                feed_name=claimed.name,
                feed_url=claimed.url,
                success=False,
                error=f"Unexpected error: {type(e).__name__}: {e}",
            )

        with self._stats_lock:
            self.stats.add_result(result)

        return result

    def claim_next_feed(self) -> Optional[ClaimedFeed]:
        """Claim the least recently fetched feed and commit the claim.

        Returns:
            The claimed feed, or None if there are no feeds
        """
        with self.db_manager.session() as session:
            feed = FeedRepository(session).claim_next_feed()
            if feed is None:
                return None
            claimed = ClaimedFeed(
                id=feed.id,
                name=feed.name,
                url=feed.url,
                claimed_at=feed.last_fetched_at,
            )

        logger.debug(f"Claimed feed {claimed.name} ({claimed.url})")
        return claimed

    def scrape_feed(self, feed: ClaimedFeed) -> ScrapeResult:
        """Fetch a claimed feed and store its items.

        A fetch error is logged and reported in the result.
        """
        try:
            rss = self.fetcher.fetch(feed.url)
        except FetchError as e:
            logger.error(f"Failed to fetch {feed.name} ({feed.url}): {e}")
            return ScrapeResult(
                feed_id=feed.id,
                feed_name=feed.name,
                feed_url=feed.url,
                success=False,
                error=str(e),
            )

        result = ScrapeResult(
            feed_id=feed.id,
            feed_name=feed.name,
            feed_url=feed.url,
            success=True,
            items_count=len(rss.items),
        )
        self.save_posts(feed.id, rss.items, result)

        logger.info(
            f"Feed {feed.name}: {result.posts_created} new posts, "
            f"{result.duplicates} already known"
            + (f", {result.failed_inserts} failed" if result.failed_inserts else "")
        )
        return result

    def save_posts(self, feed_id: int, items: list[RSSItem], result: ScrapeResult) -> None:
        """Insert one post per item, each in its own transaction.

        A duplicate URL is expected and only counted. Any other insert error
        is logged and the remaining items are still processed.
        """
        with self.db_manager.session() as session:
            repo = PostRepository(session)

            for item in items:
                if not item.link:
                    logger.warning(f"Skipping item without link in feed {feed_id}: {item.title!r}")
                    result.skipped_items += 1
                    continue

                try:
                    repo.create(
                        PostCreate(
                            feed_id=feed_id,
                            title=item.title,
                            url=item.link,
                            description=item.description or None,
                            published_at=item.published_at,
                        )
                    )
                    session.commit()
                    result.posts_created += 1

                except ConflictError:
                    session.rollback()
                    result.duplicates += 1
                    logger.debug(f"Post already known: {item.link}")

                except (SQLAlchemyError, ValidationError) as e:
                    session.rollback()
                    result.failed_inserts += 1
                    logger.error(f"Failed to save post {item.link}: {e}")

    def _on_job_max_instances(self, event: JobSubmissionEvent) -> None:
        """Count ticks dropped because every worker was still busy."""
        with self._stats_lock:
            self.stats.skipped_ticks += 1
        logger.warning("Previous aggregation tick still running, skipping this one")


def create_aggregator(
    db_manager: DatabaseManager,
    interval_seconds: Optional[float] = None,
    max_workers: Optional[int] = None,
) -> FeedAggregator:
    """Create a blocking FeedAggregator configured from settings."""
    return FeedAggregator(
        db_manager=db_manager,
        interval_seconds=interval_seconds,
        max_workers=max_workers,
    )
