"""Core aggregation logic: fetching, parsing and the periodic scheduler."""

from gator.core.fetcher import FeedFetcher, create_fetcher
from gator.core.parser import FeedParser, RSSFeed, RSSItem
from gator.core.scheduler import (
    AggregatorStats,
    ClaimedFeed,
    FeedAggregator,
    ScrapeResult,
    create_aggregator,
)

__all__ = [
    "FeedFetcher",
    "create_fetcher",
    "FeedParser",
    "RSSFeed",
    "RSSItem",
    "FeedAggregator",
    "ClaimedFeed",
    "ScrapeResult",
    "AggregatorStats",
    "create_aggregator",
]
