"""
RSS feed fetcher.

Downloads a feed over HTTP with a bounded timeout and parses it. Every
failure surfaces as a FetchError subclass; there are no retries, the next
aggregation tick is the retry.
"""

import time
from typing import Optional

import httpx

from gator.config import get_config
from gator.core.parser import FeedParser, RSSFeed
from gator.exceptions import NetworkError
from gator.logger import get_logger

logger = get_logger(__name__)


class FeedFetcher:
    """HTTP fetcher for RSS feeds."""

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        user_agent: Optional[str] = None,
        parser: Optional[FeedParser] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize feed fetcher.

        Args:
            timeout_seconds: Request timeout in seconds
            user_agent: User-Agent header for HTTP requests
            parser: Parser for response bodies
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        config = get_config()

        self.timeout_seconds = timeout_seconds or config.fetcher.timeout_seconds
        self.user_agent = user_agent or config.fetcher.user_agent
        self.follow_redirects = config.fetcher.follow_redirects
        self.max_redirects = config.fetcher.max_redirects
        self.parser = parser or FeedParser()
        self.transport = transport

    def fetch(self, url: str) -> RSSFeed:
        """Fetch and parse a feed.

        Args:
            url: Feed URL

        Returns:
            Parsed RSSFeed

        Raises:
            NetworkError: On connection failure, timeout or error status
            ParseError: If the body is not a well-formed feed
        """
        start_time = time.time()

        content = self._fetch_http(url)
        feed = self.parser.parse(content, url=url)

        logger.info(
            f"Fetched {len(feed.items)} items from {feed.title or url} "
            f"in {time.time() - start_time:.2f}s"
        )
        return feed

    def _fetch_http(self, url: str) -> bytes:
        """GET a URL and return the full response body.

        Raises:
            NetworkError: On any HTTP-level failure
        """
        headers = {"User-Agent": self.user_agent}

        try:
            with httpx.Client(
                timeout=self.timeout_seconds,
                follow_redirects=self.follow_redirects,
                max_redirects=self.max_redirects,
                transport=self.transport,
            ) as client:
                response = client.get(url, headers=headers)
                response.raise_for_status()
                return response.content

        except httpx.TimeoutException as e:
            raise NetworkError(f"timeout fetching {url}: {e}", url=url) from e

        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"HTTP {e.response.status_code} fetching {url}", url=url
            ) from e

        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise NetworkError(f"request error fetching {url}: {e}", url=url) from e


def create_fetcher(transport: Optional[httpx.BaseTransport] = None) -> FeedFetcher:
    """Create a FeedFetcher configured from settings."""
    return FeedFetcher(transport=transport)
