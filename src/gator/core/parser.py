"""
RSS parser that turns a fetched payload into a channel and its items.

Parsing is done by feedparser; text fields are then entity-decoded and
whitespace-normalized. A payload that is not well-formed XML, or is not a
feed at all, is rejected as a whole.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from html import unescape
from typing import Optional

import feedparser
from feedparser.exceptions import CharacterEncodingOverride

from gator.exceptions import ParseError
from gator.logger import get_logger

logger = get_logger(__name__)

MAX_TITLE_LENGTH = 1000

# feedparser flags these as bozo although the document parsed fine
_BENIGN_BOZO_EXCEPTIONS = (CharacterEncodingOverride,)


@dataclass
class RSSItem:
    """One item of an RSS channel."""

    title: str
    link: str
    description: str = ""
    pub_date: str = ""
    published_at: Optional[datetime] = None


@dataclass
class RSSFeed:
    """An RSS channel and its items, in document order."""

    title: str
    link: str = ""
    description: str = ""
    items: list[RSSItem] = field(default_factory=list)


class FeedParser:
    """Parser for RSS payloads."""

    def parse(self, content: bytes, url: str = "") -> RSSFeed:
        """Parse an RSS payload.

        Args:
            content: Raw response body
            url: Source URL, used in error messages

        Returns:
            Parsed RSSFeed

        Raises:
            ParseError: If the payload is not well-formed XML or not a feed
        """
        # Text is stored as published, only entity-decoded; nothing renders it as HTML
        parsed = feedparser.parse(content, sanitize_html=False, resolve_relative_uris=False)

        if parsed.get("bozo") and not isinstance(
            parsed.get("bozo_exception"), _BENIGN_BOZO_EXCEPTIONS
        ):
            raise ParseError(
                f"malformed feed {url}: {parsed.get('bozo_exception')}", url=url
            )

        if not parsed.get("version"):
            raise ParseError(f"not an RSS feed: {url}", url=url)

        channel = parsed.feed
        feed = RSSFeed(
            title=self._normalize_title(channel.get("title")),
            link=(channel.get("link") or "").strip(),
            description=self._normalize_text(channel.get("description")),
        )

        for entry in parsed.entries:
            feed.items.append(self.parse_item(entry))

        logger.debug(f"Parsed {len(feed.items)} items from {url or feed.title}")
        return feed

    def parse_item(self, entry: dict) -> RSSItem:
        """Normalize one feedparser entry."""
        pub_date = (entry.get("published") or "").strip()
        return RSSItem(
            title=self._normalize_title(entry.get("title")),
            link=(entry.get("link") or "").strip(),
            description=self._normalize_text(entry.get("summary")),
            pub_date=pub_date,
            published_at=self._parse_date(entry.get("published_parsed"), pub_date),
        )

    def _normalize_title(self, title: Optional[str]) -> str:
        """Decode entities, collapse whitespace and bound the length."""
        if not title:
            return ""

        title = unescape(title)
        title = re.sub(r"\s+", " ", title.strip())

        if len(title) > MAX_TITLE_LENGTH:
            title = title[: MAX_TITLE_LENGTH - 3] + "..."

        return title

    def _normalize_text(self, text: Optional[str]) -> str:
        if not text:
            return ""
        return unescape(text).strip()

    def _parse_date(self, parsed_time, raw: str) -> Optional[datetime]:
        """Convert feedparser's UTC struct_time to a naive UTC datetime."""
        if parsed_time:
            try:
                return datetime(*parsed_time[:6])
            except (TypeError, ValueError):
                pass

        if raw:
            logger.debug(f"Failed to parse date: {raw}")
        return None
