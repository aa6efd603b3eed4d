"""Unit tests for the RSS parser."""

from datetime import datetime

import pytest

from gator.core.parser import MAX_TITLE_LENGTH, FeedParser, RSSFeed
from gator.exceptions import FetchError, ParseError


@pytest.fixture
def parser() -> FeedParser:
    return FeedParser()


class TestFeedParser:
    """Tests for FeedParser."""

    def test_parse_channel(self, parser: FeedParser, sample_rss: bytes):
        """Test channel fields and entity decoding."""
        feed = parser.parse(sample_rss)

        assert isinstance(feed, RSSFeed)
        assert feed.title == "Boot.dev Blog"
        assert feed.link == "https://blog.boot.dev/"
        assert feed.description == "Learn backend & more"
        assert len(feed.items) == 3

    def test_items_in_document_order(self, parser: FeedParser, sample_rss: bytes):
        """Test that items keep their order."""
        links = [item.link for item in parser.parse(sample_rss).items]

        assert links == [
            "https://blog.boot.dev/tom-and-jerry/",
            "https://blog.boot.dev/learning-go/",
            "https://blog.boot.dev/undated/",
        ]

    def test_item_entities_decoded(self, parser: FeedParser, sample_rss: bytes):
        """Test that &amp; in titles and descriptions becomes &."""
        item = parser.parse(sample_rss).items[0]

        assert item.title == "Tom & Jerry go to the backend"
        assert item.description == "A story about cats & mice"

    def test_title_whitespace_collapsed(self, parser: FeedParser, sample_rss: bytes):
        """Test whitespace normalization of titles."""
        assert parser.parse(sample_rss).items[1].title == "Learning Go"

    def test_pub_date_converted_to_utc(self, parser: FeedParser, sample_rss: bytes):
        """Test that offsets are applied and the result is naive UTC."""
        items = parser.parse(sample_rss).items

        assert items[0].published_at == datetime(2024, 1, 1, 10, 0, 0)
        assert items[1].published_at == datetime(2024, 1, 2, 10, 0, 0)
        assert items[1].pub_date == "Tue, 02 Jan 2024 12:00:00 +0200"

    def test_unparseable_date(self, parser: FeedParser, sample_rss: bytes):
        """Test that an unknown date format leaves published_at empty."""
        item = parser.parse(sample_rss).items[2]

        assert item.published_at is None
        assert item.pub_date == "sometime last week"

    def test_long_title_truncated(self, parser: FeedParser):
        """Test that titles are bounded."""
        content = (
            b'<?xml version="1.0"?><rss version="2.0"><channel><title>T</title>'
            b"<item><title>" + b"x" * 1500 + b"</title><link>https://e.com/1</link></item>"
            b"</channel></rss>"
        )

        title = parser.parse(content).items[0].title

        assert len(title) == MAX_TITLE_LENGTH
        assert title.endswith("...")

    def test_empty_channel(self, parser: FeedParser):
        """Test a feed without items."""
        content = b'<?xml version="1.0"?><rss version="2.0"><channel><title>Empty</title></channel></rss>'

        feed = parser.parse(content)

        assert feed.title == "Empty"
        assert feed.items == []

    def test_malformed_xml(self, parser: FeedParser, malformed_rss: bytes):
        """Test that malformed XML is rejected as a whole."""
        with pytest.raises(ParseError) as exc_info:
            parser.parse(malformed_rss, url="https://e.com/feed")

        assert exc_info.value.url == "https://e.com/feed"
        assert isinstance(exc_info.value, FetchError)

    def test_not_a_feed(self, parser: FeedParser):
        """Test that well-formed XML that is not a feed is rejected."""
        with pytest.raises(ParseError):
            parser.parse(b"<?xml version='1.0'?><html><body><p>hi</p></body></html>")

    def test_description_not_sanitized(self, parser: FeedParser):
        """Test that descriptions are only entity-decoded, not stripped of markup."""
        content = (
            b'<?xml version="1.0"?><rss version="2.0"><channel><title>T</title>'
            b"<item><title>Code</title><link>https://e.com/code</link>"
            b"<description>Call &lt;script&gt;x()&lt;/script&gt; &amp; wait</description></item>"
            b"</channel></rss>"
        )

        item = parser.parse(content).items[0]

        assert item.description == "Call <script>x()</script> & wait"
