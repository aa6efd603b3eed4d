"""Shared fixtures for gator tests."""

from datetime import datetime, timedelta
from typing import Optional

import pytest
from sqlalchemy.orm import Session

import gator.config
from gator.config import Config, reload_config
from gator.models import FeedCreate, FeedModel, UserCreate, UserModel, utcnow
from gator.storage.database import DatabaseManager
from gator.storage.repositories import FeedRepository, UserRepository

SAMPLE_RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Boot.dev Blog</title>
    <link>https://blog.boot.dev/</link>
    <description>Learn backend &amp; more</description>
    <item>
      <title>Tom &amp; Jerry go to the backend</title>
      <link>https://blog.boot.dev/tom-and-jerry/</link>
      <description>A story about cats &amp; mice</description>
      <pubDate>Mon, 01 Jan 2024 10:00:00 +0000</pubDate>
    </item>
    <item>
      <title>  Learning   Go  </title>
      <link>https://blog.boot.dev/learning-go/</link>
      <description>Go is fun</description>
      <pubDate>Tue, 02 Jan 2024 12:00:00 +0200</pubDate>
    </item>
    <item>
      <title>Undated post</title>
      <link>https://blog.boot.dev/undated/</link>
      <description>No date here</description>
      <pubDate>sometime last week</pubDate>
    </item>
  </channel>
</rss>
"""

MALFORMED_RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Broken</title>
    <item><title>Unclosed</item>
  </channel>
"""


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch) -> Config:
    """Keep every test away from the real home directory and cwd files."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GATOR_SESSION_FILE", str(tmp_path / "gatorconfig.json"))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("LOG_FILE_ENABLED", "false")
    for name in ("DB_URL", "DB_TYPE", "DB_PATH"):
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setattr(gator.config, "_config", None)
    return reload_config()


@pytest.fixture
def db_manager(tmp_path) -> DatabaseManager:
    """Create a test database on disk so several sessions share it."""
    manager = DatabaseManager(str(tmp_path / "test.db"))
    manager.init_db()
    yield manager
    manager.close()


@pytest.fixture
def db_session(db_manager: DatabaseManager) -> Session:
    """Create a test database session.

    The session is rolled back afterwards, so tests may leave it in a failed
    state after an expected IntegrityError.
    """
    session = db_manager.session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def sample_rss() -> bytes:
    return SAMPLE_RSS


@pytest.fixture
def malformed_rss() -> bytes:
    return MALFORMED_RSS


@pytest.fixture
def make_user():
    """Factory creating users in a session."""

    def _make_user(session: Session, name: str = "alice") -> UserModel:
        return UserRepository(session).create(UserCreate(name=name))

    return _make_user


@pytest.fixture
def make_feed():
    """Factory creating feeds, optionally with a fetch history."""

    def _make_feed(
        session: Session,
        user: UserModel,
        name: str,
        url: str,
        last_fetched_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
    ) -> FeedModel:
        feed = FeedRepository(session).create(FeedCreate(name=name, url=url, user_id=user.id))
        if last_fetched_at is not None:
            feed.last_fetched_at = last_fetched_at
        if created_at is not None:
            feed.created_at = created_at
        session.flush()
        return feed

    return _make_feed


def hours_ago(hours: float) -> datetime:
    return utcnow() - timedelta(hours=hours)


@pytest.fixture
def ago():
    """Naive UTC timestamp ``hours`` in the past."""
    return hours_ago
