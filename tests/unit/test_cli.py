"""Tests for the gator command line."""

import json
from datetime import datetime

import pytest

from gator.cli import COMMANDS
from gator.cli.main import main
from gator.config import SessionConfig
from gator.exceptions import ConfigError
from gator.models import PostCreate
from gator.storage.database import DatabaseManager
from gator.storage.repositories import FeedRepository, PostRepository

BLOG_URL = "https://blog.boot.dev/index.xml"
NEWS_URL = "https://news.example/rss"


@pytest.fixture
def db_url(tmp_path, monkeypatch) -> str:
    """Point the session file at a fresh SQLite database."""
    monkeypatch.setenv("LOG_CONSOLE_ENABLED", "false")
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    (tmp_path / "gatorconfig.json").write_text(json.dumps({"db_url": url}))
    return url


@pytest.fixture
def gator(capsys, db_url):
    """Run a command and return its exit status, stdout and stderr."""

    def _gator(*argv: str) -> tuple[int, str, str]:
        code = main(list(argv))
        captured = capsys.readouterr()
        return code, captured.out, captured.err

    return _gator


def read_session(tmp_path) -> dict:
    return json.loads((tmp_path / "gatorconfig.json").read_text())


class TestEntryPoint:
    """Tests for argument handling."""

    def test_no_command(self, gator):
        code, out, err = gator()

        assert code == 1
        assert "a command is required" in err

    def test_unknown_command(self, gator):
        code, out, err = gator("dance")

        assert code == 1
        assert "unknown command 'dance'" in err

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0
        assert "gator" in capsys.readouterr().out

    @pytest.mark.parametrize(
        "argv, usage",
        [
            (["login"], "login <username>"),
            (["register", "a", "b"], "register <username>"),
            (["users", "extra"], "users"),
            (["agg"], "agg <interval>"),
        ],
    )
    def test_wrong_argument_count(self, gator, argv, usage):
        code, out, err = gator(*argv)

        assert code == 1
        assert f"usage: {usage}" in err

    def test_command_table(self):
        assert set(COMMANDS) == {
            "login", "register", "reset", "users", "addfeed", "feeds",
            "follow", "following", "unfollow", "browse", "agg",
        }

    def test_default_database_location(self, tmp_path, capsys, monkeypatch):
        """Test that without a session file the database lives under the home directory."""
        monkeypatch.setenv("LOG_CONSOLE_ENABLED", "false")

        assert main(["register", "kahya"]) == 0
        assert (tmp_path / "home" / ".local" / "share" / "gator" / "gator.db").exists()
        assert not (tmp_path / "data").exists()

    def test_state_shared_across_directories(self, tmp_path, capsys, monkeypatch):
        """Test that a user registered in one directory is known in another."""
        monkeypatch.setenv("LOG_CONSOLE_ENABLED", "false")
        first = tmp_path / "a"
        second = tmp_path / "b"
        first.mkdir()
        second.mkdir()

        monkeypatch.chdir(first)
        assert main(["register", "kahya"]) == 0

        monkeypatch.chdir(second)
        assert main(["addfeed", "Blog", BLOG_URL]) == 0
        assert main(["following"]) == 0

        out = capsys.readouterr().out
        assert "* Blog" in out


class TestUserCommands:
    """Tests for register, login, users and reset."""

    def test_register(self, gator, tmp_path, db_url):
        code, out, err = gator("register", "kahya")

        assert code == 0
        assert "User created: kahya" in out
        assert read_session(tmp_path) == {"db_url": db_url, "current_user_name": "kahya"}

    def test_register_duplicate(self, gator):
        gator("register", "kahya")

        code, out, err = gator("register", "kahya")

        assert code == 1
        assert "already exists" in err

    def test_register_session_write_fails(self, gator, monkeypatch):
        """Test that a failed session write is reported after the user is created."""

        def broken_write(self, path=None):
            raise ConfigError("could not write session file")

        monkeypatch.setattr(SessionConfig, "write", broken_write)

        code, out, err = gator("register", "kahya")
        assert code == 1
        assert "could not write session file" in err

        code, out, err = gator("users")
        assert out.splitlines() == ["* kahya"]

    def test_login(self, gator, tmp_path):
        gator("register", "kahya")
        gator("register", "holgith")

        code, out, err = gator("login", "kahya")

        assert code == 0
        assert "Logged in as kahya" in out
        assert read_session(tmp_path)["current_user_name"] == "kahya"

    def test_login_strips_name(self, gator, tmp_path):
        """Test that login accepts the same padded name register accepted."""
        gator("register", "kahya ")
        gator("register", "holgith")

        code, out, err = gator("login", " kahya ")

        assert code == 0
        assert "Logged in as kahya" in out
        assert read_session(tmp_path)["current_user_name"] == "kahya"

    def test_login_unknown_user(self, gator, tmp_path):
        gator("register", "kahya")

        code, out, err = gator("login", "unknown")

        assert code == 1
        assert "does not exist" in err
        assert read_session(tmp_path)["current_user_name"] == "kahya"

    def test_users_marks_current(self, gator):
        gator("register", "kahya")
        gator("register", "allan")

        code, out, err = gator("users")

        assert code == 0
        assert out.splitlines() == ["* allan (current)", "* kahya"]

    def test_reset(self, gator):
        gator("register", "kahya")
        gator("addfeed", "Blog", BLOG_URL)

        code, out, err = gator("reset")

        assert code == 0
        assert "Database reset" in out
        assert gator("users")[1] == ""
        assert "No feeds found." in gator("feeds")[1]


class TestFeedCommands:
    """Tests for addfeed, feeds, follow, following and unfollow."""

    def test_addfeed_requires_login(self, gator):
        code, out, err = gator("addfeed", "Blog", BLOG_URL)

        assert code == 1
        assert "no user is logged in" in err

    def test_addfeed_requires_existing_user(self, gator, tmp_path, db_url):
        (tmp_path / "gatorconfig.json").write_text(
            json.dumps({"db_url": db_url, "current_user_name": "ghost"})
        )

        code, out, err = gator("addfeed", "Blog", BLOG_URL)

        assert code == 1
        assert "'ghost' does not exist" in err

    def test_addfeed_follows_feed(self, gator):
        gator("register", "kahya")

        code, out, err = gator("addfeed", "Blog", BLOG_URL)

        assert code == 0
        assert "Feed created:" in out
        assert BLOG_URL in out
        assert gator("following")[1].splitlines() == ["* Blog"]

    def test_addfeed_invalid_url(self, gator):
        gator("register", "kahya")

        code, out, err = gator("addfeed", "Blog", "not-a-url")

        assert code == 1
        assert "Unsupported feed URL" in err

    def test_addfeed_duplicate_url(self, gator):
        gator("register", "kahya")
        gator("addfeed", "Blog", BLOG_URL)

        code, out, err = gator("addfeed", "Blog again", BLOG_URL)

        assert code == 1
        assert "already exists" in err
        assert gator("feeds")[1].count("* ") == 1

    def test_feeds(self, gator):
        gator("register", "kahya")
        gator("addfeed", "Blog", BLOG_URL)
        gator("register", "lane")
        gator("addfeed", "News", NEWS_URL)

        code, out, err = gator("feeds")

        assert code == 0
        lines = out.splitlines()
        assert lines[0] == "* Blog"
        assert "Added by: kahya" in lines[2]
        assert lines[3] == "* News"
        assert "Added by: lane" in lines[5]

    def test_follow(self, gator):
        gator("register", "kahya")
        gator("addfeed", "Blog", BLOG_URL)
        gator("register", "lane")

        code, out, err = gator("follow", BLOG_URL)

        assert code == 0
        assert "lane now follows Blog" in out
        assert gator("following")[1].splitlines() == ["* Blog"]

    def test_follow_twice(self, gator):
        gator("register", "kahya")
        gator("addfeed", "Blog", BLOG_URL)

        code, out, err = gator("follow", BLOG_URL)

        assert code == 1
        assert "kahya already follows Blog" in err

    def test_follow_unknown_feed(self, gator):
        gator("register", "kahya")

        code, out, err = gator("follow", NEWS_URL)

        assert code == 1
        assert "does not exist" in err

    def test_following_empty(self, gator):
        gator("register", "kahya")

        code, out, err = gator("following")

        assert code == 0
        assert "kahya is not following any feeds." in out

    def test_unfollow(self, gator):
        gator("register", "kahya")
        gator("addfeed", "Blog", BLOG_URL)

        code, out, err = gator("unfollow", BLOG_URL)

        assert code == 0
        assert "kahya unfollowed Blog" in out
        assert "not following any feeds" in gator("following")[1]

        code, out, err = gator("unfollow", BLOG_URL)
        assert code == 1
        assert "not following feed" in err


class TestBrowse:
    """Tests for the browse command."""

    @pytest.fixture
    def seeded(self, gator, db_url):
        """Register kahya with a followed Blog and an unfollowed News feed, with posts."""
        gator("register", "lane")
        gator("addfeed", "News", NEWS_URL)
        gator("register", "kahya")
        gator("addfeed", "Blog", BLOG_URL)

        with DatabaseManager(db_url) as db:
            with db.session() as session:
                feeds = FeedRepository(session)
                blog = feeds.get_by_url(BLOG_URL)
                news = feeds.get_by_url(NEWS_URL)
                posts = PostRepository(session)
                posts.create(PostCreate(feed_id=blog.id, title="Older", url="https://blog.boot.dev/older/",
                                        published_at=datetime(2024, 1, 1, 10, 0)))
                posts.create(PostCreate(feed_id=blog.id, title="Newer", url="https://blog.boot.dev/newer/",
                                        published_at=datetime(2024, 2, 1, 9, 30)))
                posts.create(PostCreate(feed_id=blog.id, title="Undated", url="https://blog.boot.dev/undated/"))
                posts.create(PostCreate(feed_id=news.id, title="Not followed", url="https://news.example/1/",
                                        published_at=datetime(2024, 3, 1)))

    def test_browse_empty(self, gator):
        gator("register", "kahya")

        code, out, err = gator("browse")

        assert code == 0
        assert "No posts yet" in out

    def test_browse_default_limit(self, gator, seeded):
        code, out, err = gator("browse")

        assert code == 0
        assert out.splitlines() == [
            "2024-02-01 09:30 | Blog",
            "  Newer",
            "  https://blog.boot.dev/newer/",
            "2024-01-01 10:00 | Blog",
            "  Older",
            "  https://blog.boot.dev/older/",
        ]

    def test_browse_with_limit(self, gator, seeded):
        code, out, err = gator("browse", "10")

        assert code == 0
        assert "undated | Blog" in out
        assert "Not followed" not in out

    @pytest.mark.parametrize("limit", ["0", "-1", "many"])
    def test_browse_invalid_limit(self, gator, limit):
        gator("register", "kahya")

        code, out, err = gator("browse", limit)

        assert code == 1
        assert "positive integer" in err


class TestAgg:
    """Tests for the agg command."""

    @pytest.fixture
    def fake_aggregator(self, monkeypatch):
        calls = {}

        class FakeAggregator:
            def run_forever(self):
                calls["ran"] = True

        def fake_create_aggregator(db, interval_seconds=None, max_workers=None):
            calls["interval_seconds"] = interval_seconds
            return FakeAggregator()

        monkeypatch.setattr("gator.cli.commands.create_aggregator", fake_create_aggregator)
        return calls

    def test_agg(self, gator, fake_aggregator):
        code, out, err = gator("agg", "1m")

        assert code == 0
        assert "Collecting feeds every 1m0s" in out
        assert fake_aggregator == {"interval_seconds": 60, "ran": True}

    def test_agg_invalid_interval(self, gator, fake_aggregator):
        code, out, err = gator("agg", "soon")

        assert code == 1
        assert "invalid duration" in err
        assert fake_aggregator == {}

    def test_agg_interval_too_short(self, gator, fake_aggregator):
        code, out, err = gator("agg", "500ms")

        assert code == 1
        assert "at least 1s" in err
        assert fake_aggregator == {}
