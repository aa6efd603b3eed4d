"""
Command handlers and the command table.

Every handler takes the CLI state and the command's positional arguments.
Handlers that act for the current user are wrapped with ``logged_in``, which
also hands them an open session and the user row.
"""

import functools
from dataclasses import dataclass
from typing import Callable

from pydantic import ValidationError
from sqlalchemy.orm import Session

from gator.cli.duration import format_duration, parse_duration
from gator.config import Config, SessionConfig
from gator.core.scheduler import create_aggregator
from gator.exceptions import ArgumentError, ConflictError, NotFoundError
from gator.logger import get_logger
from gator.models import FeedCreate, UserCreate, UserModel
from gator.storage.database import DatabaseManager
from gator.storage.repositories import (
    FeedFollowRepository,
    FeedRepository,
    PostRepository,
    UserRepository,
)

logger = get_logger(__name__)

DEFAULT_BROWSE_LIMIT = 2


@dataclass
class State:
    """Everything a command needs."""

    config: Config
    session_config: SessionConfig
    db: DatabaseManager


Handler = Callable[[State, list[str]], None]


def require_args(args: list[str], usage: str, count: int) -> None:
    """Check the number of positional arguments.

    Raises:
        ArgumentError: If ``args`` does not hold exactly ``count`` items
    """
    if len(args) != count:
        raise ArgumentError(
            f"expected {count} argument{'s' if count != 1 else ''}, got {len(args)}; "
            f"usage: {usage}"
        )


def validation_message(error: ValidationError) -> str:
    return "; ".join(err["msg"] for err in error.errors())


def logged_in(handler: Callable[[State, list[str], Session, UserModel], None]) -> Handler:
    """Resolve the current user before running a handler.

    Raises:
        NotFoundError: If nobody is logged in or the user no longer exists
    """

    @functools.wraps(handler)
    def wrapper(state: State, args: list[str]) -> None:
        name = state.session_config.current_user_name
        if not name:
            raise NotFoundError("no user is logged in; run 'gator login <name>' first")

        with state.db.session() as session:
            user = UserRepository(session).require_by_name(name)
            handler(state, args, session, user)

    return wrapper


def handle_login(state: State, args: list[str]) -> None:
    require_args(args, "login <username>", 1)
    name = args[0].strip()

    with state.db.session() as session:
        UserRepository(session).require_by_name(name)

    state.session_config.set_user(name)
    print(f"Logged in as {name}")


def handle_register(state: State, args: list[str]) -> None:
    require_args(args, "register <username>", 1)

    try:
        data = UserCreate(name=args[0])
    except ValidationError as e:
        raise ArgumentError(validation_message(e)) from e

    with state.db.session() as session:
        user = UserRepository(session).create(data)
        logger.debug(f"Created user {user.id}")

    # A failure to save the session is reported, not ignored
    state.session_config.set_user(data.name)
    print(f"User created: {data.name}")


def handle_reset(state: State, args: list[str]) -> None:
    require_args(args, "reset", 0)

    with state.db.session() as session:
        posts = PostRepository(session).delete_all()
        follows = FeedFollowRepository(session).delete_all()
        feeds = FeedRepository(session).delete_all()
        users = UserRepository(session).delete_all()

    logger.info(f"Deleted {users} users, {feeds} feeds, {follows} follows, {posts} posts")
    print("Database reset")


def handle_users(state: State, args: list[str]) -> None:
    require_args(args, "users", 0)
    current = state.session_config.current_user_name

    with state.db.session() as session:
        for user in UserRepository(session).list():
            if user.name == current:
                print(f"* {user.name} (current)")
            else:
                print(f"* {user.name}")


@logged_in
def handle_addfeed(state: State, args: list[str], session: Session, user: UserModel) -> None:
    require_args(args, "addfeed <name> <url>", 2)

    try:
        data = FeedCreate(name=args[0], url=args[1], user_id=user.id)
    except ValidationError as e:
        raise ArgumentError(validation_message(e)) from e

    feed = FeedRepository(session).create(data)
    FeedFollowRepository(session).follow(user.id, feed.id)

    print("Feed created:")
    print(f" * Name: {feed.name}")
    print(f" * URL:  {feed.url}")
    print(f" * User: {user.name}")


def handle_feeds(state: State, args: list[str]) -> None:
    require_args(args, "feeds", 0)

    with state.db.session() as session:
        feeds = FeedRepository(session).list_with_owner()
        if not feeds:
            print("No feeds found.")
            return

        for feed in feeds:
            print(f"* {feed.name}")
            print(f"  URL:      {feed.url}")
            print(f"  Added by: {feed.user.name}")


@logged_in
def handle_follow(state: State, args: list[str], session: Session, user: UserModel) -> None:
    require_args(args, "follow <url>", 1)

    feed = FeedRepository(session).require_by_url(args[0])
    follows = FeedFollowRepository(session)
    if follows.get(user.id, feed.id) is not None:
        raise ConflictError(f"{user.name} already follows {feed.name}")

    follows.follow(user.id, feed.id)
    print(f"{user.name} now follows {feed.name}")


@logged_in
def handle_following(state: State, args: list[str], session: Session, user: UserModel) -> None:
    require_args(args, "following", 0)

    follows = FeedFollowRepository(session).list_for_user(user.id)
    if not follows:
        print(f"{user.name} is not following any feeds.")
        return

    for feed_follow in follows:
        print(f"* {feed_follow.feed.name}")


@logged_in
def handle_unfollow(state: State, args: list[str], session: Session, user: UserModel) -> None:
    require_args(args, "unfollow <url>", 1)

    feed = FeedFollowRepository(session).unfollow(user.id, args[0])
    print(f"{user.name} unfollowed {feed.name}")


@logged_in
def handle_browse(state: State, args: list[str], session: Session, user: UserModel) -> None:
    if len(args) > 1:
        raise ArgumentError(f"expected at most 1 argument, got {len(args)}; usage: browse [limit]")

    limit = DEFAULT_BROWSE_LIMIT
    if args:
        try:
            limit = int(args[0])
        except ValueError:
            limit = 0
        if limit <= 0:
            raise ArgumentError(f"limit must be a positive integer, got {args[0]!r}")

    posts = PostRepository(session).list_for_user(user.id, limit=limit)
    if not posts:
        print("No posts yet. Run 'gator agg <interval>' to collect some.")
        return

    for post in posts:
        published = post.published_at.strftime("%Y-%m-%d %H:%M") if post.published_at else "undated"
        print(f"{published} | {post.feed.name}")
        print(f"  {post.title}")
        print(f"  {post.url}")


def handle_agg(state: State, args: list[str]) -> None:
    require_args(args, "agg <interval>", 1)

    interval = parse_duration(args[0])
    min_interval = state.config.scheduler.min_interval_seconds
    if interval < min_interval:
        raise ArgumentError(
            f"interval must be at least {format_duration(min_interval)}, got {args[0]!r}"
        )

    print(f"Collecting feeds every {format_duration(interval)}")
    aggregator = create_aggregator(state.db, interval_seconds=interval)
    aggregator.run_forever()


COMMANDS: dict[str, Handler] = {
    "login": handle_login,
    "register": handle_register,
    "reset": handle_reset,
    "users": handle_users,
    "addfeed": handle_addfeed,
    "feeds": handle_feeds,
    "follow": handle_follow,
    "following": handle_following,
    "unfollow": handle_unfollow,
    "browse": handle_browse,
    "agg": handle_agg,
}


def run_command(state: State, name: str, args: list[str]) -> None:
    """Dispatch a command by name.

    Raises:
        ArgumentError: If the command is unknown
    """
    handler = COMMANDS.get(name)
    if handler is None:
        available = ", ".join(sorted(COMMANDS))
        raise ArgumentError(f"unknown command {name!r}; available: {available}")
    handler(state, args)
