"""Repository pattern implementations for data access."""

from gator.storage.repositories.feed_follow_repo import FeedFollowRepository
from gator.storage.repositories.feed_repo import FeedRepository
from gator.storage.repositories.post_repo import PostRepository
from gator.storage.repositories.user_repo import UserRepository

__all__ = [
    "FeedFollowRepository",
    "FeedRepository",
    "PostRepository",
    "UserRepository",
]
