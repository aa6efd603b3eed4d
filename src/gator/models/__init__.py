"""Data models for gator."""

from gator.models.base import Base, utcnow
from gator.models.feed import FeedCreate, FeedModel
from gator.models.feed_follow import FeedFollowCreate, FeedFollowModel
from gator.models.post import PostCreate, PostModel
from gator.models.user import UserCreate, UserModel

__all__ = [
    "Base",
    "utcnow",
    "UserModel",
    "UserCreate",
    "FeedModel",
    "FeedCreate",
    "FeedFollowModel",
    "FeedFollowCreate",
    "PostModel",
    "PostCreate",
]
