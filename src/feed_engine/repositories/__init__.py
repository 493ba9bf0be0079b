"""Repository pattern implementations for clean data access."""

from .base import BaseRepository
from .account import AccountRepository
from .post import PostRepository
from .follow import FollowRepository
from .feed_entry import FeedEntryRepository

__all__ = [
    "BaseRepository",
    "AccountRepository",
    "PostRepository",
    "FollowRepository",
    "FeedEntryRepository",
]
