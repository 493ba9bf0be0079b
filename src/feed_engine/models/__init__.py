__all__ = (
    "Base",
    "DatabaseHelper",
    "db_helper",
    "Account",
    "Post",
    "Follow",
    "FeedEntry",
)

from .base import Base
from .db_helper import DatabaseHelper, db_helper
from .account import Account
from .post import Post
from .follow import Follow
from .feed_entry import FeedEntry
