"""
Service and repository protocols for dependency injection.

Use cases type against these so tests can substitute stubs.
"""

from .services import ITaskQueue, ICache, ITimelineReader
from .repositories import (
    IAccountRepository,
    IPostRepository,
    IFollowRepository,
    IFeedEntryRepository,
)

__all__ = [
    "ITaskQueue",
    "ICache",
    "ITimelineReader",
    "IAccountRepository",
    "IPostRepository",
    "IFollowRepository",
    "IFeedEntryRepository",
]
