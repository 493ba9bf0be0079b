"""Pydantic schemas for timelines, account summaries and job payloads."""

from .timeline import PostView, TimelinePage, TimelineSource
from .account import AccountSummary
from .jobs import (
    FeedJob,
    FanOutPostJob,
    FanOutChunkJob,
    BackfillFeedJob,
    RebuildOwnerFeedJob,
    RecomputeCounterBatchJob,
)

__all__ = [
    "PostView",
    "TimelinePage",
    "TimelineSource",
    "AccountSummary",
    "FeedJob",
    "FanOutPostJob",
    "FanOutChunkJob",
    "BackfillFeedJob",
    "RebuildOwnerFeedJob",
    "RecomputeCounterBatchJob",
]
