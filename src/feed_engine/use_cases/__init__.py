"""Use case layer for feed business logic (Clean Architecture)."""

from .publish_post import PublishPostUseCase
from .delete_post import DeletePostUseCase
from .follow_account import FollowAccountUseCase
from .unfollow_account import UnfollowAccountUseCase
from .delete_account import DeleteAccountUseCase
from .fan_out_post import FanOutPostUseCase, FanOutChunkUseCase
from .backfill_feed import BackfillFeedUseCase, RebuildOwnerFeedUseCase
from .get_timeline import GetTimelineUseCase
from .recompute_counters import PlanCounterRecomputeUseCase, RecomputeCounterBatchUseCase
from .trim_feed_entries import TrimFeedEntriesUseCase

__all__ = [
    "PublishPostUseCase",
    "DeletePostUseCase",
    "FollowAccountUseCase",
    "UnfollowAccountUseCase",
    "DeleteAccountUseCase",
    "FanOutPostUseCase",
    "FanOutChunkUseCase",
    "BackfillFeedUseCase",
    "RebuildOwnerFeedUseCase",
    "GetTimelineUseCase",
    "PlanCounterRecomputeUseCase",
    "RecomputeCounterBatchUseCase",
    "TrimFeedEntriesUseCase",
]
