"""Typed payloads for background feed jobs.

Every handler receiving one of these must be safe to run more than once:
the queue delivers at least once and retries from the start.
"""

from typing import ClassVar, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class FeedJob(BaseModel):
    """Base class: a job knows the Celery task that handles it."""

    model_config = ConfigDict(frozen=True)

    task_name: ClassVar[str]

    def to_kwargs(self) -> dict:
        return self.model_dump()


class FanOutPostJob(FeedJob):
    task_name: ClassVar[str] = "feed_engine.tasks.feed_tasks.fan_out_post_task"

    post_id: int


class FanOutChunkJob(FeedJob):
    """Followers of the author with after_follower_id < id <= until_follower_id.

    until_follower_id=None leaves the range open so followers gained after
    planning still receive the post.
    """

    task_name: ClassVar[str] = "feed_engine.tasks.feed_tasks.fan_out_chunk_task"

    post_id: int
    after_follower_id: int = Field(0, ge=0)
    until_follower_id: Optional[int] = None

    @model_validator(mode="after")
    def _validate_range(self):
        if self.until_follower_id is not None and self.until_follower_id <= self.after_follower_id:
            raise ValueError("until_follower_id must be greater than after_follower_id")
        return self


class BackfillFeedJob(FeedJob):
    task_name: ClassVar[str] = "feed_engine.tasks.feed_tasks.backfill_feed_task"

    follower_id: int
    followed_id: int


class RebuildOwnerFeedJob(FeedJob):
    task_name: ClassVar[str] = "feed_engine.tasks.feed_tasks.rebuild_owner_feed_task"

    owner_id: int


class RecomputeCounterBatchJob(FeedJob):
    task_name: ClassVar[str] = "feed_engine.tasks.maintenance_tasks.recompute_counter_batch_task"

    account_ids: list[int]
