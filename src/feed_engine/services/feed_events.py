"""Write-path hooks that keep materialized timelines in step with the source rows."""

import logging
from typing import Callable, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import IFeedEntryRepository
from ..interfaces.services import ITaskQueue
from ..models.post import Post
from ..schemas.jobs import BackfillFeedJob, FanOutPostJob

logger = logging.getLogger(__name__)


class FeedEventService:
    """
    Entry points called after posts and follows change.

    Creation hooks only enqueue work: the post or follow must already be
    committed, and a queue outage must never fail the caller's write.
    Destruction hooks run inside the caller's transaction so readers never
    observe entries that point at removed rows.
    """

    def __init__(
        self,
        task_queue: ITaskQueue,
        feed_entry_repository_factory: Callable[..., IFeedEntryRepository],
    ):
        self.task_queue = task_queue
        self.feed_entry_repository_factory = feed_entry_repository_factory

    def on_post_created(self, post: Post) -> Optional[str]:
        if post.parent_id is not None:
            logger.debug(f"Reply not fanned out | post_id={post.id} | parent_id={post.parent_id}")
            return None
        if post.author_id is None:
            logger.debug(f"Authorless post not fanned out | post_id={post.id}")
            return None
        return self._enqueue(FanOutPostJob(post_id=post.id))

    def on_follow_created(self, follower_id: int, followed_id: int) -> Optional[str]:
        return self._enqueue(BackfillFeedJob(follower_id=follower_id, followed_id=followed_id))

    async def on_follow_destroyed(self, session: AsyncSession, follower_id: int, followed_id: int) -> int:
        feed_entry_repo = self.feed_entry_repository_factory(session=session)
        removed = await feed_entry_repo.delete_for_owner_from_author(follower_id, followed_id)
        logger.info(
            f"Feed entries removed after unfollow | owner_id={follower_id} | author_id={followed_id} | removed={removed}"
        )
        return removed

    def on_replies_detached(self, post_ids: Sequence[int]) -> list[Optional[str]]:
        """Replies whose parent was deleted are now top-level and get the fan-out a new post would."""
        return [self._enqueue(FanOutPostJob(post_id=post_id)) for post_id in post_ids]

    async def on_post_deleted(self, session: AsyncSession, post_id: int) -> int:
        feed_entry_repo = self.feed_entry_repository_factory(session=session)
        removed = await feed_entry_repo.delete_for_post(post_id)
        logger.info(f"Feed entries removed after post deletion | post_id={post_id} | removed={removed}")
        return removed

    def _enqueue(self, job) -> Optional[str]:
        try:
            return self.task_queue.enqueue_job(job)
        except Exception as exc:
            # Recoverable later through rebuild_owner_feed_task
            logger.error(
                f"Failed to enqueue feed job | task={job.task_name} | payload={job.to_kwargs()} | error={exc}",
                exc_info=True,
            )
            return None
