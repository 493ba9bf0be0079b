"""Use cases for fanning a post out to its author's followers."""

import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import IFeedEntryRepository, IFollowRepository, IPostRepository
from ..interfaces.services import ITaskQueue
from ..models.post import Post
from ..schemas.jobs import FanOutChunkJob
from ..utils.decorators import handle_task_errors
from ..utils.time import seconds_since

logger = logging.getLogger(__name__)


class _FanOutBase:
    """Shared paging logic: follower ids are read one keyset page at a time."""

    def __init__(
        self,
        session: AsyncSession,
        post_repository_factory: Callable[..., IPostRepository],
        follow_repository_factory: Callable[..., IFollowRepository],
        feed_entry_repository_factory: Callable[..., IFeedEntryRepository],
        batch_size: int,
        visibility_sla_seconds: int,
    ):
        self.session = session
        self.post_repo: IPostRepository = post_repository_factory(session=session)
        self.follow_repo: IFollowRepository = follow_repository_factory(session=session)
        self.feed_entry_repo: IFeedEntryRepository = feed_entry_repository_factory(session=session)
        self.batch_size = batch_size
        self.visibility_sla_seconds = visibility_sla_seconds

    async def _load_fan_out_post(self, post_id: int) -> tuple[Optional[Post], Optional[Dict[str, Any]]]:
        post = await self.post_repo.get_by_id(post_id)
        if post is None:
            logger.info(f"Post gone before fan-out | post_id={post_id}")
            return None, {"status": "skipped", "reason": "post_not_found"}
        if post.parent_id is not None:
            return None, {"status": "skipped", "reason": "reply"}
        if post.author_id is None:
            return None, {"status": "skipped", "reason": "author_deleted"}
        return post, None

    async def _insert_range(self, post: Post, after_follower_id: int, until_follower_id: Optional[int]) -> int:
        """Insert entries for followers in (after, until]; each page commits on its own."""
        inserted = 0
        cursor = after_follower_id
        while True:
            follower_ids = await self.follow_repo.page_follower_ids(
                post.author_id,
                after_follower_id=cursor,
                until_follower_id=until_follower_id,
                limit=self.batch_size,
            )
            if not follower_ids:
                break

            rows = [
                {
                    "owner_id": follower_id,
                    "post_id": post.id,
                    "author_id": post.author_id,
                    "created_at": post.created_at,
                }
                for follower_id in follower_ids
            ]
            inserted += await self.feed_entry_repo.insert_ignore_conflicts(rows)
            await self.session.commit()

            if len(follower_ids) < self.batch_size:
                break
            cursor = follower_ids[-1]
        return inserted

    def _lag_report(self, post: Post) -> Dict[str, Any]:
        lag = round(seconds_since(post.created_at), 3)
        within_sla = lag <= self.visibility_sla_seconds
        if not within_sla:
            logger.warning(
                f"Fan-out exceeded visibility SLA | post_id={post.id} | lag_seconds={lag} | "
                f"sla_seconds={self.visibility_sla_seconds}"
            )
        return {"lag_seconds": lag, "within_sla": within_sla}


class FanOutPostUseCase(_FanOutBase):
    """
    Materialize a new post into every current follower's timeline.

    The follower set is read when the job runs, not when it was enqueued.
    Authors with more than ``chunk_size`` followers are split into id-range
    chunk jobs so a crash or timeout loses at most one chunk of progress.
    """

    def __init__(
        self,
        session: AsyncSession,
        post_repository_factory: Callable[..., IPostRepository],
        follow_repository_factory: Callable[..., IFollowRepository],
        feed_entry_repository_factory: Callable[..., IFeedEntryRepository],
        task_queue: ITaskQueue,
        batch_size: int,
        chunk_size: int,
        visibility_sla_seconds: int,
    ):
        super().__init__(
            session,
            post_repository_factory,
            follow_repository_factory,
            feed_entry_repository_factory,
            batch_size,
            visibility_sla_seconds,
        )
        self.task_queue = task_queue
        self.chunk_size = chunk_size

    @handle_task_errors()
    async def execute(self, post_id: int) -> Dict[str, Any]:
        logger.info(f"Starting fan-out | post_id={post_id}")

        post, skipped = await self._load_fan_out_post(post_id)
        if skipped:
            return skipped

        overflow = await self.follow_repo.find_follower_id_at_offset(
            post.author_id, after_follower_id=0, offset=self.chunk_size
        )
        if overflow is not None:
            return await self._plan_chunks(post)

        inserted = await self._insert_range(post, 0, None)
        report = self._lag_report(post)
        logger.info(
            f"Fan-out completed | post_id={post_id} | author_id={post.author_id} | inserted={inserted} | "
            f"lag_seconds={report['lag_seconds']}"
        )
        return {"status": "success", "post_id": post_id, "mode": "inline", "inserted": inserted, **report}

    async def _plan_chunks(self, post: Post) -> Dict[str, Any]:
        """Cut the follower id space into ranges of chunk_size; the last range stays open."""
        jobs = []
        after = 0
        while True:
            next_start = await self.follow_repo.find_follower_id_at_offset(
                post.author_id, after_follower_id=after, offset=self.chunk_size
            )
            if next_start is None:
                jobs.append(FanOutChunkJob(post_id=post.id, after_follower_id=after))
                break
            until = await self.follow_repo.find_follower_id_at_offset(
                post.author_id, after_follower_id=after, offset=self.chunk_size - 1
            )
            jobs.append(FanOutChunkJob(post_id=post.id, after_follower_id=after, until_follower_id=until))
            after = until

        task_ids = [self.task_queue.enqueue_job(job) for job in jobs]
        logger.info(
            f"Fan-out chunked | post_id={post.id} | author_id={post.author_id} | chunks={len(jobs)} | "
            f"chunk_size={self.chunk_size}"
        )
        return {"status": "success", "post_id": post.id, "mode": "chunked", "chunks": len(jobs), "task_ids": task_ids}


class FanOutChunkUseCase(_FanOutBase):
    """Materialize a post for one follower id range of its author."""

    @handle_task_errors()
    async def execute(
        self, post_id: int, after_follower_id: int = 0, until_follower_id: Optional[int] = None
    ) -> Dict[str, Any]:
        post, skipped = await self._load_fan_out_post(post_id)
        if skipped:
            return skipped

        inserted = await self._insert_range(post, after_follower_id, until_follower_id)
        report = self._lag_report(post)
        logger.info(
            f"Fan-out chunk completed | post_id={post_id} | range=({after_follower_id}, {until_follower_id}] | "
            f"inserted={inserted} | lag_seconds={report['lag_seconds']}"
        )
        return {
            "status": "success",
            "post_id": post_id,
            "after_follower_id": after_follower_id,
            "until_follower_id": until_follower_id,
            "inserted": inserted,
            **report,
        }
