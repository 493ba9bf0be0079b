"""Use case for deleting a post."""

import logging
from typing import Any, Callable, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import IAccountRepository, IPostRepository
from ..services.account_summary import AccountSummaryService
from ..services.feed_events import FeedEventService

logger = logging.getLogger(__name__)


class DeletePostUseCase:
    """Remove a post together with every feed entry that references it, in one transaction."""

    def __init__(
        self,
        session: AsyncSession,
        account_repository_factory: Callable[..., IAccountRepository],
        post_repository_factory: Callable[..., IPostRepository],
        feed_events: FeedEventService,
        account_summaries: AccountSummaryService,
    ):
        self.session = session
        self.account_repo: IAccountRepository = account_repository_factory(session=session)
        self.post_repo: IPostRepository = post_repository_factory(session=session)
        self.feed_events = feed_events
        self.account_summaries = account_summaries

    async def execute(self, post_id: int) -> Dict[str, Any]:
        post = await self.post_repo.get_by_id(post_id)
        if post is None:
            logger.warning(f"Post not found | post_id={post_id} | operation=delete_post")
            return {"status": "not_found", "reason": "post_not_found"}

        author_id = post.author_id
        try:
            removed_entries = await self.feed_events.on_post_deleted(self.session, post_id)
            detached_ids = await self.post_repo.detach_replies(post_id)
            await self.post_repo.delete_by_id(post_id)
            if author_id is not None:
                await self.account_repo.adjust_counters(author_id, posts=-1)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        if author_id is not None:
            await self.account_summaries.invalidate(author_id)
        fan_out_task_ids = self.feed_events.on_replies_detached(detached_ids)

        logger.info(
            f"Post deleted | post_id={post_id} | author_id={author_id} | "
            f"removed_entries={removed_entries} | detached_replies={len(detached_ids)}"
        )
        return {
            "status": "success",
            "post_id": post_id,
            "removed_entries": removed_entries,
            "detached_replies": len(detached_ids),
            "fan_out_task_ids": fan_out_task_ids,
        }
