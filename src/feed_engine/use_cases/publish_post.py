"""Use case for publishing a post."""

import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import IAccountRepository, IPostRepository
from ..models.post import Post
from ..services.account_summary import AccountSummaryService
from ..services.feed_events import FeedEventService

logger = logging.getLogger(__name__)


class PublishPostUseCase:
    """Create a post, bump the author's posts_count, then hand it to fan-out."""

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

    async def execute(self, author_id: int, content: str, parent_id: Optional[int] = None) -> Dict[str, Any]:
        if not await self.account_repo.exists(author_id):
            logger.warning(f"Author not found | author_id={author_id} | operation=publish_post")
            return {"status": "not_found", "reason": "author_not_found"}

        if parent_id is not None and await self.post_repo.get_by_id(parent_id) is None:
            logger.warning(f"Parent post not found | author_id={author_id} | parent_id={parent_id}")
            return {"status": "not_found", "reason": "parent_not_found"}

        try:
            post = await self.post_repo.create(Post(author_id=author_id, content=content, parent_id=parent_id))
            await self.account_repo.adjust_counters(author_id, posts=1)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        await self.account_summaries.invalidate(author_id)
        # Fan-out reads the committed row, so enqueue only after commit
        task_id = self.feed_events.on_post_created(post)

        logger.info(
            f"Post published | post_id={post.id} | author_id={author_id} | "
            f"is_reply={post.is_reply} | fan_out_task_id={task_id}"
        )
        return {"status": "success", "post_id": post.id, "fan_out_task_id": task_id}
