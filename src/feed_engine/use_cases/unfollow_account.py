"""Use case for unfollowing an account."""

import logging
from typing import Any, Callable, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import IAccountRepository, IFollowRepository
from ..services.account_summary import AccountSummaryService
from ..services.feed_events import FeedEventService
from ..services.timeline_cache import TimelineCache

logger = logging.getLogger(__name__)


class UnfollowAccountUseCase:
    """
    Drop a follow edge and the follower's entries from the unfollowed author.

    Edge, counters and feed entries change in one transaction. The follower's
    cached pages are retired afterwards so the author disappears from the very
    next read rather than after the cache TTL.
    """

    def __init__(
        self,
        session: AsyncSession,
        account_repository_factory: Callable[..., IAccountRepository],
        follow_repository_factory: Callable[..., IFollowRepository],
        feed_events: FeedEventService,
        timeline_cache: TimelineCache,
        account_summaries: AccountSummaryService,
    ):
        self.session = session
        self.account_repo: IAccountRepository = account_repository_factory(session=session)
        self.follow_repo: IFollowRepository = follow_repository_factory(session=session)
        self.feed_events = feed_events
        self.timeline_cache = timeline_cache
        self.account_summaries = account_summaries

    async def execute(self, follower_id: int, followed_id: int) -> Dict[str, Any]:
        try:
            deleted = await self.follow_repo.delete_edge(follower_id, followed_id)
            if not deleted:
                await self.session.rollback()
                logger.info(f"Not following | follower_id={follower_id} | followed_id={followed_id}")
                return {"status": "skipped", "reason": "not_following"}

            await self.account_repo.adjust_counters(follower_id, following=-1)
            await self.account_repo.adjust_counters(followed_id, followers=-1)
            removed_entries = await self.feed_events.on_follow_destroyed(self.session, follower_id, followed_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        await self.timeline_cache.invalidate_owner(follower_id)
        await self.account_summaries.invalidate(follower_id, followed_id)

        logger.info(
            f"Follow destroyed | follower_id={follower_id} | followed_id={followed_id} | "
            f"removed_entries={removed_entries}"
        )
        return {"status": "success", "removed_entries": removed_entries}
