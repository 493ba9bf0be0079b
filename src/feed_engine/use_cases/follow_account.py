"""Use case for following an account."""

import logging
from typing import Any, Callable, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import IAccountRepository, IFollowRepository
from ..services.account_summary import AccountSummaryService
from ..services.feed_events import FeedEventService

logger = logging.getLogger(__name__)


class FollowAccountUseCase:
    """Create a follow edge, maintain both counter caches and schedule backfill."""

    def __init__(
        self,
        session: AsyncSession,
        account_repository_factory: Callable[..., IAccountRepository],
        follow_repository_factory: Callable[..., IFollowRepository],
        feed_events: FeedEventService,
        account_summaries: AccountSummaryService,
    ):
        self.session = session
        self.account_repo: IAccountRepository = account_repository_factory(session=session)
        self.follow_repo: IFollowRepository = follow_repository_factory(session=session)
        self.feed_events = feed_events
        self.account_summaries = account_summaries

    async def execute(self, follower_id: int, followed_id: int) -> Dict[str, Any]:
        if follower_id == followed_id:
            return {"status": "invalid", "reason": "cannot_follow_self"}

        for account_id in (follower_id, followed_id):
            if not await self.account_repo.exists(account_id):
                logger.warning(f"Account not found | account_id={account_id} | operation=follow")
                return {"status": "not_found", "reason": "account_not_found", "account_id": account_id}

        try:
            created = await self.follow_repo.create_if_absent(follower_id, followed_id)
            if not created:
                await self.session.rollback()
                logger.info(f"Already following | follower_id={follower_id} | followed_id={followed_id}")
                return {"status": "skipped", "reason": "already_following"}

            await self.account_repo.adjust_counters(follower_id, following=1)
            await self.account_repo.adjust_counters(followed_id, followers=1)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        await self.account_summaries.invalidate(follower_id, followed_id)
        task_id = self.feed_events.on_follow_created(follower_id, followed_id)

        logger.info(
            f"Follow created | follower_id={follower_id} | followed_id={followed_id} | backfill_task_id={task_id}"
        )
        return {"status": "success", "backfill_task_id": task_id}
