"""Use case for deleting an account."""

import logging
from typing import Any, Callable, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import (
    IAccountRepository,
    IFeedEntryRepository,
    IFollowRepository,
    IPostRepository,
)
from ..services.account_summary import AccountSummaryService

logger = logging.getLogger(__name__)


class DeleteAccountUseCase:
    """
    Delete an account while keeping its posts visible.

    Posts lose their author (attributed to "deleted account") and feed entries
    other owners hold for those posts stay untouched. Follow edges in both
    directions go away and the counterparties' counters are decremented
    first. The account's own materialized timeline is dropped with it.
    """

    def __init__(
        self,
        session: AsyncSession,
        account_repository_factory: Callable[..., IAccountRepository],
        follow_repository_factory: Callable[..., IFollowRepository],
        post_repository_factory: Callable[..., IPostRepository],
        feed_entry_repository_factory: Callable[..., IFeedEntryRepository],
        account_summaries: AccountSummaryService,
    ):
        self.session = session
        self.account_repo: IAccountRepository = account_repository_factory(session=session)
        self.follow_repo: IFollowRepository = follow_repository_factory(session=session)
        self.post_repo: IPostRepository = post_repository_factory(session=session)
        self.feed_entry_repo: IFeedEntryRepository = feed_entry_repository_factory(session=session)
        self.account_summaries = account_summaries

    async def execute(self, account_id: int) -> Dict[str, Any]:
        if not await self.account_repo.exists(account_id):
            return {"status": "not_found", "reason": "account_not_found"}

        try:
            await self.account_repo.decrement_counterparties(account_id)
            removed_follows = await self.follow_repo.delete_all_for_account(account_id)
            orphaned_posts = await self.post_repo.orphan_by_author(account_id)
            removed_entries = await self.feed_entry_repo.delete_for_owner(account_id)
            await self.account_repo.delete_by_id(account_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        await self.account_summaries.invalidate(account_id)

        logger.info(
            f"Account deleted | account_id={account_id} | removed_follows={removed_follows} | "
            f"orphaned_posts={orphaned_posts} | removed_entries={removed_entries}"
        )
        return {
            "status": "success",
            "removed_follows": removed_follows,
            "orphaned_posts": orphaned_posts,
            "removed_entries": removed_entries,
        }
