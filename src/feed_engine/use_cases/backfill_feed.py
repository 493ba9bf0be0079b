"""Use cases for copying existing posts into a follower's timeline."""

import logging
from typing import Any, Callable, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import (
    IAccountRepository,
    IFeedEntryRepository,
    IFollowRepository,
    IPostRepository,
)
from ..utils.decorators import handle_task_errors

logger = logging.getLogger(__name__)


async def backfill_from_author(
    post_repo: IPostRepository,
    feed_entry_repo: IFeedEntryRepository,
    owner_id: int,
    author_id: int,
    limit: int,
) -> int:
    """Ensure the author's latest `limit` top-level posts exist in the owner's feed."""
    posts = await post_repo.get_recent_top_level_by_author(author_id, limit)
    rows = [
        {
            "owner_id": owner_id,
            "post_id": post.id,
            "author_id": author_id,
            "created_at": post.created_at,
        }
        for post in posts
    ]
    return await feed_entry_repo.insert_ignore_conflicts(rows)


class BackfillFeedUseCase:
    """
    Seed a new follow with a bounded window of the followee's recent posts.

    If the follow was removed before the job ran, nothing is inserted: the
    unfollow already cleaned up and there is nothing left to seed.
    """

    def __init__(
        self,
        session: AsyncSession,
        follow_repository_factory: Callable[..., IFollowRepository],
        post_repository_factory: Callable[..., IPostRepository],
        feed_entry_repository_factory: Callable[..., IFeedEntryRepository],
        limit: int,
    ):
        self.session = session
        self.follow_repo: IFollowRepository = follow_repository_factory(session=session)
        self.post_repo: IPostRepository = post_repository_factory(session=session)
        self.feed_entry_repo: IFeedEntryRepository = feed_entry_repository_factory(session=session)
        self.limit = limit

    @handle_task_errors()
    async def execute(self, follower_id: int, followed_id: int) -> Dict[str, Any]:
        logger.info(f"Starting backfill | follower_id={follower_id} | followed_id={followed_id}")

        if not await self.follow_repo.exists(follower_id, followed_id):
            logger.info(f"Follow gone before backfill | follower_id={follower_id} | followed_id={followed_id}")
            return {"status": "skipped", "reason": "not_following"}

        inserted = await backfill_from_author(
            self.post_repo, self.feed_entry_repo, follower_id, followed_id, self.limit
        )
        await self.session.commit()

        logger.info(f"Backfill completed | follower_id={follower_id} | followed_id={followed_id} | inserted={inserted}")
        return {"status": "success", "inserted": inserted}


class RebuildOwnerFeedUseCase:
    """Backfill an existing account from everyone it follows (migration to materialized feeds)."""

    def __init__(
        self,
        session: AsyncSession,
        account_repository_factory: Callable[..., IAccountRepository],
        follow_repository_factory: Callable[..., IFollowRepository],
        post_repository_factory: Callable[..., IPostRepository],
        feed_entry_repository_factory: Callable[..., IFeedEntryRepository],
        limit: int,
    ):
        self.session = session
        self.account_repo: IAccountRepository = account_repository_factory(session=session)
        self.follow_repo: IFollowRepository = follow_repository_factory(session=session)
        self.post_repo: IPostRepository = post_repository_factory(session=session)
        self.feed_entry_repo: IFeedEntryRepository = feed_entry_repository_factory(session=session)
        self.limit = limit

    @handle_task_errors()
    async def execute(self, owner_id: int) -> Dict[str, Any]:
        if not await self.account_repo.exists(owner_id):
            return {"status": "skipped", "reason": "account_not_found"}

        followed_ids = await self.follow_repo.get_followed_ids(owner_id)
        inserted = 0
        for followed_id in followed_ids:
            inserted += await backfill_from_author(
                self.post_repo, self.feed_entry_repo, owner_id, followed_id, self.limit
            )
            await self.session.commit()

        logger.info(f"Feed rebuilt | owner_id={owner_id} | followed={len(followed_ids)} | inserted={inserted}")
        return {"status": "success", "followed": len(followed_ids), "inserted": inserted}
