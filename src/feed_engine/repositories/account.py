"""Account repository: counter caches and drift repair."""

from typing import AsyncIterator, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository, BULK_OPTIONS
from ..models.account import Account
from ..models.follow import Follow
from ..models.post import Post


def _true_followers_count():
    return (
        select(func.count())
        .select_from(Follow)
        .where(Follow.followed_id == Account.id)
        .scalar_subquery()
    )


def _true_following_count():
    return (
        select(func.count())
        .select_from(Follow)
        .where(Follow.follower_id == Account.id)
        .scalar_subquery()
    )


def _true_posts_count():
    return (
        select(func.count())
        .select_from(Post)
        .where(Post.author_id == Account.id)
        .scalar_subquery()
    )


class AccountRepository(BaseRepository[Account]):
    """Repository for Account operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Account, session)

    async def get_by_id(self, id: int) -> Optional[Account]:
        # Counters only change through bulk UPDATEs, so never trust the identity map
        result = await self.session.execute(
            select(Account).where(Account.id == id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def exists(self, account_id: int) -> bool:
        result = await self.session.execute(select(Account.id).where(Account.id == account_id))
        return result.scalar_one_or_none() is not None

    async def adjust_counters(
        self,
        account_id: int,
        *,
        followers: int = 0,
        following: int = 0,
        posts: int = 0,
    ) -> None:
        """Atomically add deltas to counter caches (UPDATE ... SET c = c + n, never read-modify-write)."""
        values = self._counter_deltas(followers=followers, following=following, posts=posts)
        if not values:
            return
        await self.session.execute(
            update(Account).where(Account.id == account_id).values(**values).execution_options(**BULK_OPTIONS)
        )

    async def decrement_counterparties(self, account_id: int) -> None:
        """Before an account's follow edges are dropped, decrement the other side of each edge."""
        await self.session.execute(
            update(Account)
            .where(Account.id.in_(select(Follow.follower_id).where(Follow.followed_id == account_id)))
            .values(following_count=Account.following_count - 1)
            .execution_options(**BULK_OPTIONS)
        )
        await self.session.execute(
            update(Account)
            .where(Account.id.in_(select(Follow.followed_id).where(Follow.follower_id == account_id)))
            .values(followers_count=Account.followers_count - 1)
            .execution_options(**BULK_OPTIONS)
        )

    async def iter_id_batches(self, batch_size: int) -> AsyncIterator[list[int]]:
        """Yield account ids in ascending keyset batches."""
        last_id = 0
        while True:
            result = await self.session.execute(
                select(Account.id).where(Account.id > last_id).order_by(Account.id).limit(batch_size)
            )
            ids = list(result.scalars().all())
            if not ids:
                return
            yield ids
            if len(ids) < batch_size:
                return
            last_id = ids[-1]

    async def find_counter_drift(self, account_ids: Sequence[int]) -> list[dict]:
        """Return accounts whose cached counters differ from COUNT(*) over the source tables."""
        if not account_ids:
            return []
        true_followers = _true_followers_count().label("true_followers")
        true_following = _true_following_count().label("true_following")
        true_posts = _true_posts_count().label("true_posts")
        result = await self.session.execute(
            select(
                Account.id,
                Account.followers_count,
                Account.following_count,
                Account.posts_count,
                true_followers,
                true_following,
                true_posts,
            ).where(Account.id.in_(account_ids))
        )
        drift = []
        for row in result.all():
            if (row.followers_count, row.following_count, row.posts_count) != (
                row.true_followers,
                row.true_following,
                row.true_posts,
            ):
                drift.append(
                    {
                        "account_id": row.id,
                        "followers_count": (row.followers_count, row.true_followers),
                        "following_count": (row.following_count, row.true_following),
                        "posts_count": (row.posts_count, row.true_posts),
                    }
                )
        return drift

    async def recompute_counters(self, account_ids: Sequence[int]) -> int:
        """Overwrite counters with the true cardinalities. Idempotent."""
        if not account_ids:
            return 0
        result = await self.session.execute(
            update(Account)
            .where(Account.id.in_(account_ids))
            .values(
                followers_count=_true_followers_count(),
                following_count=_true_following_count(),
                posts_count=_true_posts_count(),
            )
            .execution_options(**BULK_OPTIONS)
        )
        return result.rowcount or 0

    async def delete_by_id(self, account_id: int) -> int:
        result = await self.session.execute(
            delete(Account).where(Account.id == account_id).execution_options(**BULK_OPTIONS)
        )
        return result.rowcount or 0

    @staticmethod
    def _counter_deltas(*, followers: int, following: int, posts: int) -> dict:
        values = {}
        if followers:
            values["followers_count"] = Account.followers_count + followers
        if following:
            values["following_count"] = Account.following_count + following
        if posts:
            values["posts_count"] = Account.posts_count + posts
        return values
