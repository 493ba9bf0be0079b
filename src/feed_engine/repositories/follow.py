"""Follow-graph repository."""

from typing import Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository, BULK_OPTIONS
from ..models.follow import Follow


class FollowRepository(BaseRepository[Follow]):
    """Repository for Follow edges. Rows are keyed by (follower_id, followed_id)."""

    def __init__(self, session: AsyncSession):
        super().__init__(Follow, session)

    async def create_if_absent(self, follower_id: int, followed_id: int) -> bool:
        """Insert the edge; False when it already existed."""
        stmt = (
            self._insert()
            .values(follower_id=follower_id, followed_id=followed_id)
            .on_conflict_do_nothing(index_elements=["follower_id", "followed_id"])
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) == 1

    async def delete_edge(self, follower_id: int, followed_id: int) -> bool:
        result = await self.session.execute(
            delete(Follow)
            .where(Follow.follower_id == follower_id, Follow.followed_id == followed_id)
            .execution_options(**BULK_OPTIONS)
        )
        return (result.rowcount or 0) > 0

    async def exists(self, follower_id: int, followed_id: int) -> bool:
        result = await self.session.execute(
            select(Follow.follower_id).where(
                Follow.follower_id == follower_id,
                Follow.followed_id == followed_id,
            )
        )
        return result.scalar_one_or_none() is not None

    async def page_follower_ids(
        self,
        followed_id: int,
        *,
        after_follower_id: int = 0,
        until_follower_id: Optional[int] = None,
        limit: int,
    ) -> list[int]:
        """One keyset page of follower ids, ascending. Never materializes the full set."""
        stmt = select(Follow.follower_id).where(
            Follow.followed_id == followed_id,
            Follow.follower_id > after_follower_id,
        )
        if until_follower_id is not None:
            stmt = stmt.where(Follow.follower_id <= until_follower_id)
        result = await self.session.execute(stmt.order_by(Follow.follower_id).limit(limit))
        return list(result.scalars().all())

    async def find_follower_id_at_offset(
        self, followed_id: int, *, after_follower_id: int, offset: int
    ) -> Optional[int]:
        """The follower id `offset` positions past after_follower_id, used to cut fan-out chunks."""
        result = await self.session.execute(
            select(Follow.follower_id)
            .where(Follow.followed_id == followed_id, Follow.follower_id > after_follower_id)
            .order_by(Follow.follower_id)
            .offset(offset)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_followed_ids(self, follower_id: int) -> list[int]:
        result = await self.session.execute(
            select(Follow.followed_id).where(Follow.follower_id == follower_id).order_by(Follow.followed_id)
        )
        return list(result.scalars().all())

    async def delete_all_for_account(self, account_id: int) -> int:
        result = await self.session.execute(
            delete(Follow)
            .where(or_(Follow.follower_id == account_id, Follow.followed_id == account_id))
            .execution_options(**BULK_OPTIONS)
        )
        return result.rowcount or 0
