"""FeedEntry repository: the materialized timeline store."""

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import delete, exists, select, union
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository, BULK_OPTIONS, keyset_before
from ..models.feed_entry import FeedEntry
from ..models.post import Post
from ..utils.cursor import TimelineCursor


class FeedEntryRepository(BaseRepository[FeedEntry]):
    """Repository for FeedEntry rows.

    Writers only ever "ensure an entry exists": inserts skip rows that collide
    on (owner_id, post_id), which makes every job handler safe to re-run and
    lets concurrent fan-out and backfill race to the same end state.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(FeedEntry, session)

    async def insert_ignore_conflicts(self, rows: Sequence[dict]) -> int:
        """Insert rows, silently skipping existing (owner_id, post_id) pairs. Returns rows inserted."""
        if not rows:
            return 0
        stmt = (
            self._insert()
            .values(list(rows))
            .on_conflict_do_nothing(index_elements=["owner_id", "post_id"])
        )
        result = await self.session.execute(stmt)
        return max(result.rowcount or 0, 0)

    async def exists_for_owner(self, owner_id: int) -> bool:
        result = await self.session.execute(select(exists().where(FeedEntry.owner_id == owner_id)))
        return bool(result.scalar())

    async def page_materialized_timeline(
        self, owner_id: int, cursor: Optional[TimelineCursor], limit: int
    ) -> list[tuple[int, datetime]]:
        """Owner's feed entries merged with the owner's own top-level posts, newest first.

        Each side is limited before the merge so the scan stays bounded by the
        page size regardless of timeline length.
        """
        entries = select(FeedEntry.post_id.label("post_id"), FeedEntry.created_at.label("created_at")).where(
            FeedEntry.owner_id == owner_id
        )
        own_posts = select(Post.id.label("post_id"), Post.created_at.label("created_at")).where(
            Post.author_id == owner_id,
            Post.parent_id.is_(None),
        )
        if cursor is not None:
            entries = entries.where(keyset_before(FeedEntry.created_at, FeedEntry.post_id, cursor))
            own_posts = own_posts.where(keyset_before(Post.created_at, Post.id, cursor))

        entries_sq = entries.order_by(FeedEntry.created_at.desc(), FeedEntry.post_id.desc()).limit(limit).subquery()
        own_sq = own_posts.order_by(Post.created_at.desc(), Post.id.desc()).limit(limit).subquery()
        merged = union(
            select(entries_sq.c.post_id, entries_sq.c.created_at),
            select(own_sq.c.post_id, own_sq.c.created_at),
        ).subquery()

        result = await self.session.execute(
            select(merged.c.post_id, merged.c.created_at)
            .order_by(merged.c.created_at.desc(), merged.c.post_id.desc())
            .limit(limit)
        )
        return [(row.post_id, row.created_at) for row in result.all()]

    async def delete_for_owner_from_author(self, owner_id: int, author_id: int) -> int:
        result = await self.session.execute(
            delete(FeedEntry)
            .where(FeedEntry.owner_id == owner_id, FeedEntry.author_id == author_id)
            .execution_options(**BULK_OPTIONS)
        )
        return result.rowcount or 0

    async def delete_for_post(self, post_id: int) -> int:
        result = await self.session.execute(
            delete(FeedEntry).where(FeedEntry.post_id == post_id).execution_options(**BULK_OPTIONS)
        )
        return result.rowcount or 0

    async def delete_for_owner(self, owner_id: int) -> int:
        result = await self.session.execute(
            delete(FeedEntry).where(FeedEntry.owner_id == owner_id).execution_options(**BULK_OPTIONS)
        )
        return result.rowcount or 0

    async def delete_older_than(self, cutoff: datetime, batch_size: int) -> int:
        """Delete at most batch_size entries created before cutoff."""
        doomed = select(FeedEntry.id).where(FeedEntry.created_at < cutoff).limit(batch_size)
        result = await self.session.execute(
            delete(FeedEntry).where(FeedEntry.id.in_(doomed)).execution_options(**BULK_OPTIONS)
        )
        return result.rowcount or 0
