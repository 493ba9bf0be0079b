"""Post repository for data access layer."""

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository, BULK_OPTIONS, keyset_before
from ..models.account import Account
from ..models.follow import Follow
from ..models.post import Post
from ..schemas.timeline import PostView
from ..utils.cursor import TimelineCursor


class PostRepository(BaseRepository[Post]):
    """Repository for Post operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Post, session)

    async def get_recent_top_level_by_author(self, author_id: int, limit: int) -> list[Post]:
        """Latest top-level posts by an author, newest first."""
        result = await self.session.execute(
            select(Post)
            .where(Post.author_id == author_id, Post.parent_id.is_(None))
            .order_by(Post.created_at.desc(), Post.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_views_by_ids(self, post_ids: Sequence[int]) -> dict[int, PostView]:
        """Resolve post ids to timeline views. Ids with no surviving post are simply absent."""
        if not post_ids:
            return {}
        # Plain columns, not entities: bulk updates leave identity-mapped posts stale
        result = await self.session.execute(
            select(
                Post.id,
                Post.author_id,
                Account.username.label("author_username"),
                Post.content,
                Post.parent_id,
                Post.created_at,
            )
            .outerjoin(Account, Account.id == Post.author_id)
            .where(Post.id.in_(post_ids))
        )
        return {row.id: PostView.model_validate(row) for row in result.all()}

    async def page_cold_timeline(
        self, owner_id: int, cursor: Optional[TimelineCursor], limit: int
    ) -> list[tuple[int, datetime]]:
        """Timeline computed by joining posts against the follow graph (no materialized rows)."""
        followed_ids = select(Follow.followed_id).where(Follow.follower_id == owner_id)
        stmt = select(Post.id, Post.created_at).where(
            Post.parent_id.is_(None),
            or_(Post.author_id == owner_id, Post.author_id.in_(followed_ids)),
        )
        if cursor is not None:
            stmt = stmt.where(keyset_before(Post.created_at, Post.id, cursor))
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return [(row.id, row.created_at) for row in result.all()]

    async def detach_replies(self, parent_id: int) -> list[int]:
        """Replies outlive their parent as top-level posts (parent_id set to NULL). Returns their ids."""
        result = await self.session.execute(select(Post.id).where(Post.parent_id == parent_id))
        reply_ids = list(result.scalars().all())
        if not reply_ids:
            return []
        # Evaluated in Python so replies already loaded in this session read as top-level
        await self.session.execute(
            update(Post)
            .where(Post.id.in_(reply_ids))
            .values(parent_id=None)
            .execution_options(synchronize_session="evaluate")
        )
        return reply_ids

    async def orphan_by_author(self, author_id: int) -> int:
        """Null the author of every post by a deleted account. Posts stay visible."""
        result = await self.session.execute(
            update(Post).where(Post.author_id == author_id).values(author_id=None).execution_options(**BULK_OPTIONS)
        )
        return result.rowcount or 0

    async def delete_by_id(self, post_id: int) -> int:
        result = await self.session.execute(
            delete(Post).where(Post.id == post_id).execution_options(**BULK_OPTIONS)
        )
        return result.rowcount or 0
