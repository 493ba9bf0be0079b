"""Dual-path home timeline reader."""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import IFeedEntryRepository, IPostRepository
from ..schemas.timeline import TimelinePage, TimelineSource
from ..utils.cursor import TimelineCursor

logger = logging.getLogger(__name__)


class TimelineReader:
    """
    Serve one page of an owner's home timeline.

    Owners with materialized entries are read from feed_entries; owners with
    none yet (never followed anyone before fan-out existed, or pre-migration
    accounts) are served by joining posts against the follow graph. Both paths
    share ordering, cursor and page semantics so a caller cannot tell them apart.
    """

    def __init__(
        self,
        session: AsyncSession,
        post_repository_factory: Callable[..., IPostRepository],
        feed_entry_repository_factory: Callable[..., IFeedEntryRepository],
    ):
        self.session = session
        self.post_repo: IPostRepository = post_repository_factory(session=session)
        self.feed_entry_repo: IFeedEntryRepository = feed_entry_repository_factory(session=session)

    async def resolve_source(self, owner_id: int) -> TimelineSource:
        if await self.feed_entry_repo.exists_for_owner(owner_id):
            return TimelineSource.MATERIALIZED
        return TimelineSource.COLD

    async def read_page(
        self, owner_id: int, cursor: Optional[TimelineCursor], page_size: int
    ) -> TimelinePage:
        source = await self.resolve_source(owner_id)

        # One extra row tells us whether another page exists
        if source is TimelineSource.MATERIALIZED:
            rows = await self.feed_entry_repo.page_materialized_timeline(owner_id, cursor, page_size + 1)
        else:
            logger.debug(f"Serving cold timeline | owner_id={owner_id}")
            rows = await self.post_repo.page_cold_timeline(owner_id, cursor, page_size + 1)

        has_next = len(rows) > page_size
        rows = rows[:page_size]
        return TimelinePage(
            posts=await self._resolve_posts(owner_id, rows),
            next_cursor=self._next_cursor(rows) if has_next else None,
            has_next=has_next,
            source=source,
        )

    async def _resolve_posts(self, owner_id: int, rows: list[tuple[int, datetime]]):
        views = await self.post_repo.get_views_by_ids([post_id for post_id, _ in rows])
        posts = []
        for post_id, _ in rows:
            view = views.get(post_id)
            if view is None:
                # Entry outlived its post; cleanup will remove it
                logger.warning(f"Skipping unresolvable timeline entry | owner_id={owner_id} | post_id={post_id}")
                continue
            posts.append(view)
        return posts

    @staticmethod
    def _next_cursor(rows: list[tuple[int, datetime]]) -> Optional[str]:
        if not rows:
            return None
        post_id, created_at = rows[-1]
        return TimelineCursor(created_at=created_at, post_id=post_id).encode()
