"""Use case for reading a home timeline page."""

import logging
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.services import ITimelineReader
from ..schemas.timeline import TimelinePage, TimelineSource
from ..services.timeline_cache import TimelineCache
from ..utils.cursor import decode_cursor

logger = logging.getLogger(__name__)


class GetTimelineUseCase:
    """
    Cache-fronted timeline read.

    Only materialized pages are cached; cold-path pages are recomputed on each
    read until fan-out or backfill gives the owner feed entries. Raises
    InvalidCursorError for tokens this engine did not issue.
    """

    def __init__(
        self,
        session: AsyncSession,
        timeline_reader_factory: Callable[..., ITimelineReader],
        timeline_cache: TimelineCache,
        default_page_size: int,
        max_page_size: int,
    ):
        self.session = session
        self.reader: ITimelineReader = timeline_reader_factory(session=session)
        self.timeline_cache = timeline_cache
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def _page_size(self, page_size: Optional[int]) -> int:
        if page_size is None:
            return self.default_page_size
        return max(1, min(page_size, self.max_page_size))

    async def execute(
        self, owner_id: int, cursor: Optional[str] = None, page_size: Optional[int] = None
    ) -> TimelinePage:
        size = self._page_size(page_size)
        decoded = decode_cursor(cursor)
        # Re-encode so equivalent tokens share one cache key
        cursor_token = decoded.encode() if decoded is not None else None

        generation = await self.timeline_cache.current_generation(owner_id)
        cached = await self.timeline_cache.get_page(owner_id, generation, cursor_token, size)
        if cached is not None:
            logger.debug(f"Timeline cache hit | owner_id={owner_id} | page_size={size}")
            return cached

        page = await self.reader.read_page(owner_id, decoded, size)
        if page.source is TimelineSource.MATERIALIZED:
            await self.timeline_cache.store_page(owner_id, generation, cursor_token, size, page)

        logger.debug(
            f"Timeline served | owner_id={owner_id} | source={page.source.value} | "
            f"posts={len(page.posts)} | has_next={page.has_next}"
        )
        return page
