"""Read-through cache for timeline pages."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from ..interfaces.services import ICache
from ..schemas.timeline import TimelinePage

logger = logging.getLogger(__name__)

FIRST_PAGE = "first"
GENERATION_TTL_FACTOR = 2


class TimelineCache:
    """
    Short-TTL cache of materialized timeline pages.

    Pages expire on their own; nothing enumerates cursor variants to delete
    them. The one exception is unfollow: bumping the owner's generation key
    moves every later read to fresh keys, so pages that still show the
    unfollowed author are never served again.
    """

    def __init__(self, cache: ICache, ttl_seconds: int):
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def generation_key(owner_id: int) -> str:
        return f"user_feed_generation:{owner_id}"

    @staticmethod
    def page_key(owner_id: int, generation: int, cursor_token: Optional[str], page_size: int) -> str:
        return f"user_feed:{owner_id}:v{generation}:{cursor_token or FIRST_PAGE}:{page_size}"

    async def current_generation(self, owner_id: int) -> int:
        """Read once per request and pass to both get_page and store_page."""
        raw = await self.cache.get(self.generation_key(owner_id))
        try:
            return int(raw) if raw is not None else 0
        except ValueError:
            logger.warning(f"Malformed timeline generation | owner_id={owner_id} | value={raw!r}")
            return 0

    async def get_page(
        self, owner_id: int, generation: int, cursor_token: Optional[str], page_size: int
    ) -> Optional[TimelinePage]:
        raw = await self.cache.get(self.page_key(owner_id, generation, cursor_token, page_size))
        if raw is None:
            return None
        try:
            return TimelinePage.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning(f"Discarding unreadable cached page | owner_id={owner_id} | error={exc}")
            return None

    async def store_page(
        self,
        owner_id: int,
        generation: int,
        cursor_token: Optional[str],
        page_size: int,
        page: TimelinePage,
    ) -> bool:
        """Store under the generation observed before the page was read.

        An unfollow that lands mid-read bumps the generation, so the page
        lands under a key no later read will ask for.
        """
        stored = await self.cache.set(
            self.page_key(owner_id, generation, cursor_token, page_size),
            page.model_dump_json(),
            self.ttl_seconds,
        )
        if stored and generation:
            await self._extend_generation(owner_id)
        return stored

    async def invalidate_owner(self, owner_id: int) -> Optional[int]:
        generation = await self.cache.incr(self.generation_key(owner_id))
        if generation is not None:
            await self._extend_generation(owner_id)
        logger.debug(f"Timeline generation bumped | owner_id={owner_id} | generation={generation}")
        return generation

    async def _extend_generation(self, owner_id: int) -> None:
        # Must outlive every page stored under it, or a reset to 0 could revive old keys
        await self.cache.expire(self.generation_key(owner_id), self.ttl_seconds * GENERATION_TTL_FACTOR)
