"""Cached account profile summaries (counter caches)."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import IAccountRepository
from ..interfaces.services import ICache
from ..schemas.account import AccountSummary

logger = logging.getLogger(__name__)


class AccountSummaryService:
    """Read-through cache for a single account's summary, keyed by `user:{id}`.

    Unlike timeline pages, one key covers the whole summary, so it is deleted
    whenever one of its counters changes.
    """

    def __init__(
        self,
        cache: ICache,
        account_repository_factory: Callable[..., IAccountRepository],
        ttl_seconds: int,
    ):
        self.cache = cache
        self.account_repository_factory = account_repository_factory
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def cache_key(account_id: int) -> str:
        return f"user:{account_id}"

    async def get_summary(self, account_id: int, session: AsyncSession) -> Optional[AccountSummary]:
        key = self.cache_key(account_id)
        raw = await self.cache.get(key)
        if raw is not None:
            try:
                return AccountSummary.model_validate_json(raw)
            except ValidationError:
                logger.warning(f"Discarding unreadable account summary | account_id={account_id}")

        account_repo = self.account_repository_factory(session=session)
        account = await account_repo.get_by_id(account_id)
        if account is None:
            return None

        summary = AccountSummary.model_validate(account)
        await self.cache.set(key, summary.model_dump_json(), self.ttl_seconds)
        return summary

    async def invalidate(self, *account_ids: int) -> None:
        for account_id in account_ids:
            await self.cache.delete(self.cache_key(account_id))
