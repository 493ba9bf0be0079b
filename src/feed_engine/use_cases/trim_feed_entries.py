"""Use case for the feed entry retention job."""

import logging
from typing import Any, Callable, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import IFeedEntryRepository
from ..utils.decorators import handle_task_errors
from ..utils.time import db_utc_days_ago

logger = logging.getLogger(__name__)


class TrimFeedEntriesUseCase:
    """Delete feed entries past the retention window in bounded, separately committed batches."""

    def __init__(
        self,
        session: AsyncSession,
        feed_entry_repository_factory: Callable[..., IFeedEntryRepository],
        retention_days: int,
        batch_size: int,
    ):
        self.session = session
        self.feed_entry_repo: IFeedEntryRepository = feed_entry_repository_factory(session=session)
        self.retention_days = retention_days
        self.batch_size = batch_size

    @handle_task_errors()
    async def execute(self) -> Dict[str, Any]:
        cutoff = db_utc_days_ago(self.retention_days)
        deleted = 0
        while True:
            batch = await self.feed_entry_repo.delete_older_than(cutoff, self.batch_size)
            await self.session.commit()
            deleted += batch
            if batch < self.batch_size:
                break

        logger.info(f"Feed entries trimmed | cutoff={cutoff.isoformat()} | deleted={deleted}")
        return {"status": "success", "deleted": deleted, "cutoff": cutoff.isoformat()}
