"""Use cases for detecting and repairing counter cache drift."""

import logging
from typing import Any, Callable, Dict, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import IAccountRepository
from ..interfaces.services import ITaskQueue
from ..schemas.jobs import RecomputeCounterBatchJob
from ..services.account_summary import AccountSummaryService
from ..utils.decorators import handle_task_errors

logger = logging.getLogger(__name__)


class PlanCounterRecomputeUseCase:
    """Walk all accounts in id order and enqueue one repair job per batch."""

    def __init__(
        self,
        session: AsyncSession,
        account_repository_factory: Callable[..., IAccountRepository],
        task_queue: ITaskQueue,
        batch_size: int,
    ):
        self.session = session
        self.account_repo: IAccountRepository = account_repository_factory(session=session)
        self.task_queue = task_queue
        self.batch_size = batch_size

    @handle_task_errors()
    async def execute(self) -> Dict[str, Any]:
        batches = 0
        accounts = 0
        async for account_ids in self.account_repo.iter_id_batches(self.batch_size):
            self.task_queue.enqueue_job(RecomputeCounterBatchJob(account_ids=account_ids))
            batches += 1
            accounts += len(account_ids)

        logger.info(f"Counter recompute planned | batches={batches} | accounts={accounts}")
        return {"status": "success", "batches": batches, "accounts": accounts}


class RecomputeCounterBatchUseCase:
    """Overwrite cached counters with true counts for a batch of accounts. Idempotent."""

    def __init__(
        self,
        session: AsyncSession,
        account_repository_factory: Callable[..., IAccountRepository],
        account_summaries: AccountSummaryService,
    ):
        self.session = session
        self.account_repo: IAccountRepository = account_repository_factory(session=session)
        self.account_summaries = account_summaries

    @handle_task_errors()
    async def execute(self, account_ids: Sequence[int]) -> Dict[str, Any]:
        drift = await self.account_repo.find_counter_drift(account_ids)
        for row in drift:
            logger.warning(
                f"Counter drift detected | account_id={row['account_id']} | "
                f"followers={row['followers_count']} | following={row['following_count']} | "
                f"posts={row['posts_count']}"
            )

        updated = await self.account_repo.recompute_counters(account_ids)
        await self.session.commit()

        drifted_ids = [row["account_id"] for row in drift]
        if drifted_ids:
            await self.account_summaries.invalidate(*drifted_ids)

        logger.info(f"Counters recomputed | accounts={updated} | drifted={len(drifted_ids)}")
        return {"status": "success", "accounts": updated, "drifted": drifted_ids}
