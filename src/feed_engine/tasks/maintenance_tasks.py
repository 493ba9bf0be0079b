"""Periodic maintenance: feed retention and counter drift repair."""

import logging

from ..celery_app import celery_app
from ..constants.retry_policy import MAINTENANCE_MAX_RETRIES, MAINTENANCE_RETRY_SCHEDULE
from ..container import get_container
from ..utils.task_helpers import async_task, get_db_session, get_retry_delay

logger = logging.getLogger(__name__)


async def trim_feed_entries_task_async():
    async with get_db_session() as session:
        container = get_container()
        use_case = container.trim_feed_entries_use_case(session=session)
        return await use_case.execute()


async def recompute_counters_task_async():
    async with get_db_session() as session:
        container = get_container()
        use_case = container.plan_counter_recompute_use_case(session=session)
        return await use_case.execute()


@celery_app.task(bind=True, max_retries=MAINTENANCE_MAX_RETRIES)
@async_task
async def trim_feed_entries_task(self):
    """Delete feed entries older than the retention window."""
    result = await trim_feed_entries_task_async()
    if result["status"] == "retry" and self.request.retries < self.max_retries:
        raise self.retry(countdown=get_retry_delay(self.request.retries, MAINTENANCE_RETRY_SCHEDULE))
    logger.info(f"Retention run finished | status={result['status']} | deleted={result.get('deleted', 0)}")
    return result


@celery_app.task(bind=True, max_retries=MAINTENANCE_MAX_RETRIES)
@async_task
async def recompute_counters_task(self):
    """Enqueue counter repair for every account, one job per id batch."""
    result = await recompute_counters_task_async()
    if result["status"] == "retry" and self.request.retries < self.max_retries:
        raise self.retry(countdown=get_retry_delay(self.request.retries, MAINTENANCE_RETRY_SCHEDULE))
    logger.info(f"Counter recompute planned | status={result['status']} | batches={result.get('batches', 0)}")
    return result


@celery_app.task(bind=True, max_retries=MAINTENANCE_MAX_RETRIES)
@async_task
async def recompute_counter_batch_task(self, account_ids: list[int]):
    """Reset cached counters for one batch of accounts from COUNT(*)."""
    async with get_db_session() as session:
        container = get_container()
        use_case = container.recompute_counter_batch_use_case(session=session)
        result = await use_case.execute(account_ids)

    if result["status"] == "retry" and self.request.retries < self.max_retries:
        delay = get_retry_delay(self.request.retries, MAINTENANCE_RETRY_SCHEDULE)
        logger.warning(f"Retrying counter batch | accounts={len(account_ids)} | next_delay={delay}s")
        raise self.retry(countdown=delay)
    if result["status"] == "error":
        logger.error(f"Counter batch failed | accounts={len(account_ids)} | reason={result.get('reason')}")
    return result
