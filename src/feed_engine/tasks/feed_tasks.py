"""Feed materialization tasks: fan-out, chunked fan-out, backfill and rebuild."""

import logging
from typing import Optional

from ..celery_app import celery_app
from ..constants.retry_policy import FEED_MAX_RETRIES, FEED_RETRY_SCHEDULE
from ..container import get_container
from ..utils.task_helpers import async_task, get_db_session, get_retry_delay

logger = logging.getLogger(__name__)


def _retry_or_return(task, result: dict, context: str):
    """Reschedule the task on a retryable result; otherwise hand the result back."""
    if result["status"] == "retry" and task.request.retries < task.max_retries:
        delay = get_retry_delay(task.request.retries, FEED_RETRY_SCHEDULE)
        logger.warning(
            f"Retrying task | {context} | retry={task.request.retries} | "
            f"reason={result.get('reason', 'unknown')} | next_delay={delay}s"
        )
        raise task.retry(countdown=delay)

    if result["status"] in {"retry", "error"}:
        logger.error(f"Task failed | {context} | status={result['status']} | reason={result.get('reason', 'unknown')}")
    else:
        logger.info(f"Task completed | {context} | status={result['status']}")
    return result


@celery_app.task(bind=True, max_retries=FEED_MAX_RETRIES)
@async_task
async def fan_out_post_task(self, post_id: int):
    """Insert one feed entry per current follower of the post's author."""
    logger.info(f"Task started | post_id={post_id} | retry={self.request.retries}/{self.max_retries}")

    async with get_db_session() as session:
        container = get_container()
        use_case = container.fan_out_post_use_case(session=session)
        result = await use_case.execute(post_id)

    return _retry_or_return(self, result, f"post_id={post_id}")


@celery_app.task(bind=True, max_retries=FEED_MAX_RETRIES)
@async_task
async def fan_out_chunk_task(
    self, post_id: int, after_follower_id: int = 0, until_follower_id: Optional[int] = None
):
    """Fan a post out to one follower id range."""
    logger.info(
        f"Task started | post_id={post_id} | range=({after_follower_id}, {until_follower_id}] | "
        f"retry={self.request.retries}/{self.max_retries}"
    )

    async with get_db_session() as session:
        container = get_container()
        use_case = container.fan_out_chunk_use_case(session=session)
        result = await use_case.execute(post_id, after_follower_id, until_follower_id)

    return _retry_or_return(self, result, f"post_id={post_id} | after_follower_id={after_follower_id}")


@celery_app.task(bind=True, max_retries=FEED_MAX_RETRIES)
@async_task
async def backfill_feed_task(self, follower_id: int, followed_id: int):
    """Copy the followee's most recent posts into the follower's feed."""
    logger.info(
        f"Task started | follower_id={follower_id} | followed_id={followed_id} | "
        f"retry={self.request.retries}/{self.max_retries}"
    )

    async with get_db_session() as session:
        container = get_container()
        use_case = container.backfill_feed_use_case(session=session)
        result = await use_case.execute(follower_id, followed_id)

    return _retry_or_return(self, result, f"follower_id={follower_id} | followed_id={followed_id}")


@celery_app.task(bind=True, max_retries=FEED_MAX_RETRIES)
@async_task
async def rebuild_owner_feed_task(self, owner_id: int):
    """Backfill an existing account's feed from every account it follows."""
    async with get_db_session() as session:
        container = get_container()
        use_case = container.rebuild_owner_feed_use_case(session=session)
        result = await use_case.execute(owner_id)

    return _retry_or_return(self, result, f"owner_id={owner_id}")
