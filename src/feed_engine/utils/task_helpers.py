"""Task utility helpers for Celery async tasks."""

import asyncio
import logging
from contextlib import asynccontextmanager
from functools import wraps
from typing import Callable, Optional, Sequence

from ..constants.retry_policy import FEED_RETRY_SCHEDULE
from ..container import get_container

logger = logging.getLogger(__name__)


def _get_worker_event_loop() -> asyncio.AbstractEventLoop:
    """
    Provide a stable event loop for Celery worker processes.

    asyncpg connections are bound to the loop that created them, so every
    task in a worker process must run on the same loop.
    """
    loop = getattr(_get_worker_event_loop, "_loop", None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        _get_worker_event_loop._loop = loop  # type: ignore[attr-defined]
    return loop


def _close_worker_event_loop() -> None:
    """Close the cached worker event loop (used in tests to avoid warnings)."""
    loop: Optional[asyncio.AbstractEventLoop] = getattr(_get_worker_event_loop, "_loop", None)  # type: ignore[attr-defined]
    if loop is not None and not loop.is_closed():
        loop.close()
        asyncio.set_event_loop(None)
    if hasattr(_get_worker_event_loop, "_loop"):
        delattr(_get_worker_event_loop, "_loop")


def async_task(celery_task_func: Callable):
    """Decorator for Celery tasks that run async functions on the worker loop."""

    @wraps(celery_task_func)
    def wrapper(*args, **kwargs):
        loop = _get_worker_event_loop()
        asyncio.set_event_loop(loop)
        return loop.run_until_complete(celery_task_func(*args, **kwargs))

    return wrapper


@asynccontextmanager
async def get_db_session():
    """Context manager for database session using container-managed session factory."""
    container = get_container()
    session_factory = container.db_session_factory()

    async with session_factory() as session:
        yield session


def get_retry_delay(retry_index: int, schedule: Sequence[int] | None = None) -> int:
    """Return the delay for the given retry index using the provided schedule."""
    delays = schedule or FEED_RETRY_SCHEDULE
    if retry_index < 0:
        retry_index = 0
    return delays[min(retry_index, len(delays) - 1)]
