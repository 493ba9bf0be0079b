"""
Service protocols for dependency injection.

Use cases depend on these abstractions rather than on Celery or Redis directly.
"""

from typing import Optional, Protocol

from ..schemas.jobs import FeedJob
from ..schemas.timeline import TimelinePage
from ..utils.cursor import TimelineCursor


class ITaskQueue(Protocol):
    """Protocol for task queue abstraction (decouples from Celery)."""

    def enqueue(
        self,
        task_name: str,
        *args,
        countdown: Optional[int] = None,
        **kwargs,
    ) -> str:
        """
        Enqueue a task for background processing.

        Args:
            task_name: Name of the task to execute
            *args: Positional arguments for the task
            countdown: Optional delay in seconds before execution
            **kwargs: Keyword arguments for the task

        Returns:
            Task ID or reference
        """
        ...

    def enqueue_job(self, job: FeedJob, countdown: Optional[int] = None) -> str:
        """Enqueue a typed job payload under its task name."""
        ...


class ICache(Protocol):
    """Key-value cache. Implementations report failures as misses, never raise."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str, ttl: int) -> bool:
        ...

    async def delete(self, key: str) -> bool:
        ...

    async def incr(self, key: str) -> Optional[int]:
        ...

    async def expire(self, key: str, ttl: int) -> bool:
        ...


class ITimelineReader(Protocol):
    async def read_page(
        self, owner_id: int, cursor: Optional[TimelineCursor], page_size: int
    ) -> TimelinePage:
        ...
