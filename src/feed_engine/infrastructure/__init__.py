"""Infrastructure adapters (Celery, Redis)."""

from .task_queue import CeleryTaskQueue
from .cache import RedisCache

__all__ = ["CeleryTaskQueue", "RedisCache"]
