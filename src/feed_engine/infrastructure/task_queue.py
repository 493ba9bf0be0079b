"""
Task queue implementation using Celery.

This adapter decouples feed hooks and jobs from Celery infrastructure.
"""

import logging
from typing import Optional

from celery import Celery
from ..interfaces.services import ITaskQueue
from ..logging_config import trace_id_ctx
from ..schemas.jobs import FeedJob

logger = logging.getLogger(__name__)


class CeleryTaskQueue(ITaskQueue):
    """Celery-based implementation of ITaskQueue."""

    def __init__(self, celery_app: Celery):
        self.celery_app = celery_app

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
            task_name: Full task name (e.g., "feed_engine.tasks.feed_tasks.fan_out_post_task")
            *args: Positional arguments for the task
            countdown: Optional delay in seconds before execution
            **kwargs: Keyword arguments for the task

        Returns:
            Task ID
        """
        trace_id = trace_id_ctx.get()
        try:
            logger.debug(
                f"Enqueueing task | name={task_name} | trace_id={trace_id or '-'} | args={args} | kwargs={kwargs}"
            )

            task_kwargs = {}
            if countdown is not None:
                task_kwargs["countdown"] = countdown

            result = self.celery_app.send_task(
                task_name,
                args=args,
                kwargs=kwargs,
                headers={"trace_id": trace_id} if trace_id else None,
                **task_kwargs,
            )

            logger.info(
                "Task enqueued | name=%s | id=%s | trace_id=%s",
                task_name,
                result.id,
                trace_id or "-",
            )
            return result.id

        except Exception as e:
            logger.error(
                "Failed to enqueue task | name=%s | trace_id=%s | error=%s",
                task_name,
                trace_id or "-",
                e,
            )
            raise

    def enqueue_job(self, job: FeedJob, countdown: Optional[int] = None) -> str:
        """Enqueue a typed feed job; its fields travel as task kwargs."""
        return self.enqueue(job.task_name, countdown=countdown, **job.to_kwargs())
