"""Common decorators for error handling in use cases."""

import logging
from functools import wraps
from typing import Callable, Any, Dict

from sqlalchemy.exc import InterfaceError, OperationalError, TimeoutError as PoolTimeoutError

logger = logging.getLogger(__name__)

# Failures where re-running the same idempotent job later is expected to succeed
TRANSIENT_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError, TimeoutError, ConnectionError)


def handle_task_errors(error_status: str = "error", retry_status: str = "retry"):
    """
    Decorator for consistent error handling in job use cases.

    Transient store failures become ``retry_status`` so the Celery task can
    reschedule; anything else becomes ``error_status`` with a logged traceback.
    Exceptions flagged with ``should_reraise`` propagate unchanged.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Dict[str, Any]:
            try:
                return await func(*args, **kwargs)
            except TRANSIENT_ERRORS as exc:
                logger.warning(f"Transient failure in {func.__qualname__}: {exc}")
                return {"status": retry_status, "reason": str(exc)}
            except Exception as exc:
                if getattr(exc, "should_reraise", False):
                    raise
                logger.exception(f"Error in {func.__qualname__}: {exc}")
                return {"status": error_status, "reason": str(exc)}

        return wrapper

    return decorator
