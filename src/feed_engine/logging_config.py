import os
import logging
import contextvars
from logging.config import dictConfig


class ChannelAliasFilter(logging.Filter):
    """Adds a friendly channel name to log records.

    Example mappings:
    - celery.app.trace -> celery
    - feed_engine.use_cases.fan_out_post -> fan_out_post
    Other names pass through unchanged.
    """

    NAME_MAP = {
        "celery.app.trace": "celery",
    }
    PACKAGE_PREFIX = "feed_engine."

    def filter(self, record: logging.LogRecord) -> bool:
        channel = self.NAME_MAP.get(record.name, record.name)
        if channel.startswith(self.PACKAGE_PREFIX):
            channel = channel.rsplit(".", 1)[-1]
        record.channel = channel
        return True


# Trace context
trace_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar("trace_id", default=None)


class TraceIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = trace_id_ctx.get() or "-"
        return True


def _resolve_log_level(default: str = "INFO") -> str:
    # Single source of truth: LOGS_LEVEL
    env_level = os.getenv("LOGS_LEVEL", "").strip().upper()
    if env_level in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        return env_level
    return default


def configure_logging() -> None:
    """Configure application-wide logging using stdlib logging.

    - Single console handler (plain text, no JSON)
    - Unify levels across the engine and celery
    - Keep existing loggers (disable_existing_loggers=False)
    """
    level = _resolve_log_level()

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "channel": {"()": "feed_engine.logging_config.ChannelAliasFilter"},
            "trace": {"()": "feed_engine.logging_config.TraceIdFilter"},
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s | %(levelname)-8s | %(channel)-20s | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "with_trace": {
                "format": "%(asctime)s | %(levelname)-8s | %(channel)-20s | [%(trace_id)s] | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "with_trace" if level == "DEBUG" else "default",
                "level": level,
                "stream": "ext://sys.stdout",
                "filters": ["channel", "trace"],
            },
        },
        "loggers": {
            "": {  # root
                "handlers": ["console"],
                "level": level,
            },
            # Celery loggers
            "celery": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            "celery.app.trace": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            "celery.pool": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
            "celery.bootsteps": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
            "celery.utils.functional": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
            "celery.worker": {
                "handlers": ["console"],
                "level": "INFO",
                "propagate": False,
            },
            # Constraint violations and pool warnings
            "sqlalchemy": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
            "redis": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
        },
    }

    dictConfig(config)
    logging.getLogger(__name__).debug("Logging configured with level %s", level)
