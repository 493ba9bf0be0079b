from celery import Celery
from celery.schedules import crontab
from celery.signals import before_task_publish, task_prerun

from .config import settings
from .logging_config import trace_id_ctx

celery_app = Celery(
    "feed_engine",
    broker=settings.celery.broker_url,
    backend=settings.celery.result_backend,
    include=[
        "feed_engine.tasks.feed_tasks",
        "feed_engine.tasks.maintenance_tasks",
    ],
)

# Configure broker connection resilience
celery_app.conf.broker_connection_retry_on_startup = True
celery_app.conf.broker_connection_retry = True
celery_app.conf.broker_connection_max_retries = 30

# Unacked jobs are redelivered after this window; must exceed the longest chunk
celery_app.conf.broker_transport_options = {
    "visibility_timeout": 3600,
    "retry_on_timeout": True,
    "max_connections": 10,
}

celery_app.conf.result_backend_transport_options = {
    "retry_on_timeout": True,
    "max_connections": 10,
}

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Keep Celery from reconfiguring root logger; we configure in celery_worker.py
    worker_hijack_root_logger=False,
    worker_log_format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    worker_task_log_format="%(asctime)s | %(levelname)s | %(task_name)s[%(task_id)s] | %(message)s",
    worker_redirect_stdouts=True,
    worker_redirect_stdouts_level="WARNING",
    worker_log_color=False,
    worker_disable_rate_limits=True,
    task_routes={
        "feed_engine.tasks.feed_tasks.fan_out_post_task": {"queue": "feed_queue"},
        "feed_engine.tasks.feed_tasks.fan_out_chunk_task": {"queue": "feed_queue"},
        "feed_engine.tasks.feed_tasks.backfill_feed_task": {"queue": "feed_queue"},
        "feed_engine.tasks.feed_tasks.rebuild_owner_feed_task": {"queue": "maintenance_queue"},
        # Periodic jobs are routed explicitly so Celery Beat doesn't fall back to the default queue
        "feed_engine.tasks.maintenance_tasks.trim_feed_entries_task": {"queue": "maintenance_queue"},
        "feed_engine.tasks.maintenance_tasks.recompute_counters_task": {"queue": "maintenance_queue"},
        "feed_engine.tasks.maintenance_tasks.recompute_counter_batch_task": {"queue": "maintenance_queue"},
    },
    task_soft_time_limit=300,
    task_time_limit=600,
    worker_prefetch_multiplier=1,
    # At-least-once: a job is acked only after its handler returns
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_max_tasks_per_child=200,
    worker_cancel_long_running_tasks_on_connection_loss=True,
)

celery_app.conf.beat_schedule = {
    "trim-feed-entries": {
        "task": "feed_engine.tasks.maintenance_tasks.trim_feed_entries_task",
        "schedule": crontab(minute=30, hour=3),
    },
    "recompute-counters": {
        "task": "feed_engine.tasks.maintenance_tasks.recompute_counters_task",
        "schedule": crontab(minute=0, hour=4),
    },
}


# Propagate trace_id via Celery headers
@before_task_publish.connect
def add_trace_id_on_publish(headers=None, body=None, **kwargs):
    trace_id = trace_id_ctx.get()
    if trace_id and headers is not None:
        headers.setdefault("trace_id", trace_id)


@task_prerun.connect
def bind_trace_id_on_worker(task_id=None, task=None, **kwargs):
    headers = getattr(getattr(task, "request", None), "headers", None) or {}
    tid = headers.get("trace_id")
    if tid:
        trace_id_ctx.set(tid)
