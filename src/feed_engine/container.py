"""
Dependency Injection Container.

Centralizes wiring of repositories, services and use cases so tasks and
tests resolve collaborators from one place.
"""

from dependency_injector import containers, providers
from redis import asyncio as redis_async

from .config import settings

# Infrastructure
from .infrastructure.task_queue import CeleryTaskQueue
from .infrastructure.cache import RedisCache
from .celery_app import celery_app
from .models.db_helper import db_helper

# Services
from .services.timeline_reader import TimelineReader
from .services.timeline_cache import TimelineCache
from .services.account_summary import AccountSummaryService
from .services.feed_events import FeedEventService

# Use cases
from .use_cases.publish_post import PublishPostUseCase
from .use_cases.delete_post import DeletePostUseCase
from .use_cases.follow_account import FollowAccountUseCase
from .use_cases.unfollow_account import UnfollowAccountUseCase
from .use_cases.delete_account import DeleteAccountUseCase
from .use_cases.fan_out_post import FanOutPostUseCase, FanOutChunkUseCase
from .use_cases.backfill_feed import BackfillFeedUseCase, RebuildOwnerFeedUseCase
from .use_cases.get_timeline import GetTimelineUseCase
from .use_cases.recompute_counters import PlanCounterRecomputeUseCase, RecomputeCounterBatchUseCase
from .use_cases.trim_feed_entries import TrimFeedEntriesUseCase

# Repositories
from .repositories.account import AccountRepository
from .repositories.post import PostRepository
from .repositories.follow import FollowRepository
from .repositories.feed_entry import FeedEntryRepository


class Container(containers.DeclarativeContainer):
    """
    Application DI container.

    Connections and stateless services are singletons; anything bound to a
    database session is a factory and receives ``session`` at call time.
    """

    # Infrastructure - Singleton
    task_queue = providers.Singleton(
        CeleryTaskQueue,
        celery_app=celery_app,
    )

    cache_redis = providers.Singleton(
        redis_async.Redis.from_url,
        settings.cache.redis_url,
        socket_timeout=settings.cache.socket_timeout_seconds,
        socket_connect_timeout=settings.cache.socket_timeout_seconds,
    )

    cache = providers.Singleton(
        RedisCache,
        redis_client=cache_redis,
    )

    # Database infrastructure
    database_helper = providers.Object(db_helper)
    db_engine = providers.Callable(lambda helper: helper.engine, database_helper)
    db_session_factory = providers.Callable(lambda helper: helper.session_factory, database_helper)

    # Repository factories
    account_repository_factory = providers.Factory(AccountRepository)
    post_repository_factory = providers.Factory(PostRepository)
    follow_repository_factory = providers.Factory(FollowRepository)
    feed_entry_repository_factory = providers.Factory(FeedEntryRepository)

    # Services
    timeline_cache = providers.Singleton(
        TimelineCache,
        cache=cache,
        ttl_seconds=settings.cache.timeline_ttl_seconds,
    )

    account_summary_service = providers.Singleton(
        AccountSummaryService,
        cache=cache,
        account_repository_factory=account_repository_factory.provider,
        ttl_seconds=settings.cache.account_summary_ttl_seconds,
    )

    feed_event_service = providers.Singleton(
        FeedEventService,
        task_queue=task_queue,
        feed_entry_repository_factory=feed_entry_repository_factory.provider,
    )

    # session is injected at runtime
    timeline_reader = providers.Factory(
        TimelineReader,
        post_repository_factory=post_repository_factory.provider,
        feed_entry_repository_factory=feed_entry_repository_factory.provider,
    )

    # Use Cases - Factory (new instance per call, session injected at runtime)

    publish_post_use_case = providers.Factory(
        PublishPostUseCase,
        account_repository_factory=account_repository_factory.provider,
        post_repository_factory=post_repository_factory.provider,
        feed_events=feed_event_service,
        account_summaries=account_summary_service,
    )

    delete_post_use_case = providers.Factory(
        DeletePostUseCase,
        account_repository_factory=account_repository_factory.provider,
        post_repository_factory=post_repository_factory.provider,
        feed_events=feed_event_service,
        account_summaries=account_summary_service,
    )

    follow_account_use_case = providers.Factory(
        FollowAccountUseCase,
        account_repository_factory=account_repository_factory.provider,
        follow_repository_factory=follow_repository_factory.provider,
        feed_events=feed_event_service,
        account_summaries=account_summary_service,
    )

    unfollow_account_use_case = providers.Factory(
        UnfollowAccountUseCase,
        account_repository_factory=account_repository_factory.provider,
        follow_repository_factory=follow_repository_factory.provider,
        feed_events=feed_event_service,
        timeline_cache=timeline_cache,
        account_summaries=account_summary_service,
    )

    delete_account_use_case = providers.Factory(
        DeleteAccountUseCase,
        account_repository_factory=account_repository_factory.provider,
        follow_repository_factory=follow_repository_factory.provider,
        post_repository_factory=post_repository_factory.provider,
        feed_entry_repository_factory=feed_entry_repository_factory.provider,
        account_summaries=account_summary_service,
    )

    fan_out_post_use_case = providers.Factory(
        FanOutPostUseCase,
        post_repository_factory=post_repository_factory.provider,
        follow_repository_factory=follow_repository_factory.provider,
        feed_entry_repository_factory=feed_entry_repository_factory.provider,
        task_queue=task_queue,
        batch_size=settings.feed.fan_out_batch_size,
        chunk_size=settings.feed.fan_out_chunk_size,
        visibility_sla_seconds=settings.feed.fan_out_visibility_sla_seconds,
    )

    fan_out_chunk_use_case = providers.Factory(
        FanOutChunkUseCase,
        post_repository_factory=post_repository_factory.provider,
        follow_repository_factory=follow_repository_factory.provider,
        feed_entry_repository_factory=feed_entry_repository_factory.provider,
        batch_size=settings.feed.fan_out_batch_size,
        visibility_sla_seconds=settings.feed.fan_out_visibility_sla_seconds,
    )

    backfill_feed_use_case = providers.Factory(
        BackfillFeedUseCase,
        follow_repository_factory=follow_repository_factory.provider,
        post_repository_factory=post_repository_factory.provider,
        feed_entry_repository_factory=feed_entry_repository_factory.provider,
        limit=settings.feed.backfill_limit,
    )

    rebuild_owner_feed_use_case = providers.Factory(
        RebuildOwnerFeedUseCase,
        account_repository_factory=account_repository_factory.provider,
        follow_repository_factory=follow_repository_factory.provider,
        post_repository_factory=post_repository_factory.provider,
        feed_entry_repository_factory=feed_entry_repository_factory.provider,
        limit=settings.feed.backfill_limit,
    )

    get_timeline_use_case = providers.Factory(
        GetTimelineUseCase,
        timeline_reader_factory=timeline_reader.provider,
        timeline_cache=timeline_cache,
        default_page_size=settings.feed.default_page_size,
        max_page_size=settings.feed.max_page_size,
    )

    plan_counter_recompute_use_case = providers.Factory(
        PlanCounterRecomputeUseCase,
        account_repository_factory=account_repository_factory.provider,
        task_queue=task_queue,
        batch_size=settings.counters.backfill_batch_size,
    )

    recompute_counter_batch_use_case = providers.Factory(
        RecomputeCounterBatchUseCase,
        account_repository_factory=account_repository_factory.provider,
        account_summaries=account_summary_service,
    )

    trim_feed_entries_use_case = providers.Factory(
        TrimFeedEntriesUseCase,
        feed_entry_repository_factory=feed_entry_repository_factory.provider,
        retention_days=settings.feed.retention_days,
        batch_size=settings.feed.retention_batch_size,
    )


# Global container instance
container = Container()


def get_container() -> Container:
    """Get the global container instance."""
    return container


def reset_container():
    """
    Reset container for testing.

    Clears all singletons and allows fresh initialization.
    """
    container.reset_singletons()
