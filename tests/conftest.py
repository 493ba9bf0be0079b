"""
Pytest configuration and shared fixtures for all tests.

This file provides:
- Database fixtures (in-memory SQLite for fast tests)
- Test data factories
- Recording task queue and fakeredis-backed cache
- Service fixtures wired the way the container wires them
"""

import os
import sys
from datetime import datetime, timedelta
from typing import Any, AsyncGenerator, Optional

import pytest

# Prepopulate required env vars for settings before imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("CACHE_REDIS_URL", "redis://localhost:6379/15")

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from faker import Faker
from fakeredis.aioredis import FakeRedis
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from feed_engine.infrastructure.cache import RedisCache
from feed_engine.models import Account, FeedEntry, Follow, Post
from feed_engine.models.base import Base
from feed_engine.repositories import (
    AccountRepository,
    FeedEntryRepository,
    FollowRepository,
    PostRepository,
)
from feed_engine.services.account_summary import AccountSummaryService
from feed_engine.services.feed_events import FeedEventService
from feed_engine.services.timeline_cache import TimelineCache
from feed_engine.services.timeline_reader import TimelineReader

fake = Faker()

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0)


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture
async def test_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# ============================================================================
# TEST DATA FACTORIES
# ============================================================================


@pytest.fixture
def account_factory(db_session):
    """Factory for creating test accounts."""

    async def _create_account(username: Optional[str] = None, **kwargs) -> Account:
        account = Account(
            username=username or f"{fake.user_name()}_{fake.unique.random_int(1, 10**9)}",
            followers_count=kwargs.get("followers_count", 0),
            following_count=kwargs.get("following_count", 0),
            posts_count=kwargs.get("posts_count", 0),
        )
        db_session.add(account)
        await db_session.commit()
        await db_session.refresh(account)
        return account

    return _create_account


@pytest.fixture
def post_factory(db_session):
    """Factory for creating posts with explicit, strictly increasing timestamps."""
    state = {"tick": 0}

    async def _create_post(
        author: Optional[Account] = None,
        *,
        author_id: Optional[int] = None,
        content: Optional[str] = None,
        parent_id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ) -> Post:
        if created_at is None:
            state["tick"] += 1
            created_at = BASE_TIME + timedelta(minutes=state["tick"])
        post = Post(
            author_id=author.id if author is not None else author_id,
            content=content or fake.sentence()[:200],
            parent_id=parent_id,
            created_at=created_at,
        )
        db_session.add(post)
        await db_session.commit()
        await db_session.refresh(post)
        return post

    return _create_post


@pytest.fixture
def follow_factory(db_session):
    """Factory for follow edges. Counters are left alone unless asked."""

    async def _create_follow(follower: Account, followed: Account, *, with_counters: bool = False) -> Follow:
        follow = Follow(follower_id=follower.id, followed_id=followed.id)
        db_session.add(follow)
        if with_counters:
            repo = AccountRepository(db_session)
            await repo.adjust_counters(follower.id, following=1)
            await repo.adjust_counters(followed.id, followers=1)
        await db_session.commit()
        return follow

    return _create_follow


@pytest.fixture
def feed_entry_factory(db_session):
    """Factory for materialized entries copied from a post."""

    async def _create_entry(owner: Account, post: Post) -> FeedEntry:
        entry = FeedEntry(
            owner_id=owner.id,
            post_id=post.id,
            author_id=post.author_id,
            created_at=post.created_at,
        )
        db_session.add(entry)
        await db_session.commit()
        await db_session.refresh(entry)
        return entry

    return _create_entry


# ============================================================================
# INFRASTRUCTURE FIXTURES
# ============================================================================


class RecordingTaskQueue:
    """In-memory ITaskQueue that records every enqueue for assertions."""

    def __init__(self, *, raise_error: Optional[Exception] = None):
        self.calls: list[dict[str, Any]] = []
        self.raise_error = raise_error

    def enqueue(self, task_name: str, *args, countdown: Optional[int] = None, **kwargs) -> str:
        if self.raise_error:
            raise self.raise_error
        self.calls.append({"name": task_name, "args": args, "kwargs": kwargs, "countdown": countdown})
        return f"task-{len(self.calls)}"

    def enqueue_job(self, job, countdown: Optional[int] = None) -> str:
        return self.enqueue(job.task_name, countdown=countdown, **job.to_kwargs())

    def jobs_named(self, suffix: str) -> list[dict[str, Any]]:
        return [call for call in self.calls if call["name"].endswith(suffix)]


@pytest.fixture
def task_queue() -> RecordingTaskQueue:
    return RecordingTaskQueue()


@pytest.fixture
def task_queue_factory():
    return RecordingTaskQueue


@pytest.fixture
async def fake_redis():
    redis = FakeRedis()
    yield redis
    await redis.aclose()


@pytest.fixture
def cache(fake_redis) -> RedisCache:
    return RedisCache(redis_client=fake_redis)


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def timeline_cache(cache) -> TimelineCache:
    return TimelineCache(cache=cache, ttl_seconds=300)


@pytest.fixture
def account_summaries(cache) -> AccountSummaryService:
    return AccountSummaryService(cache=cache, account_repository_factory=AccountRepository, ttl_seconds=3600)


@pytest.fixture
def feed_events(task_queue) -> FeedEventService:
    return FeedEventService(task_queue=task_queue, feed_entry_repository_factory=FeedEntryRepository)


@pytest.fixture
def timeline_reader_factory():
    def _factory(session):
        return TimelineReader(
            session=session,
            post_repository_factory=PostRepository,
            feed_entry_repository_factory=FeedEntryRepository,
        )

    return _factory


@pytest.fixture
def repository_factories() -> dict[str, Any]:
    """Repository classes double as factories: each takes ``session=``."""
    return {
        "account_repository_factory": AccountRepository,
        "post_repository_factory": PostRepository,
        "follow_repository_factory": FollowRepository,
        "feed_entry_repository_factory": FeedEntryRepository,
    }
