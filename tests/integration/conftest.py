"""Integration fixtures: every use case wired against one in-memory store, with a drainable queue."""

from typing import Any

import pytest

from feed_engine.use_cases import (
    BackfillFeedUseCase,
    DeleteAccountUseCase,
    DeletePostUseCase,
    FanOutChunkUseCase,
    FanOutPostUseCase,
    FollowAccountUseCase,
    GetTimelineUseCase,
    PublishPostUseCase,
    RebuildOwnerFeedUseCase,
    UnfollowAccountUseCase,
)


class FeedHarness:
    """Runs write-side operations, then delivers queued jobs the way a worker would."""

    def __init__(
        self,
        session,
        task_queue,
        repos: dict[str, Any],
        feed_events,
        timeline_cache,
        account_summaries,
        timeline_reader_factory,
        *,
        backfill_limit: int = 50,
        batch_size: int = 2,
        chunk_size: int = 4,
    ):
        self.session = session
        self.task_queue = task_queue
        self.repos = repos
        self.feed_events = feed_events
        self.timeline_cache = timeline_cache
        self.account_summaries = account_summaries
        self.timeline_reader_factory = timeline_reader_factory
        self.backfill_limit = backfill_limit
        self.batch_size = batch_size
        self.chunk_size = chunk_size
        self._delivered = 0

    def _repos(self, *names):
        return {f"{name}_repository_factory": self.repos[f"{name}_repository_factory"] for name in names}

    async def publish(self, author_id: int, content: str = "post", parent_id=None):
        return await PublishPostUseCase(
            session=self.session,
            feed_events=self.feed_events,
            account_summaries=self.account_summaries,
            **self._repos("account", "post"),
        ).execute(author_id, content, parent_id)

    async def delete_post(self, post_id: int):
        return await DeletePostUseCase(
            session=self.session,
            feed_events=self.feed_events,
            account_summaries=self.account_summaries,
            **self._repos("account", "post"),
        ).execute(post_id)

    async def follow(self, follower_id: int, followed_id: int):
        return await FollowAccountUseCase(
            session=self.session,
            feed_events=self.feed_events,
            account_summaries=self.account_summaries,
            **self._repos("account", "follow"),
        ).execute(follower_id, followed_id)

    async def unfollow(self, follower_id: int, followed_id: int):
        return await UnfollowAccountUseCase(
            session=self.session,
            feed_events=self.feed_events,
            timeline_cache=self.timeline_cache,
            account_summaries=self.account_summaries,
            **self._repos("account", "follow"),
        ).execute(follower_id, followed_id)

    async def delete_account(self, account_id: int):
        return await DeleteAccountUseCase(
            session=self.session,
            account_summaries=self.account_summaries,
            **self._repos("account", "follow", "post", "feed_entry"),
        ).execute(account_id)

    async def timeline(self, owner_id: int, cursor=None, page_size=None, reader_factory=None):
        return await GetTimelineUseCase(
            session=self.session,
            timeline_reader_factory=reader_factory or self.timeline_reader_factory,
            timeline_cache=self.timeline_cache,
            default_page_size=20,
            max_page_size=100,
        ).execute(owner_id, cursor, page_size)

    def _fan_out_kwargs(self):
        return {
            "session": self.session,
            "batch_size": self.batch_size,
            "visibility_sla_seconds": 60,
            **self._repos("post", "follow", "feed_entry"),
        }

    async def _run_job(self, name: str, kwargs: dict):
        if name.endswith("fan_out_post_task"):
            use_case = FanOutPostUseCase(task_queue=self.task_queue, chunk_size=self.chunk_size, **self._fan_out_kwargs())
            return await use_case.execute(**kwargs)
        if name.endswith("fan_out_chunk_task"):
            return await FanOutChunkUseCase(**self._fan_out_kwargs()).execute(**kwargs)
        if name.endswith("backfill_feed_task"):
            use_case = BackfillFeedUseCase(
                session=self.session, limit=self.backfill_limit, **self._repos("follow", "post", "feed_entry")
            )
            return await use_case.execute(**kwargs)
        if name.endswith("rebuild_owner_feed_task"):
            use_case = RebuildOwnerFeedUseCase(
                session=self.session,
                limit=self.backfill_limit,
                **self._repos("account", "follow", "post", "feed_entry"),
            )
            return await use_case.execute(**kwargs)
        raise AssertionError(f"Unexpected job {name}")

    async def drain(self, *, twice: bool = False) -> list[dict]:
        """Run every queued job (including jobs enqueued by jobs). twice=True simulates redelivery."""
        results = []
        while self._delivered < len(self.task_queue.calls):
            call = self.task_queue.calls[self._delivered]
            self._delivered += 1
            for _ in range(2 if twice else 1):
                results.append(await self._run_job(call["name"], call["kwargs"]))
        return results


@pytest.fixture
def harness(
    db_session,
    task_queue,
    repository_factories,
    feed_events,
    timeline_cache,
    account_summaries,
    timeline_reader_factory,
):
    return FeedHarness(
        db_session,
        task_queue,
        repository_factories,
        feed_events,
        timeline_cache,
        account_summaries,
        timeline_reader_factory,
    )
