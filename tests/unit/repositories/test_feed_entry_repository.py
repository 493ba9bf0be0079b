"""FeedEntryRepository tests against in-memory SQLite."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from feed_engine.models import FeedEntry
from feed_engine.repositories.feed_entry import FeedEntryRepository
from feed_engine.utils.cursor import TimelineCursor
from feed_engine.utils.time import now_db_utc


def _row(owner_id, post):
    return {"owner_id": owner_id, "post_id": post.id, "author_id": post.author_id, "created_at": post.created_at}


async def _owners_of_post(db_session, post_id):
    result = await db_session.execute(select(FeedEntry.owner_id).where(FeedEntry.post_id == post_id))
    return list(result.scalars().all())


@pytest.mark.unit
@pytest.mark.repository
class TestFeedEntryRepository:
    async def test_insert_ignore_conflicts_skips_duplicates(self, db_session, account_factory, post_factory):
        author = await account_factory()
        owner = await account_factory()
        post = await post_factory(author)
        repo = FeedEntryRepository(db_session)

        first = await repo.insert_ignore_conflicts([_row(owner.id, post)])
        second = await repo.insert_ignore_conflicts([_row(owner.id, post)])
        await db_session.commit()

        count = await db_session.scalar(select(func.count()).select_from(FeedEntry))
        assert first == 1
        assert second == 0
        assert count == 1

    async def test_insert_ignore_conflicts_counts_only_new_rows(self, db_session, account_factory, post_factory):
        author = await account_factory()
        owners = [await account_factory() for _ in range(3)]
        post = await post_factory(author)
        repo = FeedEntryRepository(db_session)

        await repo.insert_ignore_conflicts([_row(owners[0].id, post)])
        inserted = await repo.insert_ignore_conflicts([_row(o.id, post) for o in owners])

        assert inserted == 2

    async def test_insert_ignore_conflicts_empty_is_noop(self, db_session):
        assert await FeedEntryRepository(db_session).insert_ignore_conflicts([]) == 0

    async def test_exists_for_owner(self, db_session, account_factory, post_factory, feed_entry_factory):
        author = await account_factory()
        owner = await account_factory()
        other = await account_factory()
        await feed_entry_factory(owner, await post_factory(author))
        repo = FeedEntryRepository(db_session)

        assert await repo.exists_for_owner(owner.id) is True
        assert await repo.exists_for_owner(other.id) is False

    async def test_page_materialized_timeline_merges_own_posts(
        self, db_session, account_factory, post_factory, feed_entry_factory
    ):
        author = await account_factory()
        owner = await account_factory()
        followed_old = await post_factory(author)
        own = await post_factory(owner)
        followed_new = await post_factory(author)
        await post_factory(owner, parent_id=followed_new.id)  # own reply, excluded
        await feed_entry_factory(owner, followed_old)
        await feed_entry_factory(owner, followed_new)

        rows = await FeedEntryRepository(db_session).page_materialized_timeline(owner.id, None, 10)

        assert [post_id for post_id, _ in rows] == [followed_new.id, own.id, followed_old.id]

    async def test_page_materialized_timeline_breaks_timestamp_ties_by_post_id(
        self, db_session, account_factory, post_factory, feed_entry_factory
    ):
        author = await account_factory()
        owner = await account_factory()
        same_time = now_db_utc().replace(microsecond=0)
        posts = [await post_factory(author, created_at=same_time) for _ in range(3)]
        for post in posts:
            await feed_entry_factory(owner, post)
        repo = FeedEntryRepository(db_session)

        first = await repo.page_materialized_timeline(owner.id, None, 2)
        cursor = TimelineCursor(created_at=first[-1][1], post_id=first[-1][0])
        rest = await repo.page_materialized_timeline(owner.id, cursor, 2)

        ids = [post_id for post_id, _ in first + rest]
        assert ids == sorted((p.id for p in posts), reverse=True)

    async def test_delete_for_owner_from_author(
        self, db_session, account_factory, post_factory, feed_entry_factory
    ):
        kept_author = await account_factory()
        dropped_author = await account_factory()
        owner = await account_factory()
        kept = await post_factory(kept_author)
        await feed_entry_factory(owner, kept)
        await feed_entry_factory(owner, await post_factory(dropped_author))
        await feed_entry_factory(owner, await post_factory(dropped_author))
        repo = FeedEntryRepository(db_session)

        removed = await repo.delete_for_owner_from_author(owner.id, dropped_author.id)
        await db_session.commit()

        remaining = (await db_session.execute(select(FeedEntry.post_id))).scalars().all()
        assert removed == 2
        assert remaining == [kept.id]

    async def test_delete_for_post(self, db_session, account_factory, post_factory, feed_entry_factory):
        author = await account_factory()
        owners = [await account_factory() for _ in range(2)]
        post = await post_factory(author)
        for owner in owners:
            await feed_entry_factory(owner, post)

        removed = await FeedEntryRepository(db_session).delete_for_post(post.id)

        assert removed == 2
        assert await _owners_of_post(db_session, post.id) == []

    async def test_delete_older_than_respects_batch_size(
        self, db_session, account_factory, post_factory, feed_entry_factory
    ):
        author = await account_factory()
        owner = await account_factory()
        old_time = now_db_utc() - timedelta(days=40)
        for offset in range(3):
            await feed_entry_factory(owner, await post_factory(author, created_at=old_time + timedelta(seconds=offset)))
        fresh = await post_factory(author, created_at=now_db_utc())
        await feed_entry_factory(owner, fresh)
        repo = FeedEntryRepository(db_session)
        cutoff = now_db_utc() - timedelta(days=30)

        first = await repo.delete_older_than(cutoff, 2)
        second = await repo.delete_older_than(cutoff, 2)
        third = await repo.delete_older_than(cutoff, 2)
        await db_session.commit()

        remaining = (await db_session.execute(select(FeedEntry.post_id))).scalars().all()
        assert (first, second, third) == (2, 1, 0)
        assert remaining == [fresh.id]
