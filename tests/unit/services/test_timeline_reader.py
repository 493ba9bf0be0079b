"""Tests for the dual-path timeline reader."""

from datetime import datetime

import pytest

from feed_engine.models import FeedEntry
from feed_engine.schemas.timeline import TimelineSource
from feed_engine.utils.cursor import TimelineCursor


@pytest.fixture
def reader(db_session, timeline_reader_factory):
    return timeline_reader_factory(session=db_session)


async def _read_all(reader, owner_id, page_size):
    ids, cursor = [], None
    while True:
        page = await reader.read_page(owner_id, TimelineCursor.decode(cursor) if cursor else None, page_size)
        ids.extend(post.id for post in page.posts)
        if not page.has_next:
            return ids
        cursor = page.next_cursor


@pytest.mark.unit
@pytest.mark.service
class TestTimelineReader:
    async def test_owner_without_entries_or_follows(self, reader, account_factory):
        owner = await account_factory()

        page = await reader.read_page(owner.id, None, 20)

        assert page.posts == []
        assert page.has_next is False
        assert page.next_cursor is None
        assert page.source is TimelineSource.COLD

    async def test_cold_path_joins_follow_graph(
        self, reader, account_factory, post_factory, follow_factory
    ):
        owner = await account_factory()
        followed = await account_factory()
        stranger = await account_factory()
        await follow_factory(owner, followed)
        own = await post_factory(owner)
        theirs = await post_factory(followed)
        await post_factory(followed, parent_id=theirs.id)
        await post_factory(stranger)

        page = await reader.read_page(owner.id, None, 20)

        assert page.source is TimelineSource.COLD
        assert [post.id for post in page.posts] == [theirs.id, own.id]

    async def test_materialized_path_merges_own_posts(
        self, reader, account_factory, post_factory, feed_entry_factory
    ):
        owner = await account_factory()
        author = await account_factory()
        older = await post_factory(author)
        own = await post_factory(owner)
        newer = await post_factory(author)
        await feed_entry_factory(owner, older)
        await feed_entry_factory(owner, newer)

        page = await reader.read_page(owner.id, None, 20)

        assert page.source is TimelineSource.MATERIALIZED
        assert [post.id for post in page.posts] == [newer.id, own.id, older.id]
        assert page.posts[0].author_username == author.username

    async def test_pages_chain_through_cursor(self, reader, account_factory, post_factory, feed_entry_factory):
        owner = await account_factory()
        author = await account_factory()
        posts = [await post_factory(author) for _ in range(5)]
        for post in posts:
            await feed_entry_factory(owner, post)

        first = await reader.read_page(owner.id, None, 2)

        assert first.has_next is True
        assert TimelineCursor.decode(first.next_cursor).post_id == posts[3].id
        assert await _read_all(reader, owner.id, 2) == [post.id for post in reversed(posts)]

    async def test_exact_page_has_no_next(self, reader, account_factory, post_factory):
        owner = await account_factory()
        for _ in range(3):
            await post_factory(owner)

        page = await reader.read_page(owner.id, None, 3)

        assert len(page.posts) == 3
        assert page.has_next is False
        assert page.next_cursor is None

    async def test_tied_timestamps_order_by_post_id(self, reader, account_factory, post_factory, feed_entry_factory):
        owner = await account_factory()
        author = await account_factory()
        same_time = datetime(2026, 3, 1, 8, 0, 0)
        posts = [await post_factory(author, created_at=same_time) for _ in range(3)]
        for post in posts:
            await feed_entry_factory(owner, post)

        assert await _read_all(reader, owner.id, 1) == [post.id for post in reversed(posts)]

    async def test_unresolvable_entry_is_skipped(
        self, db_session, reader, account_factory, post_factory, feed_entry_factory, caplog
    ):
        owner = await account_factory()
        author = await account_factory()
        kept = await post_factory(author)
        await feed_entry_factory(owner, kept)
        db_session.add(
            FeedEntry(owner_id=owner.id, post_id=987654, author_id=author.id, created_at=datetime(2026, 2, 1))
        )
        await db_session.commit()

        page = await reader.read_page(owner.id, None, 20)

        assert [post.id for post in page.posts] == [kept.id]
        assert "Skipping unresolvable timeline entry" in caplog.text
