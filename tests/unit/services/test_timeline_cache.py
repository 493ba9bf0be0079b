"""Tests for the timeline page cache."""

from datetime import datetime

import pytest

from feed_engine.schemas.timeline import PostView, TimelinePage


def _page(*post_ids):
    return TimelinePage(
        posts=[
            PostView(id=post_id, author_id=1, author_username="alice", content="hi", created_at=datetime(2026, 1, 1))
            for post_id in post_ids
        ],
        has_next=False,
    )


@pytest.mark.unit
@pytest.mark.service
class TestTimelineCache:
    def test_key_layout(self, timeline_cache):
        assert timeline_cache.page_key(7, 0, None, 20) == "user_feed:7:v0:first:20"
        assert timeline_cache.page_key(7, 3, "abc", 10) == "user_feed:7:v3:abc:10"
        assert timeline_cache.generation_key(7) == "user_feed_generation:7"

    async def test_store_and_read_back(self, timeline_cache, fake_redis):
        await timeline_cache.store_page(7, 0, None, 20, _page(3, 2))

        cached = await timeline_cache.get_page(7, 0, None, 20)

        assert [post.id for post in cached.posts] == [3, 2]
        assert 0 < await fake_redis.ttl("user_feed:7:v0:first:20") <= 300

    async def test_page_size_and_cursor_are_part_of_key(self, timeline_cache):
        await timeline_cache.store_page(7, 0, None, 20, _page(1))

        assert await timeline_cache.get_page(7, 0, None, 10) is None
        assert await timeline_cache.get_page(7, 0, "other", 20) is None

    async def test_invalidate_owner_hides_old_pages(self, timeline_cache):
        await timeline_cache.store_page(7, 0, None, 20, _page(1))

        assert await timeline_cache.invalidate_owner(7) == 1
        generation = await timeline_cache.current_generation(7)
        assert generation == 1
        assert await timeline_cache.get_page(7, generation, None, 20) is None

        await timeline_cache.store_page(7, generation, None, 20, _page(2))
        assert [post.id for post in (await timeline_cache.get_page(7, generation, None, 20)).posts] == [2]

    async def test_page_read_before_bump_is_stored_under_old_generation(self, timeline_cache, fake_redis):
        observed = await timeline_cache.current_generation(7)
        await timeline_cache.invalidate_owner(7)

        await timeline_cache.store_page(7, observed, None, 20, _page(1))

        assert await fake_redis.exists("user_feed:7:v0:first:20") == 1
        latest = await timeline_cache.current_generation(7)
        assert await timeline_cache.get_page(7, latest, None, 20) is None

    async def test_generation_key_expires_after_pages(self, timeline_cache, fake_redis):
        await timeline_cache.invalidate_owner(7)
        await timeline_cache.store_page(7, 1, None, 20, _page(1))

        generation_ttl = await fake_redis.ttl("user_feed_generation:7")
        page_ttl = await fake_redis.ttl("user_feed:7:v1:first:20")

        assert 0 < page_ttl < generation_ttl <= 600

    async def test_unreadable_entry_is_a_miss(self, timeline_cache, fake_redis):
        await fake_redis.set("user_feed:7:v0:first:20", "{not json")

        assert await timeline_cache.get_page(7, 0, None, 20) is None

    async def test_malformed_generation_falls_back_to_zero(self, timeline_cache, fake_redis):
        await fake_redis.set("user_feed_generation:7", "garbage")

        assert await timeline_cache.current_generation(7) == 0
