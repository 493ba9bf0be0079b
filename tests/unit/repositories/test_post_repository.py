"""PostRepository tests against in-memory SQLite."""

import pytest
from sqlalchemy import select

from feed_engine.models import Post
from feed_engine.repositories.post import PostRepository
from feed_engine.utils.cursor import TimelineCursor


@pytest.mark.unit
@pytest.mark.repository
class TestPostRepository:
    async def test_get_recent_top_level_by_author_is_bounded_and_newest_first(
        self, db_session, account_factory, post_factory
    ):
        author = await account_factory()
        posts = [await post_factory(author) for _ in range(5)]
        await post_factory(author, parent_id=posts[0].id)

        recent = await PostRepository(db_session).get_recent_top_level_by_author(author.id, 3)

        assert [p.id for p in recent] == [posts[4].id, posts[3].id, posts[2].id]

    async def test_get_views_by_ids_resolves_usernames_and_skips_missing(
        self, db_session, account_factory, post_factory
    ):
        author = await account_factory(username="writer")
        authored = await post_factory(author)
        orphan = await post_factory(author_id=None)

        views = await PostRepository(db_session).get_views_by_ids([authored.id, orphan.id, 999_999])

        assert set(views) == {authored.id, orphan.id}
        assert views[authored.id].author_username == "writer"
        assert views[orphan.id].author_id is None
        assert views[orphan.id].author_name == "Deleted account"

    async def test_page_cold_timeline_uses_follow_graph(
        self, db_session, account_factory, post_factory, follow_factory
    ):
        owner = await account_factory()
        followed = await account_factory()
        stranger = await account_factory()
        await follow_factory(owner, followed)
        own = await post_factory(owner)
        from_followed = await post_factory(followed)
        await post_factory(stranger)
        await post_factory(followed, parent_id=own.id)

        rows = await PostRepository(db_session).page_cold_timeline(owner.id, None, 10)

        assert [post_id for post_id, _ in rows] == [from_followed.id, own.id]

    async def test_page_cold_timeline_applies_cursor(self, db_session, account_factory, post_factory):
        owner = await account_factory()
        posts = [await post_factory(owner) for _ in range(4)]
        cursor = TimelineCursor(created_at=posts[2].created_at, post_id=posts[2].id)

        rows = await PostRepository(db_session).page_cold_timeline(owner.id, cursor, 10)

        assert [post_id for post_id, _ in rows] == [posts[1].id, posts[0].id]

    async def test_detach_replies_and_orphan_by_author(self, db_session, account_factory, post_factory):
        author = await account_factory()
        replier = await account_factory()
        parent = await post_factory(author)
        reply = await post_factory(replier, parent_id=parent.id)
        repo = PostRepository(db_session)

        assert await repo.detach_replies(parent.id) == [reply.id]
        assert reply.parent_id is None
        assert await repo.detach_replies(parent.id) == []
        assert await repo.orphan_by_author(author.id) == 1
        await db_session.commit()

        await db_session.refresh(reply)
        await db_session.refresh(parent)
        assert reply.parent_id is None
        assert parent.author_id is None

    async def test_delete_by_id(self, db_session, account_factory, post_factory):
        post = await post_factory(await account_factory())
        repo = PostRepository(db_session)

        assert await repo.delete_by_id(post.id) == 1
        assert await repo.delete_by_id(post.id) == 0
        assert (await db_session.execute(select(Post.id))).scalars().all() == []
