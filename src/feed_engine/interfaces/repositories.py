"""
Repository protocol definitions to decouple use cases from SQLAlchemy concrete implementations.
"""

from __future__ import annotations

from datetime import datetime
from typing import AsyncIterator, Optional, Protocol, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from feed_engine.models.account import Account
    from feed_engine.models.post import Post
    from feed_engine.schemas.timeline import PostView
    from feed_engine.utils.cursor import TimelineCursor


class IAccountRepository(Protocol):
    async def get_by_id(self, account_id: int) -> Optional["Account"]:
        ...

    async def exists(self, account_id: int) -> bool:
        ...

    async def adjust_counters(
        self,
        account_id: int,
        *,
        followers: int = 0,
        following: int = 0,
        posts: int = 0,
    ) -> None:
        ...

    async def decrement_counterparties(self, account_id: int) -> None:
        ...

    async def iter_id_batches(self, batch_size: int) -> AsyncIterator[list[int]]:
        ...

    async def find_counter_drift(self, account_ids: Sequence[int]) -> list[dict]:
        ...

    async def recompute_counters(self, account_ids: Sequence[int]) -> int:
        ...

    async def delete_by_id(self, account_id: int) -> int:
        ...


class IPostRepository(Protocol):
    async def get_by_id(self, post_id: int) -> Optional["Post"]:
        ...

    async def create(self, entity: "Post") -> "Post":
        ...

    async def get_recent_top_level_by_author(self, author_id: int, limit: int) -> list["Post"]:
        ...

    async def get_views_by_ids(self, post_ids: Sequence[int]) -> dict[int, "PostView"]:
        ...

    async def page_cold_timeline(
        self, owner_id: int, cursor: Optional["TimelineCursor"], limit: int
    ) -> list[tuple[int, datetime]]:
        ...

    async def detach_replies(self, parent_id: int) -> list[int]:
        ...

    async def delete_by_id(self, post_id: int) -> int:
        ...

    async def orphan_by_author(self, author_id: int) -> int:
        ...


class IFollowRepository(Protocol):
    async def create_if_absent(self, follower_id: int, followed_id: int) -> bool:
        ...

    async def delete_edge(self, follower_id: int, followed_id: int) -> bool:
        ...

    async def exists(self, follower_id: int, followed_id: int) -> bool:
        ...

    async def page_follower_ids(
        self,
        followed_id: int,
        *,
        after_follower_id: int = 0,
        until_follower_id: Optional[int] = None,
        limit: int,
    ) -> list[int]:
        ...

    async def find_follower_id_at_offset(
        self, followed_id: int, *, after_follower_id: int, offset: int
    ) -> Optional[int]:
        ...

    async def get_followed_ids(self, follower_id: int) -> list[int]:
        ...

    async def delete_all_for_account(self, account_id: int) -> int:
        ...


class IFeedEntryRepository(Protocol):
    async def insert_ignore_conflicts(self, rows: Sequence[dict]) -> int:
        ...

    async def exists_for_owner(self, owner_id: int) -> bool:
        ...

    async def page_materialized_timeline(
        self, owner_id: int, cursor: Optional["TimelineCursor"], limit: int
    ) -> list[tuple[int, datetime]]:
        ...

    async def delete_for_owner_from_author(self, owner_id: int, author_id: int) -> int:
        ...

    async def delete_for_post(self, post_id: int) -> int:
        ...

    async def delete_for_owner(self, owner_id: int) -> int:
        ...

    async def delete_older_than(self, cutoff: datetime, batch_size: int) -> int:
        ...
