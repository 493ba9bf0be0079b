from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, BigIntId


class FeedEntry(Base):
    """Materialized "post X belongs in owner Y's timeline" row.

    author_id and created_at are copies of the post's values at insertion time
    so cleanup and ordering never join back to posts. author_id deliberately has
    no foreign key: deleting an author leaves these rows untouched.
    """

    __tablename__ = "feed_entries"
    __table_args__ = (
        UniqueConstraint("owner_id", "post_id"),
        Index("idx_feed_entries_owner_created_post", "owner_id", "created_at", "post_id"),
        Index("idx_feed_entries_owner_author", "owner_id", "author_id"),
        Index("idx_feed_entries_post_id", "post_id"),
        Index("idx_feed_entries_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    owner_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        comment="Account whose timeline shows this entry",
    )
    post_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_id: Mapped[int] = mapped_column(BigIntId, nullable=False, comment="Copy of posts.author_id")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, comment="Copy of posts.created_at")
