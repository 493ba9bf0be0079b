from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, BigIntId
from ..utils.time import now_db_utc


class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (
        # Serves backfill ("latest K posts by author") and the cold-path timeline join
        Index("idx_posts_author_id_created_at", "author_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    author_id: Mapped[int | None] = mapped_column(
        BigIntId,
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
        comment="NULL once the authoring account is deleted; the post stays visible",
    )
    content: Mapped[str] = mapped_column(String(200), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        BigIntId,
        ForeignKey("posts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Parent post for replies, NULL for top-level posts",
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_db_utc, nullable=False, index=True)

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None
