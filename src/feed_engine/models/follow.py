from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, BigIntId
from ..utils.time import now_db_utc


class Follow(Base):
    """Directed follow edge. Created and destroyed only by the follow/unfollow use cases."""

    __tablename__ = "follows"
    __table_args__ = (
        CheckConstraint("follower_id <> followed_id", name="not_self"),
        # Follower scans for fan-out walk this index in follower_id order
        Index("idx_follows_followed_id_follower_id", "followed_id", "follower_id"),
    )

    follower_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True
    )
    followed_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_db_utc, nullable=False)
