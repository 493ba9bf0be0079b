from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, BigIntId
from ..utils.time import now_db_utc


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    # Counter caches. Only ever changed with atomic SQL increments next to the
    # row that caused the change; RecomputeCounterBatchUseCase repairs drift.
    followers_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0", comment="Number of accounts following this one"
    )
    following_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0", comment="Number of accounts this one follows"
    )
    posts_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0", comment="Number of posts authored, replies included"
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_db_utc, nullable=False)
