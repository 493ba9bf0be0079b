"""Pydantic schemas for timeline pages."""

from datetime import datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict


class TimelineSource(str, Enum):
    """Which read path produced a page.

    Resolved once per read by a single existence check on feed_entries.
    """

    MATERIALIZED = "feed_entries"
    COLD = "fallback"


class PostView(BaseModel):
    """A post as rendered in a timeline."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Post ID")
    author_id: Optional[int] = Field(None, description="Author account ID, NULL when the author was deleted")
    author_username: Optional[str] = Field(None, description="Author username, NULL when the author was deleted")
    content: str
    parent_id: Optional[int] = None
    created_at: datetime

    @property
    def author_name(self) -> str:
        return self.author_username or "Deleted account"


class TimelinePage(BaseModel):
    """One page of a home timeline plus the opaque cursor for the next page."""

    posts: List[PostView] = Field(default_factory=list)
    next_cursor: Optional[str] = Field(None, description="Opaque cursor; pass back to fetch the following page")
    has_next: bool = False
    source: TimelineSource = TimelineSource.MATERIALIZED
