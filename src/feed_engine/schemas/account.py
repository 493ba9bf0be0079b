"""Pydantic schemas for account summaries."""

from pydantic import BaseModel, ConfigDict


class AccountSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    followers_count: int
    following_count: int
    posts_count: int
