"""Opaque keyset cursor for timeline pagination.

A cursor encodes the (created_at, post_id) of the last row served. The next
page is everything strictly less than that pair, so rows inserted between
requests can never shift the window and cause skips or repeats.
"""

from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime

from pydantic import BaseModel, ConfigDict, ValidationError

from .time import to_db_utc


class InvalidCursorError(ValueError):
    """Raised when a client passes a cursor this engine did not issue."""


class TimelineCursor(BaseModel):
    model_config = ConfigDict(frozen=True)

    created_at: datetime
    post_id: int

    def encode(self) -> str:
        payload = json.dumps(
            {"t": to_db_utc(self.created_at).isoformat(), "id": self.post_id},
            separators=(",", ":"),
        )
        return base64.urlsafe_b64encode(payload.encode()).decode().rstrip("=")

    @classmethod
    def decode(cls, token: str) -> "TimelineCursor":
        padded = token + "=" * (-len(token) % 4)
        try:
            raw = json.loads(base64.urlsafe_b64decode(padded.encode()))
            cursor = cls(created_at=raw["t"], post_id=raw["id"])
        except (binascii.Error, UnicodeError, json.JSONDecodeError, KeyError, TypeError, ValidationError) as exc:
            raise InvalidCursorError(f"Malformed timeline cursor: {token!r}") from exc
        return cls(created_at=to_db_utc(cursor.created_at), post_id=cursor.post_id)


def decode_cursor(token: str | None) -> TimelineCursor | None:
    if not token:
        return None
    return TimelineCursor.decode(token)
