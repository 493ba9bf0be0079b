"""Unit tests for the opaque timeline cursor."""

from datetime import datetime, timedelta, timezone

import pytest

from feed_engine.utils.cursor import InvalidCursorError, TimelineCursor, decode_cursor


@pytest.mark.unit
class TestTimelineCursor:
    def test_token_is_opaque_and_url_safe(self):
        token = TimelineCursor(created_at=datetime(2026, 5, 1, 10, 30, 0, 123456), post_id=77).encode()

        assert "=" not in token
        assert TimelineCursor.decode(token).post_id == 77

    def test_aware_timestamps_normalize_to_naive_utc(self):
        plus_three = timezone(timedelta(hours=3))
        cursor = TimelineCursor(created_at=datetime(2026, 5, 1, 13, 0, tzinfo=plus_three), post_id=1)

        decoded = TimelineCursor.decode(cursor.encode())

        assert decoded.created_at == datetime(2026, 5, 1, 10, 0)
        assert decoded.created_at.tzinfo is None

    @pytest.mark.parametrize("token", ["garbage!", "e30", "eyJ0Ijoibm9wZSIsImlkIjoxfQ", "////"])
    def test_malformed_tokens_raise(self, token):
        with pytest.raises(InvalidCursorError):
            TimelineCursor.decode(token)

    def test_empty_token_means_first_page(self):
        assert decode_cursor(None) is None
        assert decode_cursor("") is None
