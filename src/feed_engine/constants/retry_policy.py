"""Shared retry policy constants for feed jobs."""

# Feed jobs are cheap and idempotent, so retries start fast.
FEED_RETRY_SCHEDULE: tuple[int, ...] = (5, 15, 60, 300, 900)
FEED_MAX_RETRIES: int = len(FEED_RETRY_SCHEDULE)

# Maintenance jobs run off-peak and can wait longer between attempts.
MAINTENANCE_RETRY_SCHEDULE: tuple[int, ...] = (60, 300, 900)
MAINTENANCE_MAX_RETRIES: int = len(MAINTENANCE_RETRY_SCHEDULE)
