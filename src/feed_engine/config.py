import os
from typing import Self
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, EnvSettingsSource
from dotenv import load_dotenv

load_dotenv()


class DbSettings(BaseModel):
    url: str = Field(default_factory=lambda: os.getenv("DATABASE_URL", "").strip())
    echo: bool = Field(default=False)

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if not self.url:
            raise ValueError("DATABASE_URL environment variable must be set.")
        return self


class CelerySettings(BaseModel):
    broker_url: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    result_backend: str = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")


class CacheSettings(BaseModel):
    """Redis cache in front of the timeline read path."""

    redis_url: str = os.getenv(
        "CACHE_REDIS_URL",
        os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0"),
    )
    timeline_ttl_seconds: int = int(os.getenv("TIMELINE_CACHE_TTL_SECONDS", "300"))
    account_summary_ttl_seconds: int = int(os.getenv("ACCOUNT_SUMMARY_CACHE_TTL_SECONDS", "3600"))
    # A slow cache must never make a miss slower than reading the store directly
    socket_timeout_seconds: float = float(os.getenv("CACHE_SOCKET_TIMEOUT_SECONDS", "0.25"))

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if self.timeline_ttl_seconds <= 0:
            raise ValueError("TIMELINE_CACHE_TTL_SECONDS must be greater than zero.")
        if self.account_summary_ttl_seconds <= 0:
            raise ValueError("ACCOUNT_SUMMARY_CACHE_TTL_SECONDS must be greater than zero.")
        return self


class FeedSettings(BaseModel):
    fan_out_batch_size: int = int(os.getenv("FAN_OUT_BATCH_SIZE", "1000"))
    fan_out_chunk_size: int = int(os.getenv("FAN_OUT_CHUNK_SIZE", "10000"))
    backfill_limit: int = int(os.getenv("BACKFILL_POST_LIMIT", "50"))
    default_page_size: int = int(os.getenv("TIMELINE_PAGE_SIZE", "20"))
    max_page_size: int = int(os.getenv("TIMELINE_MAX_PAGE_SIZE", "100"))
    retention_days: int = int(os.getenv("FEED_RETENTION_DAYS", "30"))
    retention_batch_size: int = int(os.getenv("FEED_RETENTION_BATCH_SIZE", "5000"))
    fan_out_visibility_sla_seconds: int = int(os.getenv("FAN_OUT_VISIBILITY_SLA_SECONDS", "60"))

    @model_validator(mode="after")
    def _validate(self) -> Self:
        invalid = [
            name
            for name, value in [
                ("FAN_OUT_BATCH_SIZE", self.fan_out_batch_size),
                ("FAN_OUT_CHUNK_SIZE", self.fan_out_chunk_size),
                ("BACKFILL_POST_LIMIT", self.backfill_limit),
                ("TIMELINE_PAGE_SIZE", self.default_page_size),
                ("TIMELINE_MAX_PAGE_SIZE", self.max_page_size),
                ("FEED_RETENTION_DAYS", self.retention_days),
                ("FEED_RETENTION_BATCH_SIZE", self.retention_batch_size),
                ("FAN_OUT_VISIBILITY_SLA_SECONDS", self.fan_out_visibility_sla_seconds),
            ]
            if value <= 0
        ]
        if invalid:
            raise ValueError(f"Feed configuration values must be greater than zero: {', '.join(invalid)}.")
        if self.fan_out_chunk_size < self.fan_out_batch_size:
            raise ValueError("FAN_OUT_CHUNK_SIZE must not be smaller than FAN_OUT_BATCH_SIZE.")
        if self.default_page_size > self.max_page_size:
            raise ValueError("TIMELINE_PAGE_SIZE must not exceed TIMELINE_MAX_PAGE_SIZE.")
        return self


class CounterSettings(BaseModel):
    backfill_batch_size: int = int(os.getenv("COUNTER_BACKFILL_BATCH_SIZE", "10000"))

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if self.backfill_batch_size <= 0:
            raise ValueError("COUNTER_BACKFILL_BATCH_SIZE must be greater than zero.")
        return self


class RelaxedEnvSettingsSource(EnvSettingsSource):
    def decode_complex_value(self, field_name, field, value):
        try:
            return super().decode_complex_value(field_name, field, value)
        except Exception:
            return value


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")
    db: DbSettings = DbSettings()
    celery: CelerySettings = CelerySettings()
    cache: CacheSettings = CacheSettings()
    feed: FeedSettings = FeedSettings()
    counters: CounterSettings = CounterSettings()

    @property
    def staleness_bound_seconds(self) -> int:
        """Upper bound on how long a new post may be missing from a follower's served timeline.

        Fan-out must land within the visibility SLA, after which a cached page
        can still hide the post for at most one cache TTL window.
        """
        return self.feed.fan_out_visibility_sla_seconds + self.cache.timeline_ttl_seconds

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            RelaxedEnvSettingsSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )


settings = Settings()
