"""Configuration models for the offline-first sync service."""

from pydantic import BaseModel, Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeedConfig(BaseModel):
    """Configuration for the remote change feed."""

    base_url: HttpUrl = Field(default=..., description="Base URL of the change feed API")
    auth_token: str | None = Field(default=None, description="Optional bearer token")
    request_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Per-request HTTP timeout in seconds"
    )
    max_retries: int = Field(
        default=3, ge=0, le=10, description="Retries for transient feed failures"
    )
    retry_base_delay: float = Field(
        default=1.0, ge=0, description="Initial backoff delay in seconds"
    )
    retry_max_delay: float = Field(default=60.0, ge=0, description="Maximum backoff delay in seconds")

    def retry_budget_seconds(self) -> float:
        """Worst case for one feed call: every attempt times out and every backoff is slept."""
        backoff = sum(
            min(self.retry_base_delay * (2**attempt), self.retry_max_delay)
            for attempt in range(self.max_retries)
        )
        return (self.max_retries + 1) * self.request_timeout_seconds + backoff


class StorageConfig(BaseModel):
    """Configuration for local persistence."""

    database_path: str = Field(
        default="./data/offline.db", description="SQLite file holding synchronized collections"
    )
    cursor_path: str = Field(
        default="./data/change_list_versions.json",
        description="JSON file holding the per-collection version cursor",
    )


class SyncConfig(BaseModel):
    """Configuration for sync passes and sessions."""

    collections: list[str] = Field(
        default_factory=lambda: ["topics", "authors", "news_resources"],
        min_length=1,
        description="Collections synchronized by a session, in order",
    )
    page_size: int | None = Field(
        default=None, ge=1, description="Maximum change-list items requested per pass"
    )
    max_follow_up_passes: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Extra passes allowed when a change list comes back truncated",
    )
    stop_on_first_error: bool = Field(
        default=True, description="Abort the session at the first failing collection"
    )
    feed_timeout_seconds: float = Field(
        default=60.0, gt=0, description="Upper bound for one remote call including retries"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        description="If True, output JSON logs. If False, use console format.",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional path to log file. If None, logs only to stdout.",
    )


class AppConfig(BaseSettings):
    """Main application configuration.

    Values can also come from environment variables with the APP_ prefix,
    e.g. APP_FEED__BASE_URL or APP_SYNC__PAGE_SIZE.
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    feed: FeedConfig
    storage: StorageConfig = Field(default_factory=StorageConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
