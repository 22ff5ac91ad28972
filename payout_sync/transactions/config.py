"""
Sync pipeline configuration.

Defines rate-limit backoff, store retry policy, pagination and
poll loop parameters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from payout_sync.core.config import Settings


class RateLimitConfig(BaseModel):
    """Backoff applied when the platform answers HTTP 429."""

    max_retries: int = Field(
        default=5, ge=0, description="Retries after the first rate-limited call"
    )
    initial_delay: float = Field(
        default=1.0,
        ge=0,
        description="Fallback delay in seconds when no Retry-After header is sent",
    )
    exponential_base: float = Field(
        default=2.0, ge=1, description="Fallback delay multiplier"
    )


class StoreRetryConfig(BaseModel):
    """Retry policy for store operations hitting an unreachable server."""

    max_retries: int = Field(default=3, ge=0, description="Retries after the first call")
    initial_delay: float = Field(
        default=2.0, ge=0, description="Initial delay in seconds"
    )
    exponential_base: float = Field(default=1.5, ge=1, description="Backoff multiplier")


class SyncConfig(BaseModel):
    """Main sync job configuration."""

    # Remote platform
    base_url: str = Field(
        default="https://panel.gate.cx", description="Payout platform base URL"
    )
    request_timeout: float = Field(
        default=30.0, gt=0, description="HTTP timeout in seconds"
    )
    payout_statuses: list[int] = Field(
        default_factory=lambda: [2, 3, 7, 8, 9],
        description="Payout status codes requested from the feed",
    )
    session_cookie_names: tuple[str, str] = Field(
        default=("sid", "rsid"), description="Cookies that make up a session"
    )
    session_ttl_seconds: int = Field(
        default=86400, gt=0, description="Assumed lifetime of a session"
    )

    # Pagination
    default_pages: int = Field(
        default=10, ge=1, description="Pages per cabinet when the order names none"
    )
    page_delay: float = Field(
        default=1.0, ge=0, description="Seconds to wait before every page after the first"
    )

    # Persistence
    local_time_offset_hours: int = Field(
        default=3, description="Shift applied to approved_at/expired_at"
    )

    # Poll loop
    poll_interval: float = Field(
        default=10.0, gt=0, description="Seconds between checks for pending orders"
    )
    shutdown_grace: float = Field(
        default=1.0, ge=0, description="Seconds in-flight work may run after stop"
    )
    idle_log_interval: float = Field(
        default=600.0, ge=0, description="Minimum seconds between two idle log lines"
    )

    # Retry and resilience
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    store_retry: StoreRetryConfig = Field(default_factory=StoreRetryConfig)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SyncConfig":
        """Build the sync configuration from process settings."""
        return cls(
            base_url=settings.GATE_BASE_URL,
            request_timeout=settings.GATE_REQUEST_TIMEOUT,
            default_pages=settings.DEFAULT_PAGES_TO_FETCH,
            page_delay=settings.PAGE_DELAY_SECONDS,
            poll_interval=settings.POLL_INTERVAL_SECONDS,
            shutdown_grace=settings.SHUTDOWN_GRACE_SECONDS,
        )


def get_sync_config(settings: Optional[Settings] = None) -> SyncConfig:
    """Get the sync configuration for ``settings``, or the cached process settings."""
    if settings is None:
        from payout_sync.core.config import get_settings

        settings = get_settings()
    return SyncConfig.from_settings(settings)
