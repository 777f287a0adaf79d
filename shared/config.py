"""
Shared configuration management for the TripDesk data layer.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class CacheTTLs:
    """Staleness thresholds in seconds, per query kind."""

    list: float = 300.0
    detail: float = 120.0
    stats: float = 600.0
    recent: float = 300.0
    by_status: float = 180.0
    default: float = 300.0

    def for_kind(self, kind: Optional[str]) -> float:
        """TTL for a query kind, falling back to ``default`` for unknown kinds."""
        if kind in ("list", "detail", "stats", "recent", "by_status"):
            return getattr(self, kind)
        return self.default


class TripDeskConfig(BaseSettings):
    """Configuration for the trips data layer."""

    model_config = SettingsConfigDict(
        env_prefix="TRIPDESK_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    service_name: str = Field(default="trips")

    # Remote store
    store_url: str = Field(default="http://localhost:54321")
    store_anon_key: str = Field(default="")
    request_timeout: float = Field(default=10.0, gt=0)

    # Read retries (writes are never retried)
    retry_attempts: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=0.5, ge=0)
    retry_max_delay: float = Field(default=5.0, ge=0)

    # Cache staleness per query kind, seconds
    ttl_list: float = Field(default=5 * 60, ge=0)
    ttl_detail: float = Field(default=2 * 60, ge=0)
    ttl_stats: float = Field(default=10 * 60, ge=0)
    ttl_recent: float = Field(default=5 * 60, ge=0)
    ttl_by_status: float = Field(default=3 * 60, ge=0)
    ttl_default: float = Field(default=5 * 60, ge=0)

    def cache_ttls(self) -> CacheTTLs:
        """Build the TTL table consumed by the query cache."""
        return CacheTTLs(
            list=self.ttl_list,
            detail=self.ttl_detail,
            stats=self.ttl_stats,
            recent=self.ttl_recent,
            by_status=self.ttl_by_status,
            default=self.ttl_default,
        )


def get_config(**overrides) -> TripDeskConfig:
    """Get configuration from the environment, with explicit overrides."""
    return TripDeskConfig(**overrides)
