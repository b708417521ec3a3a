"""
Pydantic models for analytics data.
"""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# Raw Data Models
# =============================================================================

class Event(BaseModel):
    """A single pageview event as delivered by the event store."""
    model_config = ConfigDict(frozen=True)

    site_id: str
    path: str
    referrer: str | None = None
    user_agent: str | None = None
    visitor_key: str  # pseudonymous hash, never a raw IP
    occurred_at: datetime


class Site(BaseModel):
    """A tracked website from the site registry."""
    site_id: str
    name: str | None = None
    domain: str | None = None


class TrackRequest(BaseModel):
    """Incoming pageview collection request from the tracking snippet."""

    siteId: str
    path: str
    referrer: str | None = None
    userAgent: str | None = None

    @field_validator("siteId", "path")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    def to_event(self, visitor_key: str, occurred_at: datetime) -> Event:
        """Build the stored event for this request."""
        return Event(
            site_id=self.siteId,
            path=self.path,
            referrer=self.referrer or None,
            user_agent=self.userAgent or None,
            visitor_key=visitor_key,
            occurred_at=occurred_at,
        )


# =============================================================================
# Range Models
# =============================================================================

class TimeRange(str, Enum):
    """Symbolic time range selector."""
    LAST_24_HOURS = "24h"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"


class Granularity(str, Enum):
    """Width of a time series bucket."""
    HOUR = "hour"
    DAY = "day"


class ResolvedRange(BaseModel):
    """Concrete window for a time range selector."""
    time_range: TimeRange
    window_start: datetime
    bucket_count: int
    granularity: Granularity


# =============================================================================
# Aggregated Stats Models
# =============================================================================

class TopEntry(BaseModel):
    """A ranked key with its occurrence count."""
    key: str
    count: int


class TimeBucket(BaseModel):
    """A single point in a dense time series."""
    label: str  # ISO date (daily) or ISO timestamp (hourly)
    count: int = 0


class SessionStats(BaseModel):
    """Session-derived metrics."""
    bounce_rate: float = 0.0  # As percentage (0-100), one decimal
    avg_session_duration: int = 0  # In seconds


# =============================================================================
# Response Models
# =============================================================================

class SiteSummary(BaseModel):
    """Complete single-site analytics response."""
    site_id: str
    time_range: TimeRange

    total_page_views: int = 0
    unique_visitors: int = 0
    pages_per_visitor: float = 0.0

    top_pages: list[TopEntry] = Field(default_factory=list)
    top_referrers: list[TopEntry] = Field(default_factory=list)
    top_browsers: list[TopEntry] = Field(default_factory=list)

    time_series: list[TimeBucket] = Field(default_factory=list)
    granularity: Granularity = Granularity.DAY

    bounce_rate: float = 0.0
    avg_session_duration: int = 0

    last_updated: datetime
    cached: bool = False


class SiteOverview(BaseModel):
    """Reduced per-site entry used in all-sites mode."""
    site_id: str
    name: str | None = None
    domain: str | None = None

    total_page_views: int = 0
    unique_visitors: int = 0
    top_pages: list[TopEntry] = Field(default_factory=list)
    time_series: list[TimeBucket] = Field(default_factory=list)
    bounce_rate: float = 0.0

    degraded: bool = False  # True when the site's events could not be fetched


class AllSitesSummary(BaseModel):
    """Aggregate response across every active site."""
    time_range: TimeRange
    granularity: Granularity = Granularity.DAY
    sites: list[SiteOverview] = Field(default_factory=list)
    total_sites: int = 0
    total_page_views: int = 0
    total_unique_visitors: int = 0

    last_updated: datetime
    cached: bool = False
