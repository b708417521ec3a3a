"""
Core analytics module.

Contains the data models, the aggregation engine and the event store client.
"""

from .client import SupabaseEventStore, UpstreamFetchError
from .models import (
    AllSitesSummary,
    Event,
    Granularity,
    ResolvedRange,
    SessionStats,
    Site,
    SiteOverview,
    SiteSummary,
    TimeBucket,
    TimeRange,
    TopEntry,
    TrackRequest,
)
from .ranges import resolve_range

__all__ = [
    "Event", "Site", "TrackRequest",
    "TimeRange", "Granularity", "ResolvedRange",
    "TopEntry", "TimeBucket", "SessionStats",
    "SiteSummary", "SiteOverview", "AllSitesSummary",
    "resolve_range",
    "SupabaseEventStore", "UpstreamFetchError",
]
