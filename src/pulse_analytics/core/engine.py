"""
Aggregation engine.

Pure functions turning a slice of pageview events into dashboard metrics.
None of them perform I/O or depend on each other; each one reads the same
event list and can run in any order.
"""
from collections import Counter, defaultdict
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timedelta, timezone

from ..referrer import extract_referrer_domain
from ..user_agent import classify_browser
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
    TopEntry,
)

# Default ranking sizes
TOP_PAGES_LIMIT = 10
TOP_REFERRERS_LIMIT = 10
TOP_BROWSERS_LIMIT = 5

# Visitors whose first and last event are this far apart are not one session
MAX_SESSION_DURATION = timedelta(hours=1)

_ONE_MS = timedelta(milliseconds=1)


# =========================================================================
# VISITORS
# =========================================================================

def count_unique_visitors(events: Iterable[Event]) -> int:
    """Number of distinct visitor keys in the slice."""
    return len({event.visitor_key for event in events})


# =========================================================================
# RANKINGS
# =========================================================================

def rank_top(
    events: Iterable[Event],
    extractor: Callable[[Event], str | None],
    limit: int,
) -> list[TopEntry]:
    """Count the keys produced by ``extractor`` and return the most frequent.

    Events for which the extractor returns None are skipped. Equal counts
    keep the order in which their keys were first seen.
    """
    counts: Counter[str] = Counter()
    for event in events:
        key = extractor(event)
        if key is not None:
            counts[key] += 1

    # most_common() is stable for equal counts
    return [TopEntry(key=key, count=count) for key, count in counts.most_common(limit)]


def page_key(event: Event) -> str:
    return event.path


def referrer_key(event: Event) -> str | None:
    return extract_referrer_domain(event.referrer)


def browser_key(event: Event) -> str | None:
    browser = classify_browser(event.user_agent)
    return browser.value if browser else None


def top_pages(events: Sequence[Event], limit: int = TOP_PAGES_LIMIT) -> list[TopEntry]:
    """Most viewed paths, verbatim (query string, case and trailing slash kept)."""
    return rank_top(events, page_key, limit)


def top_referrers(events: Sequence[Event], limit: int = TOP_REFERRERS_LIMIT) -> list[TopEntry]:
    """Most frequent referrer hostnames; events without a parsable referrer are skipped."""
    return rank_top(events, referrer_key, limit)


def top_browsers(events: Sequence[Event], limit: int = TOP_BROWSERS_LIMIT) -> list[TopEntry]:
    """Browser family breakdown; events without a user-agent are skipped."""
    return rank_top(events, browser_key, limit)


# =========================================================================
# TIME SERIES
# =========================================================================

def bucket_bounds(
    now: datetime,
    bucket_count: int,
    granularity: Granularity,
) -> list[tuple[datetime, datetime, str]]:
    """Compute (start, end, label) for each bucket, oldest first.

    Hourly buckets start on the hour; daily buckets start at midnight UTC.
    Each bucket ends one millisecond before the next one starts.
    """
    now = _as_utc(now)
    bounds = []

    for offset in range(bucket_count - 1, -1, -1):
        if granularity == Granularity.HOUR:
            moment = now - timedelta(hours=offset)
            start = moment.replace(minute=0, second=0, microsecond=0)
            end = start + timedelta(hours=1) - _ONE_MS
            label = start.isoformat().replace("+00:00", "Z")
        else:
            moment = now - timedelta(days=offset)
            start = moment.replace(hour=0, minute=0, second=0, microsecond=0)
            end = start + timedelta(days=1) - _ONE_MS
            label = start.date().isoformat()
        bounds.append((start, end, label))

    return bounds


def build_time_series(
    events: Sequence[Event],
    now: datetime,
    bucket_count: int,
    granularity: Granularity,
) -> list[TimeBucket]:
    """Count events per bucket, including empty buckets.

    Both bucket ends are inclusive.
    """
    timestamps = [_as_utc(event.occurred_at) for event in events]

    return [
        TimeBucket(label=label, count=sum(1 for ts in timestamps if start <= ts <= end))
        for start, end, label in bucket_bounds(now, bucket_count, granularity)
    ]


# =========================================================================
# SESSIONS
# =========================================================================

def bounce_rate(events: Iterable[Event]) -> float:
    """Percentage of visitors with exactly one event, to one decimal."""
    views_per_visitor = Counter(event.visitor_key for event in events)
    if not views_per_visitor:
        return 0.0

    single_page = sum(1 for count in views_per_visitor.values() if count == 1)
    return round(single_page / len(views_per_visitor) * 100, 1)


def avg_session_duration(events: Iterable[Event]) -> int:
    """Mean first-to-last span in whole seconds.

    Only visitors with more than one event and a span under an hour count.
    """
    timestamps: dict[str, list[datetime]] = defaultdict(list)
    for event in events:
        timestamps[event.visitor_key].append(_as_utc(event.occurred_at))

    durations_ms = []
    for visitor_times in timestamps.values():
        if len(visitor_times) < 2:
            continue
        visitor_times.sort()
        duration = visitor_times[-1] - visitor_times[0]
        if duration < MAX_SESSION_DURATION:
            durations_ms.append(duration // _ONE_MS)

    if not durations_ms:
        return 0

    return sum(durations_ms) // (len(durations_ms) * 1000)


def session_stats(events: Sequence[Event]) -> SessionStats:
    """Bounce rate and average session duration for the slice."""
    return SessionStats(
        bounce_rate=bounce_rate(events),
        avg_session_duration=avg_session_duration(events),
    )


# =========================================================================
# ASSEMBLY
# =========================================================================

def summarize_site(
    site_id: str,
    events: Sequence[Event],
    window: ResolvedRange,
    now: datetime,
    page_limit: int = TOP_PAGES_LIMIT,
    referrer_limit: int = TOP_REFERRERS_LIMIT,
    browser_limit: int = TOP_BROWSERS_LIMIT,
) -> SiteSummary:
    """Build the full single-site summary from one event slice."""
    events = list(events or [])
    visitors = count_unique_visitors(events)
    sessions = session_stats(events)

    return SiteSummary(
        site_id=site_id,
        time_range=window.time_range,
        total_page_views=len(events),
        unique_visitors=visitors,
        pages_per_visitor=round(len(events) / visitors, 1) if visitors else 0.0,
        top_pages=top_pages(events, page_limit),
        top_referrers=top_referrers(events, referrer_limit),
        top_browsers=top_browsers(events, browser_limit),
        time_series=build_time_series(events, now, window.bucket_count, window.granularity),
        granularity=window.granularity,
        bounce_rate=sessions.bounce_rate,
        avg_session_duration=sessions.avg_session_duration,
        last_updated=now,
    )


def summarize_site_overview(
    site: Site,
    events: Sequence[Event],
    window: ResolvedRange,
    now: datetime,
    page_limit: int = TOP_PAGES_LIMIT,
) -> SiteOverview:
    """Build the reduced per-site entry used in all-sites mode."""
    events = list(events or [])

    return SiteOverview(
        site_id=site.site_id,
        name=site.name,
        domain=site.domain,
        total_page_views=len(events),
        unique_visitors=count_unique_visitors(events),
        top_pages=top_pages(events, page_limit),
        time_series=build_time_series(events, now, window.bucket_count, window.granularity),
        bounce_rate=bounce_rate(events),
    )


def degraded_overview(site: Site, window: ResolvedRange, now: datetime) -> SiteOverview:
    """Zero-valued entry for a site whose events could not be fetched."""
    overview = summarize_site_overview(site, [], window, now)
    return overview.model_copy(update={"degraded": True})


def summarize_all_sites(
    overviews: Sequence[SiteOverview],
    window: ResolvedRange,
    now: datetime,
) -> AllSitesSummary:
    """Combine per-site entries, preserving their order, and add totals."""
    return AllSitesSummary(
        time_range=window.time_range,
        granularity=window.granularity,
        sites=list(overviews),
        total_sites=len(overviews),
        total_page_views=sum(o.total_page_views for o in overviews),
        total_unique_visitors=sum(o.unique_visitors for o in overviews),
        last_updated=now,
    )


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
