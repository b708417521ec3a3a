"""
Time range resolution.

Maps a symbolic selector (24h, 7d, 30d, 90d) to a concrete window. Unknown
selectors fall back to the default range instead of failing, so malformed
client input from older dashboards keeps working.
"""

import logging
from datetime import datetime, timedelta

from .models import Granularity, ResolvedRange, TimeRange

logger = logging.getLogger(__name__)

DEFAULT_RANGE = TimeRange.LAST_7_DAYS

# (duration, bucket count, granularity)
RANGE_WINDOWS = {
    TimeRange.LAST_24_HOURS: (timedelta(hours=24), 24, Granularity.HOUR),
    TimeRange.LAST_7_DAYS: (timedelta(days=7), 7, Granularity.DAY),
    TimeRange.LAST_30_DAYS: (timedelta(days=30), 30, Granularity.DAY),
    TimeRange.LAST_90_DAYS: (timedelta(days=90), 90, Granularity.DAY),
}


def parse_time_range(
    selector: str | TimeRange | None,
    default: TimeRange = DEFAULT_RANGE,
) -> TimeRange:
    """Validate a selector against the known ranges.

    Returns the default range for missing or unrecognized values.
    """
    if isinstance(selector, TimeRange):
        return selector
    try:
        return TimeRange(selector)
    except ValueError:
        if selector:
            logger.debug(f"Unknown time range {selector!r}, using {default.value}")
        return default


def resolve_range(
    selector: str | TimeRange | None,
    now: datetime,
    default: TimeRange = DEFAULT_RANGE,
) -> ResolvedRange:
    """Resolve a selector into window start, bucket count and granularity.

    Args:
        selector: Range selector (24h, 7d, 30d, 90d). Anything else resolves
            to ``default``.
        now: Reference time for the window

    Returns:
        ResolvedRange with window_start = now - duration
    """
    time_range = parse_time_range(selector, default)
    duration, bucket_count, granularity = RANGE_WINDOWS[time_range]

    return ResolvedRange(
        time_range=time_range,
        window_start=now - duration,
        bucket_count=bucket_count,
        granularity=granularity,
    )
