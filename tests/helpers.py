"""Shared event builders and fixed timestamps for analytics tests."""

from datetime import datetime, timezone

from pulse_analytics.core.models import Event

NOW = datetime(2026, 3, 15, 14, 30, tzinfo=timezone.utc)

CHROME_UA = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
SAFARI_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
FIREFOX_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0"
LEGACY_EDGE_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/70.0.3538.102 Safari/537.36 Edge/18.19582"


def make_event(
    visitor_key: str = "v1",
    occurred_at: datetime = NOW,
    path: str = "/",
    referrer: str | None = None,
    user_agent: str | None = None,
    site_id: str = "site-1",
) -> Event:
    return Event(
        site_id=site_id,
        path=path,
        referrer=referrer,
        user_agent=user_agent,
        visitor_key=visitor_key,
        occurred_at=occurred_at,
    )
