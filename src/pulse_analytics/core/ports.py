"""Collaborator interfaces the analytics service depends on."""

from datetime import datetime
from typing import Protocol, Sequence

from .models import Event, Site


class EventSource(Protocol):
    """Anything that can return the pageviews of a site since a point in time."""

    async def fetch_events(self, site_id: str, since: datetime) -> Sequence[Event] | None:
        """Return the site's events with occurred_at >= since, in any order."""


class SiteRegistry(Protocol):
    """Source of the sites included in all-sites mode."""

    async def list_active_sites(self) -> Sequence[Site]:
        """Return every active site."""
