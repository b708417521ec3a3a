"""
HTTP client for the Supabase event store.

Reads pageviews and active sites through the PostgREST API and writes new
pageviews collected by the tracking endpoint.
"""
import logging
from datetime import datetime
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from .models import Event, Site

logger = logging.getLogger(__name__)

EVENT_COLUMNS = "path,referrer,user_agent,ip_hash,created_at"
SITE_COLUMNS = "site_id,name,domain"


class UpstreamFetchError(Exception):
    """Raised when the event store cannot be reached or returns bad data."""
    pass


class SupabaseEventStore:
    """Client for reading and writing analytics events in Supabase."""

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        events_table: str = "analytics_events",
        sites_table: str = "sites",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = f"{supabase_url.rstrip('/')}/rest/v1"
        self.api_key = supabase_key
        self.events_table = events_table
        self.sites_table = sites_table
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[dict[str, str]] = None,
        json: Any = None,
    ) -> list[dict]:
        """Execute a PostgREST request and return its rows."""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.request(
                    method,
                    f"{self.base_url}/{table}",
                    headers=self._headers(),
                    params=params,
                    json=json,
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise UpstreamFetchError(f"Supabase {method} {table} failed: {e}") from e

            if not response.content:
                return []

            try:
                data = response.json()
            except ValueError as e:
                raise UpstreamFetchError(f"Supabase {method} {table} returned invalid JSON") from e

            if data is None:
                return []
            if not isinstance(data, list):
                raise UpstreamFetchError(f"Supabase {method} {table} returned {type(data).__name__}, expected list")
            return data

    # =========================================================================
    # EVENTS
    # =========================================================================

    async def fetch_events(self, site_id: str, since: datetime) -> list[Event]:
        """Get a site's pageviews since ``since``."""
        rows = await self._request(
            "GET",
            self.events_table,
            params={
                "select": EVENT_COLUMNS,
                "site_id": f"eq.{site_id}",
                "created_at": f"gte.{since.isoformat()}",
            },
        )

        try:
            return [
                Event(
                    site_id=site_id,
                    path=r["path"],
                    referrer=r.get("referrer"),
                    user_agent=r.get("user_agent"),
                    visitor_key=r["ip_hash"],
                    occurred_at=r["created_at"],
                )
                for r in rows
            ]
        except (KeyError, ValidationError) as e:
            raise UpstreamFetchError(f"Malformed event row for site {site_id}: {e}") from e

    async def insert_event(self, event: Event) -> None:
        """Store a collected pageview."""
        await self._request(
            "POST",
            self.events_table,
            json={
                "site_id": event.site_id,
                "path": event.path,
                "referrer": event.referrer,
                "user_agent": event.user_agent,
                "ip_hash": event.visitor_key,
                "created_at": event.occurred_at.isoformat(),
            },
        )
        logger.debug(f"Stored pageview for site {event.site_id}: {event.path}")

    # =========================================================================
    # SITES
    # =========================================================================

    async def list_active_sites(self) -> list[Site]:
        """Get all active sites, newest first."""
        rows = await self._request(
            "GET",
            self.sites_table,
            params={
                "select": SITE_COLUMNS,
                "is_active": "eq.true",
                "order": "created_at.desc",
            },
        )

        try:
            return [Site(**r) for r in rows]
        except (TypeError, ValidationError) as e:
            raise UpstreamFetchError(f"Malformed site row: {e}") from e
