"""
JSON API routes for Pulse Analytics.

Collection endpoint for the tracking snippet plus the summary endpoint the
dashboard reads from.
"""

import json
import logging
from collections.abc import Callable

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from ..config import AnalyticsConfig
from ..core.client import SupabaseEventStore, UpstreamFetchError
from ..core.models import TrackRequest
from ..service import AnalyticsService, utc_now
from ..visitor import client_ip, hash_visitor

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


async def _decode_track_body(request: Request) -> TrackRequest:
    """Decode a JSON or text/plain beacon body into a TrackRequest.

    Raises:
        HTTPException: 400 if the body is not JSON or misses required fields
    """
    raw = await request.body()
    try:
        payload = json.loads(raw or b"null")
    except ValueError:
        raise HTTPException(status_code=400, detail="Body must be JSON") from None

    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Body must be a JSON object")

    try:
        return TrackRequest.model_validate(payload)
    except ValidationError:
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: siteId and path",
        ) from None


def create_analytics_router(
    service: AnalyticsService,
    store: SupabaseEventStore,
    config: AnalyticsConfig,
    script: Callable[[], str] | None = None,
) -> APIRouter:
    """Create the analytics API router.

    Args:
        service: Summary service backing GET /analytics
        store: Event store new pageviews are written to
        config: Analytics configuration
        script: Optional callable returning the tracking snippet for GET /track.js
    """
    router = APIRouter(tags=["analytics"])
    summary_cache_control = (
        f"private, max-age={config.cache_ttl_seconds}" if config.cache_enabled else "no-store"
    )

    @router.get("/analytics")
    async def analytics_summary(
        site_id: str | None = Query(None, alias="siteId"),
        period: str | None = Query(None, alias="range"),
    ):
        """Summary for one site, or every active site when siteId=all."""
        if not site_id:
            raise HTTPException(status_code=400, detail="Missing siteId")

        try:
            summary = await service.get_summary(site_id, period)
        except UpstreamFetchError as e:
            logger.error(f"Analytics fetch for '{site_id}' failed: {e}")
            raise HTTPException(status_code=502, detail="Event store unavailable") from None

        return JSONResponse(
            summary.model_dump(mode="json"),
            headers={"Cache-Control": summary_cache_control},
        )

    @router.post("/track")
    async def track(request: Request):
        """Record a pageview sent by the tracking snippet."""
        try:
            body = await _decode_track_body(request)
        except HTTPException as e:
            logger.warning(f"Rejected track request: {e.detail}")
            return JSONResponse({"error": e.detail}, status_code=e.status_code, headers=CORS_HEADERS)

        visitor_key = hash_visitor(client_ip(request.headers), body.siteId, config.visitor_salt)
        event = body.to_event(visitor_key, utc_now())

        try:
            await store.insert_event(event)
        except UpstreamFetchError as e:
            logger.error(f"Failed to store pageview for '{body.siteId}': {e}")
            return JSONResponse(
                {"error": "Failed to track event"},
                status_code=500,
                headers=CORS_HEADERS,
            )

        return JSONResponse({"ok": True, "tracked": True}, headers=CORS_HEADERS)

    @router.options("/track")
    async def track_preflight():
        """CORS preflight for the tracking endpoint."""
        return Response(status_code=200, headers=CORS_HEADERS)

    if script is not None:
        @router.get("/track.js")
        async def tracking_script():
            """Serve the tracking snippet."""
            return Response(
                content=script(),
                media_type="application/javascript",
                headers={"Cache-Control": "public, max-age=3600"},
            )

    return router
