"""Application service orchestrating the event store, cache and aggregation engine."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from .cache import ResultCache
from .config import AnalyticsConfig
from .core import engine
from .core.models import (
    AllSitesSummary,
    Event,
    ResolvedRange,
    Site,
    SiteOverview,
    SiteSummary,
    TimeRange,
)
from .core.ports import EventSource, SiteRegistry
from .core.ranges import DEFAULT_RANGE, resolve_range

logger = logging.getLogger(__name__)

ALL_SITES = "all"

# Single-site and all-sites results live in separate key shapes
CacheKey = tuple[str, ...]
Summary = SiteSummary | AllSitesSummary


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AnalyticsService:
    """Facade exposing dashboard summaries independent of web frameworks.

    The engine functions stay pure; this class owns the I/O around them:
    resolving the window, fetching events and consulting the optional cache.
    """

    def __init__(
        self,
        source: EventSource,
        registry: SiteRegistry,
        cache: ResultCache | None = None,
        config: AnalyticsConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.source = source
        self.registry = registry
        self.cache = cache
        self.clock = clock

        if config is not None:
            self.default_range = config.default_time_range
            self.page_limit = config.top_pages_limit
            self.referrer_limit = config.top_referrers_limit
            self.browser_limit = config.top_browsers_limit
        else:
            self.default_range = DEFAULT_RANGE
            self.page_limit = engine.TOP_PAGES_LIMIT
            self.referrer_limit = engine.TOP_REFERRERS_LIMIT
            self.browser_limit = engine.TOP_BROWSERS_LIMIT

    async def get_summary(
        self,
        site_selector: str,
        time_range: str | TimeRange | None = None,
    ) -> SiteSummary | AllSitesSummary:
        """Dispatch to all-sites mode for "all", single-site mode otherwise."""
        if site_selector == ALL_SITES:
            return await self.get_all_sites_summary(time_range)
        return await self.get_site_summary(site_selector, time_range)

    async def get_site_summary(
        self,
        site_id: str,
        time_range: str | TimeRange | None = None,
    ) -> SiteSummary:
        """Full analytics for one site.

        Raises:
            UpstreamFetchError: If the event source fails. No partial data
                is returned.
        """
        now = self.clock()
        window = resolve_range(time_range, now, self.default_range)

        key = _site_key(site_id, window.time_range)

        cached = self._cache_get(key)
        if cached is not None:
            return cached

        events = await self.source.fetch_events(site_id, window.window_start)
        summary = engine.summarize_site(
            site_id,
            events or [],
            window,
            now,
            page_limit=self.page_limit,
            referrer_limit=self.referrer_limit,
            browser_limit=self.browser_limit,
        )

        self._cache_set(key, summary)
        return summary

    async def get_all_sites_summary(
        self,
        time_range: str | TimeRange | None = None,
    ) -> AllSitesSummary:
        """Reduced analytics for every active site.

        Sites are fetched concurrently. A site whose fetch fails is reported
        with zero values instead of failing the whole batch. Results with a
        failed registry lookup or any degraded site are not cached.
        """
        now = self.clock()
        window = resolve_range(time_range, now, self.default_range)
        key = _all_sites_key(window.time_range)

        cached = self._cache_get(key)
        if cached is not None:
            return cached

        registry_failed = False
        try:
            sites = list(await self.registry.list_active_sites() or [])
        except Exception as e:
            logger.error(f"Listing active sites failed: {e}")
            registry_failed = True
            sites = []

        results = await asyncio.gather(
            *(self.source.fetch_events(site.site_id, window.window_start) for site in sites),
            return_exceptions=True,
        )

        overviews: list[SiteOverview] = []
        for site, result in zip(sites, results):
            overviews.append(self._site_overview(site, result, window, now))

        summary = engine.summarize_all_sites(overviews, window, now)
        if not registry_failed and not any(o.degraded for o in overviews):
            self._cache_set(key, summary)
        return summary

    def _site_overview(
        self,
        site: Site,
        result: Sequence[Event] | BaseException | None,
        window: ResolvedRange,
        now: datetime,
    ) -> SiteOverview:
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                # CancelledError and friends are not per-site failures
                raise result
            logger.error(f"Fetching events for site '{site.site_id}' failed: {result}")
            return engine.degraded_overview(site, window, now)

        return engine.summarize_site_overview(
            site, result or [], window, now, page_limit=self.page_limit
        )

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def _cache_get(self, key: CacheKey) -> Summary | None:
        if self.cache is None:
            return None
        hit = self.cache.get(key)
        if hit is None:
            return None
        logger.debug(f"Cache hit for {key}")
        return hit.model_copy(update={"cached": True})

    def _cache_set(self, key: CacheKey, summary: Summary) -> None:
        if self.cache is not None:
            self.cache.set(key, summary)


def _site_key(site_id: str, time_range: TimeRange) -> CacheKey:
    return ("site", site_id, time_range.value)


def _all_sites_key(time_range: TimeRange) -> CacheKey:
    return (ALL_SITES, time_range.value)
