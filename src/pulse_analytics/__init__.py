"""
Privacy-first multi-site analytics.

Usage:
    from pulse_analytics import AnalyticsConfig, setup_analytics

    analytics = setup_analytics(
        AnalyticsConfig(
            supabase_url="https://your-project.supabase.co",
            supabase_key="your-service-role-key",
        ),
        collect_url="https://example.com/api",
    )

    # Include API routes
    app.include_router(analytics.router, prefix="/api")

    # In templates: {{ analytics.tracking_script("my-site") }}
"""

from .cache import ResultCache
from .config import AnalyticsConfig, ConfigError
from .core.client import SupabaseEventStore, UpstreamFetchError
from .core.models import AllSitesSummary, Event, SiteSummary, TimeRange
from .routes import create_analytics_router
from .service import AnalyticsService

__version__ = "0.1.0"
__all__ = [
    "setup_analytics", "Analytics", "AnalyticsConfig", "ConfigError",
    "AnalyticsService", "ResultCache", "SupabaseEventStore", "UpstreamFetchError",
    "Event", "SiteSummary", "AllSitesSummary", "TimeRange",
]


class Analytics:
    """Main analytics interface wiring store, cache, service and routes."""

    def __init__(self, config: AnalyticsConfig, collect_url: str = ""):
        self.config = config
        self.collect_url = collect_url.rstrip("/")
        self.store = SupabaseEventStore(
            supabase_url=config.supabase_url,
            supabase_key=config.supabase_key,
            events_table=config.events_table,
            sites_table=config.sites_table,
            timeout=config.request_timeout_seconds,
        )
        self.cache = ResultCache(config.cache_ttl_seconds) if config.cache_enabled else None
        self.service = AnalyticsService(
            source=self.store,
            registry=self.store,
            cache=self.cache,
            config=config,
        )
        self.router = create_analytics_router(
            self.service, self.store, config, script=self.script_source
        )

    def script_source(self) -> str:
        """Tracking snippet JavaScript served at /track.js.

        The page embeds it with a data-site-id attribute on the script tag.

        Features:
        - Initial pageload tracking
        - SPA navigation support (pushState, popstate)
        - sendBeacon with a fetch(keepalive) fallback
        - Debounced to prevent duplicate tracks
        """
        return f'''(function(){{
  var d=document,w=window,h=history,l=location;
  var s=d.currentScript;
  var siteId=s&&s.getAttribute("data-site-id");
  if(!siteId||(w._analytics&&w._analytics.initialized))return;
  var url="{self.collect_url}/track";
  var lastPath="",timer;

  function send(){{
    var body=JSON.stringify({{
      siteId:siteId,
      path:l.pathname,
      referrer:d.referrer||null,
      userAgent:navigator.userAgent
    }});
    if(navigator.sendBeacon){{
      navigator.sendBeacon(url,new Blob([body],{{type:"text/plain"}}));
    }}else{{
      fetch(url,{{method:"POST",body:body,keepalive:true,headers:{{"Content-Type":"text/plain"}}}});
    }}
  }}

  function track(){{
    clearTimeout(timer);
    timer=setTimeout(function(){{
      if(l.pathname===lastPath)return;
      lastPath=l.pathname;
      send();
    }},50);
  }}

  w._analytics={{track:track,siteId:siteId,initialized:true}};
  track();

  var push=h.pushState;
  h.pushState=function(){{push.apply(h,arguments);track()}};
  w.addEventListener("popstate",track);
}})();'''

    def tracking_script(self, site_id: str) -> str:
        """Script tag loading the snippet for a site, for use in templates."""
        return f'<script defer src="{self.collect_url}/track.js" data-site-id="{site_id}"></script>'


def setup_analytics(config: AnalyticsConfig, collect_url: str = "") -> Analytics:
    """
    Set up analytics.

    Args:
        config: Analytics configuration (see AnalyticsConfig.from_env)
        collect_url: Public base URL the router is mounted under
            (e.g., "https://example.com/api")

    Returns:
        Analytics instance with router and tracking_script()
    """
    return Analytics(config=config, collect_url=collect_url)
