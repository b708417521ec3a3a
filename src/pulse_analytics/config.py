"""
Configuration for Pulse Analytics.
"""
import logging
import os
from dataclasses import dataclass

from .core.models import TimeRange

logger = logging.getLogger(__name__)

DEFAULT_RANGE = TimeRange.LAST_7_DAYS.value


class ConfigError(ValueError):
    """Raised when configuration values are unusable."""
    pass


@dataclass
class AnalyticsConfig:
    """Configuration for an analytics backend instance."""

    # Event store (Supabase)
    supabase_url: str
    supabase_key: str
    events_table: str = "analytics_events"
    sites_table: str = "sites"
    request_timeout_seconds: float = 30.0

    # Dashboard defaults
    default_range: str = DEFAULT_RANGE

    # Ranking sizes
    top_pages_limit: int = 10
    top_referrers_limit: int = 10
    top_browsers_limit: int = 5

    # Performance
    cache_ttl_seconds: int = 60  # Dashboard data cache, <= 0 disables

    # Mixed into visitor hashes
    visitor_salt: str = ""

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_default_range()
        self._validate_limits()

    def _validate_default_range(self) -> None:
        valid = {r.value for r in TimeRange}
        if self.default_range not in valid:
            logger.warning(
                f"Unknown default_range {self.default_range!r}, "
                f"falling back to {DEFAULT_RANGE}"
            )
            self.default_range = DEFAULT_RANGE

    def _validate_limits(self) -> None:
        for name in ("top_pages_limit", "top_referrers_limit", "top_browsers_limit"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigError(f"{name} must be positive. Got {value}.")

    @property
    def cache_enabled(self) -> bool:
        """Check if the dashboard result cache is on."""
        return self.cache_ttl_seconds > 0

    @property
    def default_time_range(self) -> TimeRange:
        return TimeRange(self.default_range)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "AnalyticsConfig":
        """Build a config from PULSE_* environment variables.

        Raises:
            ConfigError: If the Supabase URL or key is missing, or a numeric
                variable is not a number
        """
        env = os.environ if environ is None else environ

        url = env.get("PULSE_SUPABASE_URL")
        key = env.get("PULSE_SUPABASE_KEY")
        if not url or not key:
            raise ConfigError("PULSE_SUPABASE_URL and PULSE_SUPABASE_KEY are required")

        try:
            ttl = int(env.get("PULSE_CACHE_TTL", "60"))
        except ValueError:
            raise ConfigError(
                f"PULSE_CACHE_TTL must be an integer. Got {env.get('PULSE_CACHE_TTL')!r}."
            ) from None

        return cls(
            supabase_url=url,
            supabase_key=key,
            default_range=env.get("PULSE_DEFAULT_RANGE", DEFAULT_RANGE),
            cache_ttl_seconds=ttl,
            visitor_salt=env.get("PULSE_VISITOR_SALT", ""),
        )
