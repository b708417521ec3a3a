"""
User-Agent classification into browser families.

User-Agents are notoriously messy (Chrome claims to be Safari, Edge claims to
be Chrome), so classification is a fixed, ordered list of substring rules.
The rules are part of the dashboard's observable behaviour: changing their
order changes historical browser breakdowns.

Key Design Decisions:
- Plain substring containment, no regexes and no version extraction
- Each rule may name tokens that must be absent (Edge excludes Chrome,
  Chrome excludes Safari)
- Anything unmatched is "Other"; a missing UA is not classified at all
"""

from dataclasses import dataclass
from enum import Enum


class Browser(str, Enum):
    """Browser family."""
    CHROME = "Chrome"
    SAFARI = "Safari"
    FIREFOX = "Firefox"
    EDGE = "Edge"
    OTHER = "Other"


@dataclass(frozen=True)
class BrowserRule:
    """
    A single classification rule.

    Attributes:
        browser: Family assigned when the rule matches
        contains: Token that must appear in the UA
        excludes: Tokens that must not appear in the UA
    """
    browser: Browser
    contains: str
    excludes: tuple[str, ...] = ()

    def matches(self, user_agent: str) -> bool:
        if self.contains not in user_agent:
            return False
        return not any(token in user_agent for token in self.excludes)


# =============================================================================
# BROWSER RULES
# =============================================================================
# Order matters! The first matching rule wins.

BROWSER_RULES = (
    BrowserRule(Browser.CHROME, "Chrome", excludes=("Edge",)),
    BrowserRule(Browser.SAFARI, "Safari", excludes=("Chrome",)),
    BrowserRule(Browser.FIREFOX, "Firefox"),
    BrowserRule(Browser.EDGE, "Edge"),
)


def classify_browser(user_agent: str | None) -> Browser | None:
    """
    Classify a user-agent string into a browser family.

    Args:
        user_agent: The User-Agent header value

    Returns:
        The Browser family, or None when no user-agent was recorded

    Examples:
        >>> classify_browser("Mozilla/5.0 ... Chrome/120.0.0.0 Safari/537.36")
        <Browser.CHROME: 'Chrome'>

        >>> classify_browser("Mozilla/5.0 ... Chrome/70.0 Safari/537.36 Edge/18.17763")
        <Browser.EDGE: 'Edge'>
    """
    if not user_agent:
        return None

    for rule in BROWSER_RULES:
        if rule.matches(user_agent):
            return rule.browser

    return Browser.OTHER
