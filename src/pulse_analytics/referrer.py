"""
Referrer domain extraction for traffic source ranking.

Only the hostname of a referrer is kept. Events without a usable referrer are
left out of the referrer ranking entirely; they are not reported as "direct".
"""

from urllib.parse import urlparse


def extract_referrer_domain(referrer: str | None) -> str | None:
    """
    Extract the hostname from a referrer URL.

    Returns None if the referrer is empty or is not an absolute URL.

    Examples:
        >>> extract_referrer_domain("https://www.google.com/search?q=test")
        'www.google.com'

        >>> extract_referrer_domain("not a url") is None
        True
    """
    if not referrer or not referrer.strip():
        return None

    try:
        parsed = urlparse(referrer.strip())
        if not parsed.scheme:
            return None
        # .hostname lowercases and drops credentials and port
        return parsed.hostname or None
    except ValueError:
        # e.g. malformed IPv6 netloc or invalid port
        return None
