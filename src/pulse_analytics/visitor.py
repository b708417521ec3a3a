"""
Privacy-preserving visitor identification.

Raw IP addresses are never stored. A visitor key is a truncated SHA-256 of
the IP combined with the site, so the same person gets unrelated keys on
different sites.
"""

import hashlib
from collections.abc import Mapping

VISITOR_KEY_LENGTH = 16


def hash_visitor(ip: str, site_id: str, salt: str = "") -> str:
    """Derive the pseudonymous visitor key for an IP on a site."""
    digest = hashlib.sha256(f"{salt}{ip}{site_id}".encode()).hexdigest()
    return digest[:VISITOR_KEY_LENGTH]


def client_ip(headers: Mapping[str, str]) -> str:
    """Best-effort client IP from proxy headers.

    Uses the first x-forwarded-for hop, then x-real-ip, then "unknown".
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return "unknown"
