"""
Analytics views for the Short Link Platform.

Responsibilities:
    - Summarize a link for listings (total clicks, unique visitors)
    - Build the detailed view: last access time and a per-country histogram
    - Compose the public short URL from the configured base URL

Click events themselves are recorded by the storage backend
(`BaseStorage.record_click`); this module only reads them.
"""

from typing import Any, Dict, Iterable

from ..model import UNKNOWN_COUNTRY, Click, Link


def short_url(base_url: str, code: str) -> str:
    """Public short URL: base URL (trailing slash trimmed) + "/" + code."""
    return f"{base_url.rstrip('/')}/{code}"


def country_counts(clicks: Iterable[Click]) -> Dict[str, int]:
    """
    Histogram of clicks per country.

    Example:
        {"US": 3, "DE": 1, "Unknown": 2}

    Clicks without a country are bucketed as "Unknown".
    """
    counts: Dict[str, int] = {}
    for click in clicks:
        country = click.country or UNKNOWN_COUNTRY
        counts[country] = counts.get(country, 0) + 1
    return counts


def build_link_overview(link: Link) -> Dict[str, Any]:
    """Aggregate-only view used by listings."""
    return {
        "code": link.code,
        "original_url": link.original_url,
        "created_at": link.created_at,
        "expires_at": link.expires_at,
        "total_clicks": link.total_clicks,
        "unique_visitors": link.unique_visitors,
    }


def build_link_details(link: Link, base_url: str) -> Dict[str, Any]:
    """
    Full analytics view of one link.

    Returns:
        Dict[str, Any]: overview fields plus
            - short_url: str
            - last_accessed: datetime of the most recent click, or None
            - country_counts: Dict[str, int]
    """
    details = build_link_overview(link)
    details.update(
        short_url=short_url(base_url, link.code),
        last_accessed=link.last_accessed,
        country_counts=country_counts(link.clicks),
    )
    return details
