"""
Country lookup for click events.

Responsibilities:
    - Resolve a client IP to a country string via an HTTP geo-IP endpoint
    - Cache resolved countries per IP with a TTL (lazy expiry on read)
    - Fall back to "Unknown" on any failure; click recording never waits on errors

Both pieces are plain objects created by the app factory and injected where
needed; the cache takes a clock so tests can move time deterministically.
"""

import logging
import threading
import time
from typing import Callable, Dict, Optional, Tuple
from urllib.parse import quote

import requests

from ..model import UNKNOWN_COUNTRY

log = logging.getLogger(__name__)

Clock = Callable[[], float]


class CountryCache:
    """
    IP -> (country, expires_at) mapping with expiry checked on read.

    `put` also sweeps out every expired entry, at most once per TTL period, so
    IPs that are never looked up again do not stay in memory.
    """

    def __init__(self, ttl: float = 3600.0, clock: Optional[Clock] = None):
        self.ttl = ttl
        self._clock = clock or time.monotonic
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()
        self._next_sweep = self._clock() + ttl

    def get(self, ip: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(ip)
            if entry is None:
                return None
            country, expires_at = entry
            if self._clock() > expires_at:
                del self._entries[ip]
                return None
            return country

    def put(self, ip: str, country: str) -> None:
        if not country:
            return
        with self._lock:
            now = self._clock()
            if now >= self._next_sweep:
                self._sweep(now)
            self._entries[ip] = (country, now + self.ttl)

    def _sweep(self, now: float) -> None:
        expired = [ip for ip, (_, expires_at) in self._entries.items() if now > expires_at]
        for ip in expired:
            del self._entries[ip]
        self._next_sweep = now + self.ttl
        if expired:
            log.debug("country cache: evicted %d expired entries", len(expired))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CountryLookup:
    """
    Resolve IPs to countries through `endpoint`.

    Args:
        cache (CountryCache): Injected cache.
        endpoint (str): URL template; "%s" is replaced by the IP, otherwise the IP
            is appended as a path segment.
        timeout (float): Seconds per HTTP request.
        session (Optional[requests.Session]): Reused HTTP session (optional).
    """

    def __init__(
        self,
        cache: CountryCache,
        endpoint: str = "https://ipapi.co/%s/country/",
        timeout: float = 2.0,
        session: Optional[requests.Session] = None,
    ):
        self.cache = cache
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url_for(self, ip: str) -> str:
        escaped = quote(ip, safe="")
        if "%s" in self.endpoint:
            return self.endpoint % escaped
        return f"{self.endpoint.rstrip('/')}/{escaped}"

    def fetch(self, ip: str) -> Optional[str]:
        """Single uncached lookup; None when the endpoint gives nothing usable."""
        try:
            resp = self.session.get(self._url_for(ip), timeout=self.timeout)
        except requests.RequestException as exc:
            log.debug("geo lookup for %s failed: %s", ip, exc)
            return None
        if resp.status_code >= 400:
            log.debug("geo lookup for %s failed: HTTP %s", ip, resp.status_code)
            return None
        country = resp.text.strip()
        return country or None

    def lookup(self, ip: str) -> str:
        if not ip:
            return UNKNOWN_COUNTRY
        cached = self.cache.get(ip)
        if cached:
            return cached
        country = self.fetch(ip)
        if not country:
            return UNKNOWN_COUNTRY
        self.cache.put(ip, country)
        return country
