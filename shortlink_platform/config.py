"""
Runtime configuration for the Short Link Platform
=================================================

Simple settings module that reads from environment variables (only here),
and exposes a stable `settings` object for the rest of the codebase.
Avoid reading env vars anywhere else; import from this module instead.
(The storage factory is the one exception: it reads its variables lazily.)

Service
-------
- SHORTLINK_BASE_URL        : public base for short URLs (default "http://localhost:8080")
- SHORTLINK_HOST            : bind host for uvicorn (default "0.0.0.0")
- SHORTLINK_PORT            : bind port for uvicorn (default 8080)
- SHORTLINK_LOG_LEVEL       : logging level name (default "INFO")
- SHORTLINK_RATE_LIMIT      : slowapi limit string per client IP (default "10/minute")

Links
-----
- SHORTLINK_LINK_TTL_DAYS   : default lifetime of a link (default 30)

Country lookup
--------------
- SHORTLINK_GEOIP_ENDPOINT  : lookup URL; "%s" is replaced by the IP (default "https://ipapi.co/%s/country/")
- SHORTLINK_GEOIP_TIMEOUT   : seconds per lookup request (default 2.0)
- SHORTLINK_GEOIP_CACHE_TTL : seconds a resolved country is cached (default 3600)
"""

import os


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name, str(default))
    try:
        return float(raw)
    except ValueError:
        return default


class _Settings:
    # -------- Storage (see storage_factory for lazy reads) --------
    STORAGE_BACKEND: str = os.getenv("SHORTLINK_STORAGE_BACKEND", "memory").strip().lower()

    # -------- Service --------
    BASE_URL: str = os.getenv("SHORTLINK_BASE_URL", "http://localhost:8080").strip().rstrip("/")
    HOST: str = os.getenv("SHORTLINK_HOST", "0.0.0.0")
    PORT: int = _get_int("SHORTLINK_PORT", 8080)
    LOG_LEVEL: str = os.getenv("SHORTLINK_LOG_LEVEL", "INFO").strip().upper()
    RATE_LIMIT: str = os.getenv("SHORTLINK_RATE_LIMIT", "10/minute")

    # -------- Links --------
    LINK_TTL_DAYS: int = max(1, _get_int("SHORTLINK_LINK_TTL_DAYS", 30))

    # Generated code bounds; custom aliases follow their own 3..30 rule
    CODE_MIN_LENGTH: int = 6
    CODE_MAX_LENGTH: int = 8
    CODE_MAX_ATTEMPTS: int = 5

    # -------- Country lookup --------
    GEOIP_ENDPOINT: str = os.getenv("SHORTLINK_GEOIP_ENDPOINT", "").strip() or "https://ipapi.co/%s/country/"
    GEOIP_TIMEOUT: float = _get_float("SHORTLINK_GEOIP_TIMEOUT", 2.0)
    GEOIP_CACHE_TTL: float = _get_float("SHORTLINK_GEOIP_CACHE_TTL", 3600.0)


settings = _Settings()
