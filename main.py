"""
Main API module for the Short Link Platform.

Responsibilities:
    - Expose REST endpoints for creating, listing and inspecting short links
    - Redirect short codes, recording a click (IP, country, user agent) per visit
    - Rate-limit every route per client IP
    - Map domain errors to HTTP statuses

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - Storage chosen by `get_storage()` (memory or postgres) unless injected.
    - LinkManager owns lifecycle rules; routes only marshal requests/responses.
    - Country lookup (with its TTL cache) is created per app and injected.
"""

import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import RedirectResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from shortlink_platform.analytics.geo import CountryCache, CountryLookup
from shortlink_platform.config import settings
from shortlink_platform.manager.link_manager import (
    AliasInUseError,
    CodeExistsError,
    CodeGenerationExhaustedError,
    InvalidAliasError,
    InvalidExpiryError,
    InvalidURLError,
    LinkExpiredError,
    LinkManager,
    LinkNotFoundError,
    StorageError,
)
from shortlink_platform.qr import qr_data_url
from shortlink_platform.schemas import LinkDetails, LinkOverview, ShortenRequest, ShortenResponse
from shortlink_platform.storage.base import BaseStorage
from shortlink_platform.storage.storage_factory import get_storage

log = logging.getLogger("shortlink")


def client_ip(request: Request) -> str:
    """First X-Forwarded-For entry, else the socket peer address."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else ""


def _to_http_error(exc: Exception) -> HTTPException:
    """Translate domain/storage errors into client-facing statuses."""
    if isinstance(exc, InvalidURLError):
        return HTTPException(status_code=400, detail=f"invalid url: {exc}")
    if isinstance(exc, (InvalidAliasError, CodeExistsError, AliasInUseError, InvalidExpiryError)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, LinkNotFoundError):
        return HTTPException(status_code=404, detail="link not found")
    if isinstance(exc, LinkExpiredError):
        return HTTPException(status_code=410, detail="link has expired")
    return HTTPException(status_code=500, detail=str(exc))


_HANDLED = (
    InvalidURLError,
    InvalidAliasError,
    InvalidExpiryError,
    AliasInUseError,
    CodeExistsError,
    CodeGenerationExhaustedError,
    LinkNotFoundError,
    LinkExpiredError,
    StorageError,
)


def create_app(
    storage: Optional[BaseStorage] = None,
    manager: Optional[LinkManager] = None,
    country_lookup: Optional[CountryLookup] = None,
    rate_limit: Optional[str] = None,
) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        storage: Backend to use; defaults to `get_storage()` (env-selected).
        manager: Fully wired LinkManager (overrides `storage`), e.g. with a fake clock.
        country_lookup: Country resolver; defaults to the HTTP lookup with a fresh cache.
        rate_limit: slowapi limit string; defaults to settings.RATE_LIMIT, "" disables.

    Returns:
        FastAPI: A configured app with its own storage, cache and limiter.
    """
    if not logging.getLogger().handlers:
        logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(
        title="Short Link Platform",
        description="URL shortener with expiring links and per-link click analytics",
        docs_url="/docs",
    )

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    if manager is None:
        manager = LinkManager(storage=storage or get_storage())
    if country_lookup is None:
        country_lookup = CountryLookup(
            cache=CountryCache(ttl=settings.GEOIP_CACHE_TTL),
            endpoint=settings.GEOIP_ENDPOINT,
            timeout=settings.GEOIP_TIMEOUT,
        )
    log.info("Link storage backend: %s", type(manager.storage).__name__)

    limit = settings.RATE_LIMIT if rate_limit is None else rate_limit
    limiter = Limiter(key_func=client_ip, default_limits=[limit] if limit else [], enabled=bool(limit))
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    app.state.manager = manager
    app.state.country_lookup = country_lookup

    # Health check
    @app.get("/health")
    def health():
        return {"status": "ok"}

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.post("/api/shorten", status_code=201, response_model=ShortenResponse)
    def shorten(req: ShortenRequest) -> ShortenResponse:
        """
        Create a short link.

        Raises:
            HTTPException: 400 on invalid url/alias/expiry or alias conflicts,
                500 on code exhaustion or storage failure.
        """
        try:
            link = manager.create_link(req.url, req.custom_alias, req.expires_at)
        except _HANDLED as exc:
            raise _to_http_error(exc)

        short_url = manager.short_url(link.code)
        return ShortenResponse(
            code=link.code,
            short_url=short_url,
            original_url=link.original_url,
            expires_at=link.expires_at,
            qr_code=qr_data_url(short_url),
        )

    @app.get("/api/links", response_model=List[LinkOverview])
    def list_links() -> List[LinkOverview]:
        try:
            overviews = manager.list_links()
        except StorageError as exc:
            raise _to_http_error(exc)
        return [LinkOverview(**item) for item in overviews]

    @app.get("/api/links/{code}", response_model=LinkDetails, response_model_exclude_none=True)
    def link_details(code: str) -> LinkDetails:
        """Analytics for one active link; 404 if unknown, 410 if expired."""
        try:
            details = manager.link_details(code)
        except _HANDLED as exc:
            raise _to_http_error(exc)
        return LinkDetails(**details, qr_code=qr_data_url(details["short_url"]))

    @app.get("/{code}", name="redirect_link")
    def redirect_link(code: str, request: Request) -> RedirectResponse:
        """
        Redirect to the original URL and record the click.

        A click-recording failure is logged and does not block the redirect.
        """
        try:
            link = manager.get_active_link(code)
        except _HANDLED as exc:
            raise _to_http_error(exc)

        ip = client_ip(request)
        try:
            manager.record_click(
                code,
                ip=ip,
                user_agent=request.headers.get("user-agent", ""),
                country=country_lookup.lookup(ip),
            )
        except LinkNotFoundError:
            log.info("Link %s vanished before its click was recorded", code)
        except StorageError as exc:
            log.error("failed to record click for %s: %s", code, exc)

        return RedirectResponse(url=link.original_url, status_code=302)

    return app


# `uvicorn main:app` and `from main import app` keep working.
app = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT)
