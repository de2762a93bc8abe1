"""
LinkManager module for the Short Link Platform.

Responsibilities:
    - Validate destination URLs, custom aliases and requested expiry times
    - Resolve a code: validated custom alias, or a random code with bounded retries
    - Decide create vs reject vs replace when a code is taken (expiry-aware)
    - Serve active links (lazy expiry) and record clicks through storage
    - Assemble listing and detail views

Design notes:
    - Storage is an injected dependency (memory or Postgres); all link mutation
      goes through its contract, never through a link object held here.
    - Expiry affects writes in exactly one place, `save_or_replace_link`: an expired
      code becomes reusable as soon as another creation request targets it.
    - Reads treat expired links as gone (`LinkExpiredError`) even though the row
      still exists; nothing is reaped in the background.
    - Clock and code generator are injectable for deterministic tests.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

from ..analytics.analytics import build_link_details, build_link_overview, short_url as compose_short_url
from ..config import settings
from ..model import Click, Link, parse_timestamp, utc_now
from ..storage.base import BaseStorage, CodeExistsError, LinkNotFoundError, StorageError
from .strategies import generate_code

log = logging.getLogger(__name__)

AliasPattern = re.compile(r"^[a-zA-Z0-9_-]{3,30}$")

CodeGenerator = Callable[[int, int], str]  # (min_length, max_length) -> code


class InvalidURLError(ValueError):
    """Destination URL is missing, not http/https, or has no host."""


class InvalidAliasError(ValueError):
    def __init__(self):
        super().__init__("customAlias must be 3-30 characters (letters, numbers, underscores, hyphens)")


class InvalidExpiryError(ValueError):
    """Requested expiry is malformed or not in the future."""


class AliasInUseError(ValueError):
    def __init__(self, code: str):
        super().__init__("customAlias already in use")
        self.code = code


class CodeGenerationExhaustedError(RuntimeError):
    def __init__(self, attempts: int):
        super().__init__(f"unable to find unique code after {attempts} attempts")
        self.attempts = attempts


class LinkExpiredError(LookupError):
    def __init__(self, code: str):
        super().__init__("link has expired")
        self.code = code


class LinkManager:
    """
    Coordinates creation, replacement, lookup and click recording for links.

    Args:
        storage (BaseStorage): Backend storage instance.
        code_generator (Optional[CodeGenerator]): Random code source (optional).
        clock (Optional[Callable[[], datetime]]): UTC clock (optional).
        base_url (Optional[str]): Public base for short URLs; defaults to settings.
        default_ttl (Optional[timedelta]): Lifetime when no expiry is requested.
    """

    def __init__(
        self,
        storage: BaseStorage,
        code_generator: Optional[CodeGenerator] = None,
        clock: Optional[Callable[[], datetime]] = None,
        base_url: Optional[str] = None,
        default_ttl: Optional[timedelta] = None,
        min_length: int = settings.CODE_MIN_LENGTH,
        max_length: int = settings.CODE_MAX_LENGTH,
        max_attempts: int = settings.CODE_MAX_ATTEMPTS,
    ):
        self.storage = storage
        self.code_generator = code_generator or generate_code
        self.clock = clock or utc_now
        self.base_url = (base_url if base_url is not None else settings.BASE_URL).rstrip("/")
        self.default_ttl = default_ttl or timedelta(days=settings.LINK_TTL_DAYS)
        self.min_length = min_length
        self.max_length = max_length
        self.max_attempts = max_attempts

    # ---------------------------------------------------------------------
    # Validation helpers
    # ---------------------------------------------------------------------
    def validate_url(self, raw: str) -> str:
        """
        Validate that a URL is non-empty, http/https, and has a host.

        Raises:
            InvalidURLError: If the URL is malformed.
        """
        url = (raw or "").strip()
        if not url:
            raise InvalidURLError("url is required")
        try:
            parsed = urlparse(url)
        except ValueError as exc:
            raise InvalidURLError(str(exc)) from exc
        if parsed.scheme not in {"http", "https"}:
            raise InvalidURLError("url must start with http or https")
        if not parsed.netloc or not parsed.hostname:
            raise InvalidURLError("url must include host")
        return url

    def parse_expires_at(self, raw: Optional[str]) -> datetime:
        """
        Resolve the expiry of a new link.

        Blank means now + default TTL. Otherwise an RFC-3339 timestamp in the future.

        Raises:
            InvalidExpiryError
        """
        now = self.clock()
        if raw is None or not raw.strip():
            return now + self.default_ttl
        try:
            expires_at = parse_timestamp(raw)
        except ValueError as exc:
            raise InvalidExpiryError("expiresAt must be RFC3339 timestamp") from exc
        if expires_at < now:
            raise InvalidExpiryError("expiresAt must be in the future")
        return expires_at

    # ---------------------------------------------------------------------
    # Code resolution & persistence
    # ---------------------------------------------------------------------
    def resolve_code(self, custom_alias: Optional[str] = None) -> str:
        """
        Pick the code for a new link.

        Rules:
            - Alias given: must match 3-30 of [a-zA-Z0-9_-] and be unused
              (no expiry leniency here; that happens at save time).
            - No alias: draw random codes, each checked for existence, at most
              `max_attempts` times.

        Raises:
            InvalidAliasError, CodeExistsError, CodeGenerationExhaustedError
        """
        code = (custom_alias or "").strip()
        if code:
            if not AliasPattern.match(code):
                raise InvalidAliasError()
            if self.storage.get(code) is not None:
                raise CodeExistsError(code)
            return code

        for _ in range(self.max_attempts):
            candidate = self.code_generator(self.min_length, self.max_length)
            if self.storage.get(candidate) is None:
                return candidate
        raise CodeGenerationExhaustedError(self.max_attempts)

    def save_or_replace_link(self, link: Link) -> None:
        """
        Persist a new link, replacing the stored one only if it has expired.

        The expiry check and the overwrite are one storage call, so two
        creations racing for the same expired code cannot both succeed.

        Raises:
            AliasInUseError: The code belongs to a live (non-expired) link.
            StorageError: Backend failure (never retried here).
        """
        try:
            self.storage.save(link)
            return
        except CodeExistsError:
            pass

        if not self.storage.replace_if_expired(link, self.clock()):
            raise AliasInUseError(link.code)
        log.info("Replaced expired link %s; its click history was discarded", link.code)

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def create_link(
        self,
        url: str,
        custom_alias: Optional[str] = None,
        expires_at: Optional[str] = None,
    ) -> Link:
        """
        Validate a shorten request, then resolve, build and persist the link.

        Returns:
            Link: The stored link (no clicks yet).
        """
        original_url = self.validate_url(url)
        code = self.resolve_code(custom_alias)
        expiry = self.parse_expires_at(expires_at)
        link = Link(
            code=code,
            original_url=original_url,
            created_at=self.clock(),
            expires_at=expiry,
        )
        self.save_or_replace_link(link)
        log.info("Created link %s -> %s", code, original_url)
        return link

    def get_active_link(self, code: str) -> Link:
        """
        Return a link that exists and has not expired.

        Raises:
            LinkNotFoundError, LinkExpiredError
        """
        link = self.storage.get(code)
        if link is None:
            raise LinkNotFoundError(code)
        if link.is_expired(self.clock()):
            raise LinkExpiredError(code)
        return link

    def record_click(self, code: str, ip: str = "", user_agent: str = "", country: str = "") -> Link:
        """
        Append a click stamped with the current time.

        `country` is resolved by the caller before this call; empty is allowed.

        Raises:
            LinkNotFoundError, StorageError
        """
        click = Click(timestamp=self.clock(), ip=ip or "", country=country or "", user_agent=user_agent or "")
        return self.storage.record_click(code, click)

    def list_links(self) -> List[Dict[str, Any]]:
        return [build_link_overview(link) for link in self.storage.list_links()]

    def build_link_details(self, link: Link) -> Dict[str, Any]:
        return build_link_details(link, self.base_url)

    def link_details(self, code: str) -> Dict[str, Any]:
        """Detail view of an active link (see `get_active_link` for errors)."""
        return self.build_link_details(self.get_active_link(code))

    def short_url(self, code: str) -> str:
        return compose_short_url(self.base_url, code)


__all__ = [
    "LinkManager",
    "AliasPattern",
    "InvalidURLError",
    "InvalidAliasError",
    "InvalidExpiryError",
    "AliasInUseError",
    "CodeGenerationExhaustedError",
    "LinkExpiredError",
    "CodeExistsError",
    "LinkNotFoundError",
    "StorageError",
]
