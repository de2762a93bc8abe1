"""
Base storage interface for the Short Link Platform.

Purpose:
    Define a small, stable contract that both storage backends (in-memory and
    PostgreSQL) implement, so the manager and API never depend on where links live.

Contracts:
    - BaseLinkStore: minimal variant (save + get), enough to resolve codes.
    - BaseStorage:   full variant adding upsert, replace_if_expired, list_links
                     and record_click.

Errors:
    Every backend raises exactly one of CodeExistsError, LinkNotFoundError
    or StorageError (opaque I/O / transaction failure, chained with `from`).

Abstract methods carry `# pragma: no cover`; each backend's tests exercise
the concrete versions.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from ..model import Click, Link

__all__ = [
    "BaseLinkStore",
    "BaseStorage",
    "StorageBackendError",
    "CodeExistsError",
    "LinkNotFoundError",
    "StorageError",
]


class StorageBackendError(Exception):
    """Root of every error a storage backend raises."""


class CodeExistsError(StorageBackendError):
    """The short code is already present."""

    def __init__(self, code: str):
        super().__init__(f"short code already exists: {code!r}")
        self.code = code


class LinkNotFoundError(StorageBackendError, LookupError):
    """No link is stored under the code."""

    def __init__(self, code: str):
        super().__init__(f"link not found: {code!r}")
        self.code = code


class StorageError(StorageBackendError):
    """Opaque I/O or transaction failure inside a backend."""


class BaseLinkStore(ABC):
    """Minimal contract: insert-if-absent and lookup."""

    @abstractmethod  # pragma: no cover
    def save(self, link: Link) -> None:
        """
        Insert a new link atomically.

        Raises:
            CodeExistsError: if the code is present, expired or not. Expiry-based
                replacement is the caller's decision (see `replace_if_expired`).
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get(self, code: str) -> Optional[Link]:
        """
        Return a copy of the link stored at `code` (clicks and unique IPs
        included), or None.
        """
        raise NotImplementedError


class BaseStorage(BaseLinkStore):
    """Full contract used by the lifecycle manager."""

    @abstractmethod  # pragma: no cover
    def upsert(self, link: Link) -> None:
        """
        Replace whatever is stored at `link.code`, clearing click history and
        unique IPs. All-or-nothing: a failure leaves the prior state intact.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def replace_if_expired(self, link: Link, now: datetime) -> bool:
        """
        Atomically store `link` unless a live link holds its code.

        The expiry check and the write happen under one lock or transaction,
        so of two racing replacements of the same expired code only one wins.
        An absent code is simply inserted. History is cleared like `upsert`.

        Returns:
            bool: False if the stored link is not expired at `now` (nothing written).
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def list_links(self) -> List[Link]:
        """Return every link, newest `created_at` first."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def record_click(self, code: str, click: Click) -> Link:
        """
        Append a click and add its IP (if non-empty) to the unique-IP set.

        Safe under concurrent calls for the same code: no lost updates.

        Returns:
            Link: copy of the link after the click was committed.

        Raises:
            LinkNotFoundError: if the code does not exist.
        """
        raise NotImplementedError
