"""
Storage module for the Short Link Platform (in-memory implementation).

Responsibilities:
    - Save links under unique codes (insert-if-absent)
    - Replace links wholesale (upsert), or only once expired (replace_if_expired)
    - Append clicks and maintain the unique-IP set
    - Provide retrieval and listing APIs

Concurrency:
    A single reader/writer lock protects the whole code -> link mapping.
    Every mutation (`save`, `upsert`, `replace_if_expired`, `record_click`)
    takes the write lock; `get` and `list_links` take the read lock. Mutations
    are serialized, reads run concurrently. Every link leaving this module is a snapshot.
"""

import contextlib
import threading
from datetime import datetime
from typing import Dict, List, Optional

from ..model import Click, Link
from .base import BaseStorage, CodeExistsError, LinkNotFoundError


class ReadWriteLock:
    """Many readers or one writer. Waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextlib.contextmanager
    def read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextlib.contextmanager
    def write(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class Storage(BaseStorage):
    def __init__(self):
        """
        Initialize an empty store.

        Internal schema:
            self.links = {code: Link}
        """
        self.links: Dict[str, Link] = {}
        self._lock = ReadWriteLock()

    def save(self, link: Link) -> None:
        with self._lock.write():
            if link.code in self.links:
                raise CodeExistsError(link.code)
            self.links[link.code] = link.snapshot()

    @staticmethod
    def _fresh(link: Link) -> Link:
        return Link(
            code=link.code,
            original_url=link.original_url,
            created_at=link.created_at,
            expires_at=link.expires_at,
        )

    def upsert(self, link: Link) -> None:
        """Overwrite the entry at `link.code`; history of the old entry is dropped."""
        with self._lock.write():
            self.links[link.code] = self._fresh(link)

    def replace_if_expired(self, link: Link, now: datetime) -> bool:
        with self._lock.write():
            existing = self.links.get(link.code)
            if existing is not None and not existing.is_expired(now):
                return False
            self.links[link.code] = self._fresh(link)
        return True

    def get(self, code: str) -> Optional[Link]:
        with self._lock.read():
            link = self.links.get(code)
            return link.snapshot() if link else None

    def list_links(self) -> List[Link]:
        with self._lock.read():
            items = [link.snapshot() for link in self.links.values()]
        items.sort(key=lambda l: l.created_at, reverse=True)
        return items

    def record_click(self, code: str, click: Click) -> Link:
        with self._lock.write():
            link = self.links.get(code)
            if link is None:
                raise LinkNotFoundError(code)
            link.clicks.append(click)
            if click.ip:
                link.unique_ips.add(click.ip)
            return link.snapshot()
