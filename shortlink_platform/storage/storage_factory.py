"""
Storage factory – switch storage backend from config (lazy env version)
======================================================================

This module centralizes selection of the storage backend (in-memory vs PostgreSQL)
so the rest of the app can stay ignorant of where links live.

- Reads environment **at call time** to avoid stale values in tests.
- Imports the DB backend **only if** the selected backend is "postgres".

Environment variables
---------------------
- SHORTLINK_STORAGE_BACKEND:  "memory" (default) or "postgres"
- SHORTLINK_DB_DSN:           DSN string if backend=="postgres"
- SHORTLINK_DB_INIT_SCHEMA:   "1" (default) creates tables at startup, "0" skips it
"""

import logging
import os
from typing import Optional

from shortlink_platform.storage.base import BaseStorage
from shortlink_platform.storage.storage import Storage

log = logging.getLogger(__name__)


def get_storage(backend: Optional[str] = None, **kwargs) -> BaseStorage:
    """
    Return a BaseStorage implementation based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory" (default) or "postgres". If omitted, reads SHORTLINK_STORAGE_BACKEND.
    kwargs : dict
        For postgres: dsn="...", init_schema=bool.

    Raises
    ------
    ValueError
        Unknown backend, or postgres selected without a DSN.
    """
    be = (backend or os.getenv("SHORTLINK_STORAGE_BACKEND", "memory")).strip().lower()
    log.info("Selected storage backend: %r", be)

    if be == "memory":
        return Storage()

    if be == "postgres":
        dsn = kwargs.get("dsn") or os.getenv("SHORTLINK_DB_DSN", "")
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env SHORTLINK_DB_DSN)")
        init_schema = kwargs.get("init_schema")
        if init_schema is None:
            init_schema = os.getenv("SHORTLINK_DB_INIT_SCHEMA", "1").strip() not in ("0", "false", "no")
        # Local import to avoid hard dependency when not using postgres
        from shortlink_platform.storage.db_storage import DBStorage

        storage = DBStorage(dsn=dsn)
        if init_schema:
            storage.ensure_schema()
        return storage

    raise ValueError(f"Unknown storage backend: {be!r}")
