"""
Storage factory - switch storage backend from config (lazy env version)
======================================================================

Centralizes selection of the link store and visit log backends (in-memory vs
Postgres) so the rest of the app stays ignorant of where data lives.

- Reads environment **at call time** to avoid stale values in tests.
- Imports Postgres backends **only if** the selected backend is "postgres".

Environment variables
---------------------
- LINKR_STORAGE_BACKEND: "memory" (default) or "postgres"
- LINKR_DB_DSN:          DSN string if backend=="postgres"
"""

import logging
import os
from typing import Optional

from linkr.analytics.analytics import VisitLog
from linkr.analytics.base import BaseVisitLog
from linkr.storage.base import BaseStorage
from linkr.storage.storage import Storage

log = logging.getLogger("linkr.storage")


def _backend(backend: Optional[str]) -> str:
    return (backend or os.getenv("LINKR_STORAGE_BACKEND", "memory")).strip().lower()


def _dsn(kwargs: dict) -> str:
    dsn = kwargs.get("dsn") or os.getenv("LINKR_DB_DSN", "")
    if not dsn:
        raise ValueError("DB_DSN is required for postgres backend (env LINKR_DB_DSN)")
    return dsn


def get_visit_log(backend: Optional[str] = None, **kwargs) -> BaseVisitLog:
    """
    Return a visit log for the configured backend.

    Parameters
    ----------
    backend : str, optional
        "memory" (default) or "postgres". If omitted, reads LINKR_STORAGE_BACKEND.
    kwargs : dict
        For postgres, use dsn="...".
    """
    be = _backend(backend)

    if be == "memory":
        return VisitLog()

    if be == "postgres":
        from linkr.analytics.db_visit_log import DBVisitLog
        return DBVisitLog(dsn=_dsn(kwargs))

    raise ValueError(f"Unknown storage backend: {be!r}")


def get_storage(
    backend: Optional[str] = None,
    visit_log: Optional[BaseVisitLog] = None,
    **kwargs,
) -> BaseStorage:
    """
    Return a link store for the configured backend.

    Parameters
    ----------
    backend : str, optional
        "memory" (default) or "postgres". If omitted, reads LINKR_STORAGE_BACKEND.
    visit_log : BaseVisitLog, optional
        Visit log that `list_visits` delegates to.
    kwargs : dict
        For postgres, use dsn="...".
    """
    be = _backend(backend)
    log.info("Selected storage backend: %r", be)

    if be == "memory":
        return Storage(visit_log=visit_log)

    if be == "postgres":
        # Local import to avoid hard dependency when not using postgres
        from linkr.storage.db_storage import DBStorage
        return DBStorage(dsn=_dsn(kwargs), visit_log=visit_log)

    raise ValueError(f"Unknown storage backend: {be!r}")
