"""
Base storage interface for Linkr.

Purpose:
    Define a small, stable contract that storage backends (in-memory, Postgres)
    implement without requiring changes to the resolver or the API.

Contract:
    - insert_link must be atomic: conflict detection comes from the backend's
      own uniqueness guarantee, never from a separate existence read.
    - Links are never updated or deleted through this interface.
    - list_visits delegates to the attached visit log; the store owns no visits.

Testing & Coverage:
    Abstract methods are annotated with `# pragma: no cover`.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional

from linkr.models import Link, Visit

if TYPE_CHECKING:
    from linkr.analytics.base import BaseVisitLog


class BaseStorage(ABC):
    """Abstract base class for link storage backends."""

    def __init__(self, visit_log: Optional["BaseVisitLog"] = None) -> None:
        self.visit_log = visit_log

    @abstractmethod  # pragma: no cover
    async def insert_link(self, link: Link) -> bool:
        """
        Atomically persist a new link.

        Returns:
            bool: True if inserted, False if the code already exists.

        Raises:
            StorageFailure: On driver or I/O errors.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    async def get_link(self, code: str) -> Optional[Link]:
        """
        Retrieve a link by its code.

        Returns:
            Optional[Link]: The stored link (expired or not) or None.
        """
        raise NotImplementedError

    async def list_visits(self, code: str, limit: Optional[int] = None) -> List[Visit]:
        """Visits recorded for `code`, newest first (empty without a visit log)."""
        if self.visit_log is None:
            return []
        return await self.visit_log.list_visits(code, limit=limit)
