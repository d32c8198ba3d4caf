"""
Abstract Base Class for visit-log backends.

Responsibilities:
    - Define required methods for any visit log (in-memory, Postgres)
    - Support easy substitution without touching the resolver or stats code

The log is append-only: there is no update or delete operation.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from linkr.models import Visit

__all__ = ["BaseVisitLog"]


class BaseVisitLog(ABC):
    """Abstract base for pluggable visit logs."""

    @abstractmethod
    async def record_visit(self, visit: Visit) -> Visit:  # pragma: no cover
        """
        Append a visit event.

        Args:
            visit (Visit): Event without an id.

        Returns:
            Visit: The stored event with its sequence id assigned.
        """
        raise NotImplementedError

    @abstractmethod
    async def list_visits(self, code: str, limit: Optional[int] = None) -> List[Visit]:  # pragma: no cover
        """
        Visits for a code, newest first.

        Args:
            code (str): Short code.
            limit (Optional[int]): Maximum number of events to return.
        """
        raise NotImplementedError

    @abstractmethod
    async def count_visits(self, code: str) -> int:  # pragma: no cover
        """Total number of visits recorded for a code."""
        raise NotImplementedError
