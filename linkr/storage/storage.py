"""
Storage module for Linkr (in-memory implementation).

Responsibilities:
    - Save links keyed by short code
    - Provide lookup by code
    - Enforce code uniqueness atomically

Design:
    - In-memory reference implementation of the BaseStorage contract, used by
      default and by the test-suite.
    - insert_link performs its check-and-set without awaiting, so under a single
      event loop no other task can interleave between the check and the write.
      This is the in-process equivalent of a primary-key constraint.
    - For durable storage use the Postgres backend (see `db_storage.py`).
"""

from typing import Dict, Optional, TYPE_CHECKING

from linkr.models import Link
from .base import BaseStorage

if TYPE_CHECKING:
    from linkr.analytics.base import BaseVisitLog


class Storage(BaseStorage):
    def __init__(self, visit_log: Optional["BaseVisitLog"] = None):
        """
        Initialize empty storage.

        Internal schema:
            self.links = {code: Link}
        """
        super().__init__(visit_log=visit_log)
        self.links: Dict[str, Link] = {}

    async def insert_link(self, link: Link) -> bool:
        """
        Insert a link unless its code is already present.

        Returns:
            bool: True on insert, False on conflict (existing link untouched).
        """
        if link.code in self.links:
            return False
        self.links[link.code] = link
        return True

    async def get_link(self, code: str) -> Optional[Link]:
        """Return the link stored under `code` or None."""
        return self.links.get(code)
