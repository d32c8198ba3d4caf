"""
Visit log for Linkr (in-memory implementation).

Responsibilities:
    - Append one visit event per successful redirect
    - Return visits for a code, newest first
    - Count visits for a code

Attributes:
    visit_logs (Dict[str, List[Visit]]): Maps code -> visits in append order

Sequence ids come from a single counter; they reflect append order, which
need not match wall-clock arrival across concurrent redirects.
"""

import itertools
from dataclasses import replace
from typing import Dict, List, Optional

from linkr.models import Visit
from .base import BaseVisitLog


class VisitLog(BaseVisitLog):
    def __init__(self):
        """Initialize empty visit log and the sequence counter."""
        self.visit_logs: Dict[str, List[Visit]] = {}
        self._sequence = itertools.count(1)

    async def record_visit(self, visit: Visit) -> Visit:
        """
        Append a visit event for its code.

        Notes:
            - Codes need not exist in the link store (referential intent only).
            - id assignment and append happen without awaiting, so concurrent
              redirects never lose an event.
        """
        stored = replace(visit, id=next(self._sequence))
        self.visit_logs.setdefault(visit.code, []).append(stored)
        return stored

    async def list_visits(self, code: str, limit: Optional[int] = None) -> List[Visit]:
        """
        Get visit events for a code.

        Args:
            code (str): Short code to query.
            limit (Optional[int]): Cap on returned events.

        Returns:
            List[Visit]: Newest first, empty if none exist.
        """
        logs = list(reversed(self.visit_logs.get(code, [])))
        if limit is not None:
            logs = logs[:limit]
        return logs

    async def count_visits(self, code: str) -> int:
        return len(self.visit_logs.get(code, []))
