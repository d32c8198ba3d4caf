"""
Stats aggregation for Linkr.

Composes link-store and visit-log reads into a per-code summary. Owns no data.
Expiry is deliberately not checked here: an expired link stops redirecting,
but its statistics stay readable.
"""

import logging
from typing import Optional

from linkr.config import settings
from linkr.errors import NotFound
from linkr.models import LinkStats
from linkr.storage.base import BaseStorage
from .base import BaseVisitLog

log = logging.getLogger("linkr.stats")


class StatsAggregator:
    def __init__(
        self,
        storage: BaseStorage,
        visit_log: BaseVisitLog,
        recent_limit: Optional[int] = None,
    ):
        """
        Args:
            storage (BaseStorage): Link store used to look up the link itself.
            visit_log (BaseVisitLog): Source of the visit count.
            recent_limit (Optional[int]): Number of recent visits to include
                (defaults to settings.STATS_RECENT_LIMIT).
        """
        self.storage = storage
        self.visit_log = visit_log
        self.recent_limit = recent_limit if recent_limit is not None else settings.STATS_RECENT_LIMIT

    async def get_stats(self, code: str) -> LinkStats:
        """
        Summarize a link and its visits.

        Returns:
            LinkStats: link, total visit count and the most recent visits.

        Raises:
            NotFound: If no link was ever created under `code`.
        """
        link = await self.storage.get_link(code)
        if link is None:
            raise NotFound()

        visit_count = await self.visit_log.count_visits(code)
        visits = await self.storage.list_visits(code, limit=self.recent_limit)
        log.debug("Stats for %s: %d visits", code, visit_count)
        return LinkStats(link=link, visit_count=visit_count, visits=visits)
