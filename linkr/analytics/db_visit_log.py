"""
DBVisitLog - PostgreSQL-backed visit log for Linkr.

Appends rows to the `visits` table (see `schema.sql`). Sequence ids come from
the table's BIGSERIAL column, so ordering is decided by the database.
"""

from typing import Any, Dict, List, Optional

import psycopg.rows

from linkr.models import Visit
from linkr.storage.db_storage import PostgresConnectionMixin
from .base import BaseVisitLog


class DBVisitLog(PostgresConnectionMixin, BaseVisitLog):
    """PostgreSQL implementation of the visit log contract."""

    def __init__(self, dsn: str) -> None:
        self.dsn = dsn

    @staticmethod
    def _row_to_visit(row: Dict[str, Any]) -> Visit:
        return Visit(
            id=row["id"],
            code=row["url_id"],
            ip_address=row["ip_address"],
            user_agent=row["user_agent"],
            visited_at=row["visited_at"],
        )

    async def record_visit(self, visit: Visit) -> Visit:
        async with self._conn() as con, con.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO visits (url_id, ip_address, user_agent, visited_at)
                VALUES (%s, %s, %s, %s)
                RETURNING id
                """,
                (visit.code, visit.ip_address, visit.user_agent, visit.visited_at),
            )
            row = await cur.fetchone()
        return Visit(
            id=row[0] if row else None,
            code=visit.code,
            ip_address=visit.ip_address,
            user_agent=visit.user_agent,
            visited_at=visit.visited_at,
        )

    async def list_visits(self, code: str, limit: Optional[int] = None) -> List[Visit]:
        query = (
            "SELECT id, url_id, ip_address, user_agent, visited_at FROM visits "
            "WHERE url_id = %s ORDER BY visited_at DESC, id DESC"
        )
        params: tuple = (code,)
        if limit is not None:
            query += " LIMIT %s"
            params = (code, limit)
        async with self._conn() as con, con.cursor(row_factory=psycopg.rows.dict_row) as cur:
            await cur.execute(query, params)
            rows = await cur.fetchall()
        return [self._row_to_visit(row) for row in rows]

    async def count_visits(self, code: str) -> int:
        async with self._conn() as con, con.cursor() as cur:
            await cur.execute("SELECT COUNT(*) FROM visits WHERE url_id = %s", (code,))
            row = await cur.fetchone()
        return int(row[0]) if row else 0
