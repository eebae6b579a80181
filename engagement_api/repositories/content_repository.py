from typing import Dict, Optional

from asyncpg import Pool
from sqlalchemy import Table

COUNTER_COLUMNS = frozenset({"view_count", "click_count"})


class ContentRepository:
    """Engagement counters of one catalog table, keyed by TMDB id"""

    def __init__(self, db: Pool, table: Table):
        self.db = db
        self.table_name = table.name

    async def find_by_external_id(self, external_id: int) -> Optional[Dict]:
        query = f"""
            SELECT id, tmdb_id, title, view_count, click_count
            FROM {self.table_name}
            WHERE tmdb_id = $1
        """
        row = await self.db.fetchrow(query, external_id)
        return dict(row) if row else None

    async def increment_counter(self, external_id: int, column: str) -> Optional[int]:
        """Add one to a counter in a single statement; returns the new value, None on miss."""
        if column not in COUNTER_COLUMNS:
            raise ValueError(f"Unknown counter column: {column}")

        query = f"""
            UPDATE {self.table_name}
            SET {column} = COALESCE({column}, 0) + 1
            WHERE tmdb_id = $1
            RETURNING {column}
        """
        return await self.db.fetchval(query, external_id)
