import asyncio
import json
from datetime import datetime
from typing import Dict, List, Optional

import asyncpg
from asyncpg import Pool
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateIndex, CreateTable

from ..exceptions import PersistenceError
from ..models.analytics import ViewAnalyticsDB
from ..schemas.event import EventDraft, EventRecord

TABLE = ViewAnalyticsDB.__tablename__

DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


def schema_statements() -> List[str]:
    """DDL for the event log, compiled from the ORM model."""
    dialect = postgresql.dialect()
    table = ViewAnalyticsDB.__table__
    statements = [str(CreateTable(table, if_not_exists=True).compile(dialect=dialect))]
    for index in sorted(table.indexes, key=lambda ix: ix.name):
        statements.append(str(CreateIndex(index, if_not_exists=True).compile(dialect=dialect)))
    return statements


class EventRepository:
    def __init__(self, db: Pool):
        self.db = db

    async def create_schema(self):
        for statement in schema_statements():
            await self.db.execute(statement)

    async def append(self, draft: EventDraft) -> EventRecord:
        query = f"""
            INSERT INTO {TABLE} (
                content_id,
                content_type,
                action_type,
                content_title,
                duration,
                user_id,
                ip_address,
                user_agent,
                device_type,
                country,
                metadata,
                created_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11::jsonb, NOW())
            RETURNING id, created_at
        """
        try:
            row = await self.db.fetchrow(
                query,
                draft.content_id,
                draft.content_type.value,
                draft.action_type.value,
                draft.content_title,
                draft.duration,
                draft.user_id,
                draft.ip_address,
                draft.user_agent,
                draft.device_type.value,
                draft.country,
                json.dumps(draft.metadata)
            )
        except DB_ERRORS as e:
            raise PersistenceError(f"Failed to record {draft.action_type.value} event for {draft.content_id}") from e

        if row is None:
            raise PersistenceError("Insert into event log returned no row")

        return EventRecord(**draft.model_dump(), id=row['id'], created_at=row['created_at'])

    async def count_by_action(self, since: Optional[datetime] = None) -> Dict[str, int]:
        query = f"""
            SELECT action_type, COUNT(*) AS total
            FROM {TABLE}
            WHERE $1::timestamptz IS NULL OR created_at >= $1::timestamptz
            GROUP BY action_type
        """
        rows = await self.db.fetch(query, since)
        return {row['action_type']: int(row['total']) for row in rows}

    async def count_by_device(self, since: Optional[datetime] = None) -> Dict[str, int]:
        query = f"""
            SELECT device_type, COUNT(*) AS total
            FROM {TABLE}
            WHERE $1::timestamptz IS NULL OR created_at >= $1::timestamptz
            GROUP BY device_type
        """
        rows = await self.db.fetch(query, since)
        return {row['device_type']: int(row['total']) for row in rows}

    async def get_most_viewed(
        self,
        limit: int,
        since: Optional[datetime] = None,
        content_type: Optional[str] = None
    ) -> List[Dict]:
        query = f"""
            SELECT
                content_id,
                content_type,
                MAX(content_title) AS content_title,
                COUNT(*) AS views
            FROM {TABLE}
            WHERE action_type = 'VIEW'
              AND ($1::timestamptz IS NULL OR created_at >= $1::timestamptz)
              AND ($2::varchar IS NULL OR content_type = $2::varchar)
            GROUP BY content_id, content_type
            ORDER BY views DESC
            LIMIT $3
        """
        rows = await self.db.fetch(query, since, content_type, limit)
        return [dict(row) for row in rows]
