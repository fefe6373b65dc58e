from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.persistence.models.subject_table import SubjectTable
from src.infrastructure.persistence.repositories.base import BaseRepository
from src.shared.utils import utc_now


class TableRepository(BaseRepository[SubjectTable]):
    """Repository for subject tables (read side of table management)"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, SubjectTable)

    async def list_tables(self) -> list[tuple[str, str]]:
        """(id, name) of every table, ordered by name for scanner selection"""
        result = await self.db.execute(
            select(SubjectTable.id, SubjectTable.name).order_by(SubjectTable.name.asc())
        )
        return [(row.id, row.name) for row in result.all()]

    async def save_schema(self, table_id: str, schema: list[dict[str, Any]]) -> bool:
        """Replace a table's stored schema. Returns False if the table is missing."""
        result = await self.db.execute(
            update(SubjectTable)
            .where(SubjectTable.id == table_id)
            .values(schema=schema, updated_at=utc_now())
        )
        return result.rowcount > 0
