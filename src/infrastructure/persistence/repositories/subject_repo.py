from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.persistence.models.subject import Subject
from src.infrastructure.persistence.models.subject_table import SubjectTable
from src.infrastructure.persistence.repositories.base import BaseRepository


class SubjectRepository(BaseRepository[Subject]):
    """Repository for Subject entity (read-only from the verification core)"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Subject)

    async def find_by_external_id(
        self, external_id: str, table_id: str | None = None
    ) -> tuple[Subject, str] | None:
        """
        Find a subject and its table name by external id.

        One indexed join regardless of how many tables exist; when table_id is
        given the match must also belong to that table.
        """
        query = (
            select(Subject, SubjectTable.name)
            .join(SubjectTable, Subject.table_id == SubjectTable.id)
            .where(Subject.external_id == external_id)
        )
        if table_id is not None:
            query = query.where(Subject.table_id == table_id)
        result = await self.db.execute(query.limit(1))
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]

    async def get_any_in_table(self, table_id: str) -> Subject | None:
        """One arbitrary subject of a table (oldest first for stability)"""
        result = await self.db.execute(
            select(Subject)
            .where(Subject.table_id == table_id)
            .order_by(Subject.created_at.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()
