from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import Select, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.persistence.models.access_event import AccessEvent
from src.infrastructure.persistence.repositories.base import BaseRepository


@dataclass(frozen=True)
class AccessEventFilter:
    """Optional filters for browsing the access log"""

    location: str | None = None  # Case-insensitive substring of scanner_location
    granted: bool | None = None
    table_id: str | None = None
    subject_id: str | None = None
    since: datetime | None = None


@dataclass
class AccessStats:
    """Aggregate counts over a window of the access log"""

    total: int = 0
    granted: int = 0
    denied: int = 0
    unique_subjects: int = 0
    by_reason: dict[str, int] = field(default_factory=dict)


class AccessEventRepository(BaseRepository[AccessEvent]):
    """
    Append-only repository for access events.

    Only inserts and reads are offered; the model itself rejects updates.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(db, AccessEvent)

    async def append(self, event: AccessEvent) -> AccessEvent:
        return await self.create(event)

    @staticmethod
    def _apply_filter(query: Select, filters: AccessEventFilter) -> Select:
        if filters.location:
            query = query.where(AccessEvent.scanner_location.ilike(f"%{filters.location}%"))
        if filters.granted is not None:
            query = query.where(AccessEvent.granted.is_(filters.granted))
        if filters.table_id:
            query = query.where(AccessEvent.table_id == filters.table_id)
        if filters.subject_id:
            query = query.where(AccessEvent.subject_id == filters.subject_id)
        if filters.since is not None:
            query = query.where(AccessEvent.created_at >= filters.since)
        return query

    async def list_events(
        self,
        filters: AccessEventFilter | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[AccessEvent], int]:
        """Filtered events newest first, with the total count before pagination"""
        filters = filters or AccessEventFilter()
        count_query = self._apply_filter(select(func.count(AccessEvent.id)), filters)
        total = (await self.db.execute(count_query)).scalar_one()

        query = self._apply_filter(select(AccessEvent), filters)
        result = await self.db.execute(
            query.order_by(desc(AccessEvent.created_at)).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total

    async def count(self, filters: AccessEventFilter | None = None) -> int:
        query = self._apply_filter(
            select(func.count(AccessEvent.id)), filters or AccessEventFilter()
        )
        return (await self.db.execute(query)).scalar_one()

    async def get_stats(self, since: datetime | None = None) -> AccessStats:
        """Totals, granted/denied split, distinct subjects and per-reason counts"""
        filters = AccessEventFilter(since=since)

        totals_query = self._apply_filter(
            select(
                func.count(AccessEvent.id),
                func.count(AccessEvent.id).filter(AccessEvent.granted.is_(True)),
                func.count(func.distinct(AccessEvent.subject_id)),
            ),
            filters,
        )
        total, granted, unique_subjects = (await self.db.execute(totals_query)).one()

        reason_query = self._apply_filter(
            select(AccessEvent.denial_reason, func.count(AccessEvent.id))
            .where(AccessEvent.granted.is_(False))
            .group_by(AccessEvent.denial_reason),
            filters,
        )
        by_reason = {
            reason or "unknown": count
            for reason, count in (await self.db.execute(reason_query)).all()
        }

        return AccessStats(
            total=total,
            granted=granted,
            denied=total - granted,
            unique_subjects=unique_subjects,
            by_reason=by_reason,
        )
