"""
Access audit service.

Writes exactly one immutable access event per verification attempt and
serves the operator-facing views of the log (browsing and statistics).
Denial reasons are always stored in full here, whatever the public API
chooses to reveal.
"""

from __future__ import annotations

from datetime import timedelta

from src.infrastructure.persistence.models.access_event import AccessEvent
from src.infrastructure.persistence.repositories.access_event_repo import (
    AccessEventFilter,
    AccessEventRepository,
    AccessStats,
)
from src.shared.context import get_scanner_context
from src.shared.enums import DenialReason
from src.shared.telemetry.logging import get_logger
from src.shared.utils import utc_now

logger = get_logger(__name__)

MAX_PAGE_SIZE = 500


class AccessAuditService:
    """Append-only access log"""

    def __init__(self, event_repo: AccessEventRepository):
        self.event_repo = event_repo

    async def record(
        self,
        *,
        granted: bool,
        denial_reason: DenialReason | None,
        scanner_location: str,
        subject_id: str | None = None,
        table_id: str | None = None,
        token_id: str | None = None,
        envelope_hash: str | None = None,
    ) -> AccessEvent:
        """
        Append one access event.

        Request metadata (client address, user agent, correlation id) comes
        from the scanner context of the current request, if any.
        """
        if granted and denial_reason is not None:
            raise ValueError("Granted access events cannot carry a denial reason")
        if not granted and denial_reason is None:
            raise ValueError("Denied access events require a denial reason")

        context = get_scanner_context()
        event = AccessEvent(
            subject_id=subject_id,
            table_id=table_id,
            token_id=token_id,
            granted=granted,
            denial_reason=denial_reason.value if denial_reason else None,
            scanner_location=scanner_location,
            envelope_hash=envelope_hash,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            correlation_id=context.correlation_id,
        )
        return await self.event_repo.append(event)

    async def list_events(
        self,
        filters: AccessEventFilter | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[AccessEvent], int]:
        """Page of events (1-based pages) and the total matching count"""
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        return await self.event_repo.list_events(filters, skip=(page - 1) * limit, limit=limit)

    async def get_stats(self, days: int | None = None) -> AccessStats:
        """Statistics over the trailing `days` days, or all time when None"""
        since = utc_now() - timedelta(days=days) if days else None
        return await self.event_repo.get_stats(since)
