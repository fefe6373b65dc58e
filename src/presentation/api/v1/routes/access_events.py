from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.application.services.access_audit_service import MAX_PAGE_SIZE, AccessAuditService
from src.infrastructure.persistence.repositories.access_event_repo import AccessEventFilter
from src.presentation.api.dependencies import get_access_audit_service
from src.presentation.api.v1.schemas.access_event import (
    AccessEventPage,
    AccessEventResponse,
    AccessStatsResponse,
)

router = APIRouter()


@router.get("/", response_model=AccessEventPage)
async def list_access_events(
    service: Annotated[AccessAuditService, Depends(get_access_audit_service)],
    location: Annotated[str | None, Query(description="Substring of scanner location")] = None,
    granted: Annotated[bool | None, Query(description="Only granted or only denied")] = None,
    table_id: str | None = None,
    subject_id: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = 50,
) -> AccessEventPage:
    """Browse the access log, newest first"""
    filters = AccessEventFilter(
        location=location, granted=granted, table_id=table_id, subject_id=subject_id
    )
    events, total = await service.list_events(filters, page=page, limit=limit)
    return AccessEventPage(
        items=[AccessEventResponse.model_validate(event) for event in events],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/stats", response_model=AccessStatsResponse)
async def get_access_stats(
    service: Annotated[AccessAuditService, Depends(get_access_audit_service)],
    days: Annotated[int | None, Query(ge=1, le=3650, description="Trailing window")] = 7,
) -> AccessStatsResponse:
    """Granted/denied totals, distinct subjects and denial reason counts"""
    stats = await service.get_stats(days)
    return AccessStatsResponse(
        days=days,
        total=stats.total,
        granted=stats.granted,
        denied=stats.denied,
        unique_subjects=stats.unique_subjects,
        by_reason=stats.by_reason,
    )
