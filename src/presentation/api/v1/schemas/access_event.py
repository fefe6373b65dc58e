"""Pydantic schemas for access log browsing"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AccessEventResponse(BaseModel):
    """Single access event"""

    id: str
    created_at: datetime
    granted: bool
    denial_reason: str | None = None
    scanner_location: str
    subject_id: str | None = None
    table_id: str | None = None
    token_id: str | None = None
    envelope_hash: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    correlation_id: str | None = None

    model_config = ConfigDict(from_attributes=True)


class AccessEventPage(BaseModel):
    """Paginated access events, newest first"""

    items: list[AccessEventResponse]
    total: int
    page: int
    limit: int


class AccessStatsResponse(BaseModel):
    """Access statistics over a window"""

    days: int | None = Field(None, description="Window in days (null for all time)")
    total: int
    granted: int
    denied: int
    unique_subjects: int
    by_reason: dict[str, int] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)
