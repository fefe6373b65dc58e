"""Issued credential domain entities."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class IssuedCredential:
    """Result of issuing a credential token"""

    token_id: str
    envelope: str
    envelope_hash: str
    verification_url: str
    subject_id: str
    table_id: str
    issued_at: int


@dataclass(frozen=True)
class TokenStatus:
    """Snapshot of an issued token's lifecycle state"""

    id: str
    subject_id: str
    table_id: str
    is_active: bool
    use_count: int
    created_at: datetime
    last_used_at: datetime | None
