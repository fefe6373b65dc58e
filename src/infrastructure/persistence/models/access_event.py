from typing import Any

from sqlalchemy import Boolean, Connection, Index, String, event
from sqlalchemy.orm import Mapped, Mapper, mapped_column

from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import CreatedAtMixin, CuidMixin


class AccessEvent(CuidMixin, CreatedAtMixin, Base):
    """
    One verification attempt, granted or denied.

    Inherits from:
        - CuidMixin: CUID primary key
        - CreatedAtMixin: Scan timestamp

    Note: Access events are append-only. Subject, table and token references
    are plain strings (no foreign keys) so denied scans of unknown subjects
    can be recorded and history survives subject removal.
    """

    __tablename__ = "access_event"

    subject_id: Mapped[str | None] = mapped_column(String, index=True)
    table_id: Mapped[str | None] = mapped_column(String, index=True)
    token_id: Mapped[str | None] = mapped_column(String, index=True)
    granted: Mapped[bool] = mapped_column(Boolean, nullable=False, index=True)
    denial_reason: Mapped[str | None] = mapped_column(String, index=True)
    scanner_location: Mapped[str] = mapped_column(String, nullable=False, default="")
    envelope_hash: Mapped[str | None] = mapped_column(String, index=True)
    ip_address: Mapped[str | None] = mapped_column(String)
    user_agent: Mapped[str | None] = mapped_column(String)
    correlation_id: Mapped[str | None] = mapped_column(String)

    __table_args__ = (Index("ix_access_event_granted_created", "granted", "created_at"),)


# Prevent updates to access events at ORM level (audit rows are immutable)
@event.listens_for(AccessEvent, "before_update")
def prevent_access_event_updates(
    _mapper: Mapper[Any],
    _connection: Connection,
    _target: "AccessEvent",
) -> None:
    """Access events are append-only and cannot be modified after creation."""
    raise ValueError("Access events are immutable and cannot be updated.")
