from datetime import datetime

from sqlalchemy import (BigInteger, Boolean, CheckConstraint, DateTime, ForeignKey,
                        Index, Integer, String, Text)
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import CreatedAtMixin, CuidMixin


class IssuedToken(CuidMixin, CreatedAtMixin, Base):
    """
    Record of one credential issuance.

    Inherits from:
        - CuidMixin: CUID primary key
        - CreatedAtMixin: Creation timestamp (recency ordering)

    Rows are never deleted, and the RESTRICT foreign keys keep a subject or
    table with issuance history from being removed underneath them.
    Revocation flips is_active; use_count and last_used_at are only changed
    by successful verifications, through a single atomic UPDATE.
    """

    __tablename__ = "issued_token"

    subject_id: Mapped[str] = mapped_column(
        String, ForeignKey("subject.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    table_id: Mapped[str] = mapped_column(
        String, ForeignKey("subject_table.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    # Canonical payload fields, kept as columns for querying
    subject_external_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    issued_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    nonce: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)  # Exact signed bytes
    signature: Mapped[str] = mapped_column(String, nullable=False)
    envelope_hash: Mapped[str] = mapped_column(String, nullable=False, index=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    use_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_issued_token_subject_active_created", "subject_id", "is_active", "created_at"),
        CheckConstraint("use_count >= 0", name="ck_issued_token_use_count_non_negative"),
    )
