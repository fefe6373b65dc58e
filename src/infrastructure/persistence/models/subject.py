from typing import Any

from sqlalchemy import JSON, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import StandardModel


class Subject(StandardModel, Base):
    """
    Subject entity representing one credential holder.

    Inherits from StandardModel:
        - id: CUID primary key (never exposed in credentials)
        - created_at: Creation timestamp
        - updated_at: Last update timestamp

    external_id is what credentials carry. It is unique across all tables so
    cross-table resolution is a single indexed lookup.
    """

    __tablename__ = "subject"

    table_id: Mapped[str] = mapped_column(
        String, ForeignKey("subject_table.id", ondelete="CASCADE"), nullable=False, index=True
    )
    external_id: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    attributes: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    photo_url: Mapped[str | None] = mapped_column(String)

    __table_args__ = (Index("ix_subject_table_external", "table_id", "external_id"),)
