"""
SQLAlchemy mixins for common model patterns.

These mixins provide reusable column definitions to follow DRY principles
and ensure consistency across all models.
"""
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from src.shared.utils import generate_cuid, utc_now


class CuidMixin:
    """
    Mixin for models using CUID as primary key.

    Provides:
        - id: String primary key with automatic CUID generation
    """

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)


class CreatedAtMixin:
    """
    Creation timestamp for append-only or rarely-updated rows.

    Set client-side with microsecond precision: recency ordering of issued
    tokens depends on it and SQLite's CURRENT_TIMESTAMP only has seconds.
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            default=utc_now,
            server_default=func.now(),
            nullable=False,
            index=True,
        )


class TimestampMixin(CreatedAtMixin):
    """
    Mixin for timestamp tracking.

    Provides:
        - created_at: Timestamp set on creation
        - updated_at: Timestamp updated on modification
    """

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            default=utc_now,
            server_default=func.now(),
            onupdate=utc_now,
            nullable=False,
        )


class StandardModel(CuidMixin, TimestampMixin):
    """
    CUID primary key with created/updated timestamps.

    Usage:
        class MyModel(StandardModel, Base):
            __tablename__ = "my_model"
    """

    pass
