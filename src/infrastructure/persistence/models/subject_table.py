from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import StandardModel


class SubjectTable(StandardModel, Base):
    """
    A named collection of subjects sharing one field schema.

    Inherits from StandardModel:
        - id: CUID primary key
        - created_at: Creation timestamp
        - updated_at: Last update timestamp

    Owned by table management; the verification core only reads it and
    writes back field mappings.
    """

    __tablename__ = "subject_table"

    name: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    # Ordered list of {name, type, displayName, isMappedTo?}; may be empty
    schema: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
