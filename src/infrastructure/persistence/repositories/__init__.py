""" Repository module for the persistence layer. """

from src.infrastructure.persistence.repositories.access_event_repo import (
    AccessEventFilter,
    AccessEventRepository,
    AccessStats,
)
from src.infrastructure.persistence.repositories.base import BaseRepository
from src.infrastructure.persistence.repositories.issued_token_repo import IssuedTokenRepository
from src.infrastructure.persistence.repositories.subject_repo import SubjectRepository
from src.infrastructure.persistence.repositories.table_repo import TableRepository

__all__ = [
    "AccessEventFilter",
    "AccessEventRepository",
    "AccessStats",
    "BaseRepository",
    "IssuedTokenRepository",
    "SubjectRepository",
    "TableRepository",
]
