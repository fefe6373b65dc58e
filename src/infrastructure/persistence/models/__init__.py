from src.infrastructure.persistence.models.access_event import AccessEvent
from src.infrastructure.persistence.models.issued_token import IssuedToken
# Mixins for model composition
from src.infrastructure.persistence.models.mixins import (CreatedAtMixin, CuidMixin,
                                                          StandardModel, TimestampMixin)
from src.infrastructure.persistence.models.subject import Subject
from src.infrastructure.persistence.models.subject_table import SubjectTable

__all__ = [
    # Models
    "SubjectTable",
    "Subject",
    "IssuedToken",
    "AccessEvent",
    # Mixins
    "CuidMixin",
    "CreatedAtMixin",
    "TimestampMixin",
    "StandardModel",
]
