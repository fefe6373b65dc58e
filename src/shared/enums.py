"""
Shared enumerations for the Gatekeeper application.

Note: values are persisted in the database and returned by the API,
so they must never be renamed.
"""

from enum import Enum


class DenialReason(str, Enum):
    """Stable machine-readable reason recorded on every denied access event"""

    MALFORMED = "malformed"
    SIGNATURE = "signature"
    EXPIRED = "expired"
    SUBJECT_NOT_FOUND = "subject_not_found"
    NO_ACTIVE_CREDENTIAL = "no_active_credential"
    STORAGE_UNAVAILABLE = "storage_unavailable"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [reason.value for reason in cls]


class CanonicalRole(str, Enum):
    """Standard display roles that heterogeneous table fields map onto"""

    FULL_NAME = "fullName"
    IDENTIFIER = "identifier"
    DESIGNATION = "designation"
    DEPARTMENT = "department"
    EMAIL = "email"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [role.value for role in cls]


class FieldType(str, Enum):
    """Field types a table schema may declare"""

    TEXT = "text"
    EMAIL = "email"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [field_type.value for field_type in cls]


class ResolutionSource(str, Enum):
    """How a display value was obtained"""

    MAPPING = "mapping"
    HEURISTIC = "heuristic"
    FALLBACK = "fallback"
    DEFAULT = "default"


class VerificationState(str, Enum):
    """States of a single verification call"""

    RECEIVED = "received"
    SIGNATURE_CHECKED = "signature_checked"
    SUBJECT_RESOLVED = "subject_resolved"
    TOKEN_ACTIVE_CHECKED = "token_active_checked"
    DECIDED = "decided"
