"""
Domain layer - Enterprise Business Rules.

This is the innermost layer containing credential and subject entities,
value objects, and domain exceptions. It has no dependencies on other layers.
"""

from src.domain.entities import (DisplayFields, IssuedCredential, SchemaField, SubjectMatch,
                                 SubjectRecord, TableSchema, TokenStatus)
from src.domain.exceptions import (ConfigurationError, CredentialError, GatekeeperException,
                                   MalformedEnvelope, MalformedPayload, NoActiveCredential,
                                   ResourceNotFoundException, SignatureMismatch,
                                   StorageUnavailable, SubjectNotFound, TokenExpired,
                                   ValidationException)
from src.domain.value_objects import CredentialPayload, ExternalId

__all__ = [
    # Entities
    "DisplayFields",
    "IssuedCredential",
    "SchemaField",
    "SubjectMatch",
    "SubjectRecord",
    "TableSchema",
    "TokenStatus",
    # Value Objects
    "CredentialPayload",
    "ExternalId",
    # Exceptions
    "GatekeeperException",
    "ConfigurationError",
    "ValidationException",
    "ResourceNotFoundException",
    "CredentialError",
    "MalformedEnvelope",
    "MalformedPayload",
    "SignatureMismatch",
    "TokenExpired",
    "SubjectNotFound",
    "NoActiveCredential",
    "StorageUnavailable",
]
