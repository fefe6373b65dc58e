"""Application services."""

from src.application.services.access_audit_service import AccessAuditService
from src.application.services.credential_service import CredentialService
from src.application.services.hash_service import HashService
from src.application.services.schema_registry import SchemaRegistry, resolve_display_fields
from src.application.services.signing_service import CredentialSigner
from src.application.services.subject_resolver import SubjectResolver
from src.application.services.verification_service import (
    VerificationOutcome,
    VerificationService,
)

__all__ = [
    "AccessAuditService",
    "CredentialService",
    "CredentialSigner",
    "HashService",
    "SchemaRegistry",
    "SubjectResolver",
    "VerificationOutcome",
    "VerificationService",
    "resolve_display_fields",
]
