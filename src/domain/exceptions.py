"""
Domain exceptions for the Gatekeeper application.

This module defines domain-level exceptions that represent business rule violations
and the credential verification failure taxonomy.
These exceptions are independent of infrastructure concerns.
"""

from typing import Any

from src.shared.enums import DenialReason


class GatekeeperException(Exception):
    """
    Base exception for all Gatekeeper application errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code for API responses
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(GatekeeperException):
    """Raised when required configuration is missing at construction time."""

    def __init__(self, setting: str):
        super().__init__(
            f"Required configuration missing: {setting}",
            "CONFIGURATION_ERROR",
            {"setting": setting},
        )


class ValidationException(GatekeeperException):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(GatekeeperException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


# Credential verification taxonomy


class CredentialError(GatekeeperException):
    """
    Base class for failures that deny access.

    Every subclass maps to exactly one stable denial reason. Messages are for
    operators and logs; clients only ever see the reason code.
    """

    denial_reason: DenialReason

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, self.denial_reason.value.upper(), details)


class MalformedEnvelope(CredentialError):
    """Envelope is not base64 JSON with data and signature."""

    denial_reason = DenialReason.MALFORMED


class MalformedPayload(CredentialError):
    """Signed data is not a valid credential payload."""

    denial_reason = DenialReason.MALFORMED


class SignatureMismatch(CredentialError):
    """HMAC over the envelope data does not match."""

    denial_reason = DenialReason.SIGNATURE


class TokenExpired(CredentialError):
    """Payload is older than the maximum age or dated in the future."""

    denial_reason = DenialReason.EXPIRED

    def __init__(self, age_ms: int, max_age_ms: int):
        super().__init__(
            "Credential has expired" if age_ms >= 0 else "Credential issued in the future",
            {"age_ms": age_ms, "max_age_ms": max_age_ms},
        )


class SubjectNotFound(CredentialError):
    """No subject with the token's external id (in scope)."""

    denial_reason = DenialReason.SUBJECT_NOT_FOUND

    def __init__(self, external_id: str, table_id: str | None = None):
        scope = f" in table {table_id}" if table_id else ""
        super().__init__(
            f"Subject not found{scope}",
            {"external_id": external_id, "table_id": table_id},
        )


class NoActiveCredential(CredentialError):
    """The scanned credential is not the subject's current active token."""

    denial_reason = DenialReason.NO_ACTIVE_CREDENTIAL

    def __init__(self, subject_id: str, token_id: str | None = None, reason: str = "revoked"):
        super().__init__(
            "No active credential for subject",
            {"subject_id": subject_id, "token_id": token_id, "reason": reason},
        )


class StorageUnavailable(CredentialError):
    """A storage call failed or timed out while resolving a decision."""

    denial_reason = DenialReason.STORAGE_UNAVAILABLE

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"Storage unavailable during {operation}",
            {"operation": operation, "reason": reason},
        )
