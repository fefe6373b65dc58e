"""Pydantic schemas for scanner verification"""

from pydantic import BaseModel, Field, field_validator

from src.application.services.signing_service import MAX_ENVELOPE_LENGTH
from src.application.services.verification_service import VerificationOutcome
from src.domain.value_objects.core import AttributeValue

# Public reason used when denial reasons are not exposed to scanners
REDACTED_REASON = "access_denied"

DENIAL_MESSAGES = {
    "malformed": "Credential could not be read",
    "signature": "Credential signature is invalid",
    "expired": "Credential has expired",
    "subject_not_found": "Credential holder not found",
    "no_active_credential": "Credential has been revoked",
    "storage_unavailable": "Verification temporarily unavailable",
    REDACTED_REASON: "Access denied",
}


class VerifyRequest(BaseModel):
    """One scan submitted by a scanner"""

    envelope: str = Field(
        ...,
        max_length=MAX_ENVELOPE_LENGTH * 4,
        description="Scanned text: a bare envelope or a verification URL",
    )
    scanner_location: str = Field("", max_length=255, description="Where the scan happened")
    table_id: str | None = Field(None, description="Restrict resolution to one table")

    @field_validator("scanner_location")
    @classmethod
    def strip_location(cls, v: str) -> str:
        return v.strip()


class DisplayFieldsResponse(BaseModel):
    full_name: str
    identifier: str
    designation: str
    department: str | None = None
    email: str | None = None


class VerifiedSubjectResponse(BaseModel):
    external_id: str
    display: DisplayFieldsResponse
    attributes: dict[str, AttributeValue]
    photo_url: str | None = None


class VerifyResponse(BaseModel):
    """Scanner-facing decision"""

    granted: bool
    reason: str | None = Field(None, description="Denial reason code (null when granted)")
    message: str
    subject: VerifiedSubjectResponse | None = None
    table_id: str | None = None
    table_name: str | None = None
    use_count: int | None = None
    event_id: str | None = None
    operational_error: bool = Field(
        False,
        description="Storage failed while deciding or logging (never redacted)",
    )

    @classmethod
    def from_outcome(cls, outcome: VerificationOutcome, expose_reasons: bool) -> "VerifyResponse":
        if outcome.granted and outcome.subject is not None:
            subject = outcome.subject
            display = subject.display
            return cls(
                granted=True,
                message="Access granted",
                subject=VerifiedSubjectResponse(
                    external_id=subject.external_id,
                    display=DisplayFieldsResponse(
                        full_name=display.full_name,
                        identifier=display.identifier,
                        designation=display.designation,
                        department=display.department,
                        email=display.email,
                    ),
                    attributes=dict(subject.attributes),
                    photo_url=subject.photo_url,
                ),
                table_id=outcome.table_id,
                table_name=outcome.table_name,
                use_count=outcome.use_count,
                event_id=outcome.event_id,
                operational_error=outcome.operational_error,
            )

        reason = outcome.denial_reason.value if outcome.denial_reason else REDACTED_REASON
        if not expose_reasons:
            reason = REDACTED_REASON
        return cls(
            granted=False,
            reason=reason,
            message=DENIAL_MESSAGES[reason],
            event_id=outcome.event_id,
            operational_error=outcome.operational_error,
        )


class TableOption(BaseModel):
    """Table a scanner can restrict resolution to"""

    id: str
    name: str
