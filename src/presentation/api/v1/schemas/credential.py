from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CredentialIssueRequest(BaseModel):
    """Schema for issuing a credential"""

    subject_external_id: str = Field(..., min_length=1, max_length=255)
    table_id: str | None = Field(None, description="Table the subject must belong to")


class CredentialIssueResponse(BaseModel):
    """Schema for an issued credential"""

    token_id: str
    envelope: str = Field(..., description="Opaque signed envelope to encode in the QR code")
    envelope_hash: str
    verification_url: str
    subject_id: str
    table_id: str
    issued_at: int = Field(..., description="Issue time in epoch milliseconds")

    model_config = ConfigDict(from_attributes=True)


class TokenStatusResponse(BaseModel):
    """Schema for a token in a subject's issuance history"""

    id: str
    subject_id: str
    table_id: str
    is_active: bool
    use_count: int
    created_at: datetime
    last_used_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
