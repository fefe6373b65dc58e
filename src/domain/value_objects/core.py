"""Core value objects for credentials and subject attributes."""

from dataclasses import dataclass
from typing import Any, ClassVar

# Subject attributes are a tagged map of primitives; the owning table's
# schema is the only source of meaning for the keys.
AttributeValue = str | int | float | bool
Attributes = dict[str, AttributeValue]


def coerce_attributes(raw: Any) -> Attributes:
    """
    Keep only primitive attribute values.

    Nested objects, lists and nulls carry no meaning for display resolution
    and are dropped.
    """
    if not isinstance(raw, dict):
        return {}
    return {
        str(key): value
        for key, value in raw.items()
        if isinstance(value, (str, int, float, bool))
    }


@dataclass(frozen=True)
class ExternalId:
    """Value object for the subject identifier embedded in credentials"""

    value: str

    MAX_LENGTH: ClassVar[int] = 255

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("External ID must be a non-empty string")
        if len(self.value) > self.MAX_LENGTH:
            raise ValueError(f"External ID must not exceed {self.MAX_LENGTH} characters")


@dataclass(frozen=True)
class CredentialPayload:
    """
    Signed content of a credential envelope.

    Wire keys are camelCase and serialized with sorted keys, so the signed
    bytes are stable regardless of construction order.
    """

    subject_external_id: str
    issued_at: int  # epoch milliseconds
    nonce: str

    MIN_NONCE_HEX_LENGTH: ClassVar[int] = 32

    def __post_init__(self):
        ExternalId(self.subject_external_id)
        if isinstance(self.issued_at, bool) or not isinstance(self.issued_at, int):
            raise ValueError("issuedAt must be an integer number of milliseconds")
        if not isinstance(self.nonce, str) or len(self.nonce) < self.MIN_NONCE_HEX_LENGTH:
            raise ValueError("nonce must be a hex string of at least 16 bytes")
        try:
            bytes.fromhex(self.nonce)
        except ValueError as e:
            raise ValueError("nonce must be hex encoded") from e

    def to_wire(self) -> dict[str, Any]:
        return {
            "subjectExternalId": self.subject_external_id,
            "issuedAt": self.issued_at,
            "nonce": self.nonce,
        }

    @classmethod
    def from_wire(cls, data: Any) -> "CredentialPayload":
        """Build from decoded JSON; raises ValueError on any shape problem."""
        if not isinstance(data, dict):
            raise ValueError("Payload must be a JSON object")
        missing = {"subjectExternalId", "issuedAt", "nonce"} - data.keys()
        if missing:
            raise ValueError(f"Payload missing fields: {sorted(missing)}")
        return cls(
            subject_external_id=data["subjectExternalId"],
            issued_at=data["issuedAt"],
            nonce=data["nonce"],
        )
