"""Domain value objects."""

from src.domain.value_objects.core import (
    AttributeValue,
    Attributes,
    CredentialPayload,
    ExternalId,
    coerce_attributes,
)

__all__ = [
    "AttributeValue",
    "Attributes",
    "CredentialPayload",
    "ExternalId",
    "coerce_attributes",
]
