"""Unit tests for credential value objects and schema entities"""

import pytest

from src.domain.entities.schema import SchemaField, parse_role
from src.domain.value_objects.core import CredentialPayload, ExternalId, coerce_attributes
from src.shared.enums import CanonicalRole, FieldType

NONCE = "ab" * 16


class TestCredentialPayload:
    def test_wire_keys_are_camel_case(self):
        payload = CredentialPayload("EMP-001", 1_700_000_000_000, NONCE)

        assert payload.to_wire() == {
            "subjectExternalId": "EMP-001",
            "issuedAt": 1_700_000_000_000,
            "nonce": NONCE,
        }
        assert CredentialPayload.from_wire(payload.to_wire()) == payload

    @pytest.mark.parametrize(
        "external_id,issued_at,nonce",
        [
            ("", 1, NONCE),
            ("EMP-001", "1", NONCE),
            ("EMP-001", True, NONCE),
            ("EMP-001", 1, "ab" * 8),
            ("EMP-001", 1, "zz" * 16),
        ],
    )
    def test_invalid_fields_are_rejected(self, external_id, issued_at, nonce):
        with pytest.raises(ValueError):
            CredentialPayload(external_id, issued_at, nonce)

    def test_from_wire_requires_all_fields(self):
        with pytest.raises(ValueError, match="missing"):
            CredentialPayload.from_wire({"subjectExternalId": "EMP-001"})

    def test_from_wire_requires_object(self):
        with pytest.raises(ValueError):
            CredentialPayload.from_wire(["EMP-001"])


def test_external_id_length_limit():
    with pytest.raises(ValueError):
        ExternalId("x" * 256)


def test_coerce_attributes_drops_non_primitives():
    assert coerce_attributes({"a": "x", "b": 1, "c": None, "d": [1], "e": {"f": 1}}) == {
        "a": "x",
        "b": 1,
    }
    assert coerce_attributes("not a dict") == {}


class TestSchemaField:
    def test_from_stored_accepts_plain_names(self):
        field = SchemaField.from_stored("Names")

        assert field.name == "Names"
        assert field.display_name == "Names"
        assert field.type == FieldType.TEXT

    def test_from_stored_reads_mapping_and_aliases(self):
        field = SchemaField.from_stored(
            {"name": "Staff No", "type": "number", "isMappedTo": "employeeId"}
        )

        assert field.type == FieldType.NUMBER
        assert field.mapped_to == CanonicalRole.IDENTIFIER

    def test_from_stored_skips_nameless_entries(self):
        assert SchemaField.from_stored({"type": "text"}) is None
        assert SchemaField.from_stored(42) is None

    def test_stored_round_trip(self):
        field = SchemaField(name="Mail", mapped_to=CanonicalRole.EMAIL)

        assert SchemaField.from_stored(field.to_stored()) == field

    def test_unknown_role_parses_to_none(self):
        assert parse_role("nickname") is None
        assert parse_role("role") == CanonicalRole.DESIGNATION
