"""
Table schema domain entities.

A schema is the ordered field list of one subject table. It is stored as a
JSON list on the table row; entries may be bare field names or objects.
"""

from dataclasses import dataclass, field, replace
from typing import Any

from src.shared.enums import CanonicalRole, FieldType

# Role names accepted from stored schemas written by older clients
ROLE_ALIASES: dict[str, CanonicalRole] = {
    "employeeId": CanonicalRole.IDENTIFIER,
    "name": CanonicalRole.FULL_NAME,
    "role": CanonicalRole.DESIGNATION,
}


def parse_role(value: Any) -> CanonicalRole | None:
    """Parse a canonical role name, returning None for unknown values."""
    if isinstance(value, CanonicalRole):
        return value
    if not isinstance(value, str) or not value:
        return None
    if value in ROLE_ALIASES:
        return ROLE_ALIASES[value]
    try:
        return CanonicalRole(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class SchemaField:
    """One field of a table schema"""

    name: str
    type: FieldType = FieldType.TEXT
    display_name: str = ""
    mapped_to: CanonicalRole | None = None

    def __post_init__(self):
        if not self.display_name:
            object.__setattr__(self, "display_name", self.name)

    @classmethod
    def from_stored(cls, raw: Any) -> "SchemaField | None":
        """Parse one stored entry; returns None for entries without a name."""
        if isinstance(raw, str):
            return cls(name=raw) if raw else None
        if not isinstance(raw, dict):
            return None
        name = raw.get("name")
        if not isinstance(name, str) or not name:
            return None
        try:
            field_type = FieldType(raw.get("type") or FieldType.TEXT.value)
        except ValueError:
            field_type = FieldType.TEXT
        display_name = raw.get("displayName") or raw.get("display_name") or name
        mapped = raw.get("isMappedTo", raw.get("mapped_to"))
        return cls(
            name=name,
            type=field_type,
            display_name=str(display_name),
            mapped_to=parse_role(mapped),
        )

    def to_stored(self) -> dict[str, Any]:
        stored: dict[str, Any] = {
            "name": self.name,
            "type": self.type.value,
            "displayName": self.display_name,
        }
        if self.mapped_to is not None:
            stored["isMappedTo"] = self.mapped_to.value
        return stored


@dataclass(frozen=True)
class TableSchema:
    """Ordered field schema of a table, either stored or inferred"""

    table_id: str
    table_name: str
    fields: tuple[SchemaField, ...] = field(default_factory=tuple)
    inferred: bool = False

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> SchemaField | None:
        for schema_field in self.fields:
            if schema_field.name == name:
                return schema_field
        return None

    def with_mappings(self, mappings: dict[CanonicalRole, str]) -> "TableSchema":
        """
        Return a copy with the given role -> field name mappings applied.

        A role maps to at most one field: any other field previously mapped
        to the same role loses that mapping.
        """
        by_field = {field_name: role for role, field_name in mappings.items()}
        updated = []
        for schema_field in self.fields:
            if schema_field.name in by_field:
                updated.append(replace(schema_field, mapped_to=by_field[schema_field.name]))
            elif schema_field.mapped_to in mappings:
                updated.append(replace(schema_field, mapped_to=None))
            else:
                updated.append(schema_field)
        return replace(self, fields=tuple(updated), inferred=False)

    def to_stored(self) -> list[dict[str, Any]]:
        return [f.to_stored() for f in self.fields]
