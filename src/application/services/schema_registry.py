"""
Table schema registry.

Each subject table can have a completely different field structure. The
registry loads a table's stored schema (or infers one from its data) and maps
arbitrary field names onto the canonical display roles.

Display resolution precedence, highest first:
    1. explicit field mapping stored on the schema (ResolutionSource.MAPPING)
    2. field-name heuristics, first matching field in schema order (HEURISTIC)
    3. for the full name only: up to three string attribute values (FALLBACK)
    4. fixed defaults (DEFAULT)

The heuristics are substring matches and can misclassify (a "Department Name"
field reads as a full name, "Grid Position" as an identifier). Tables where
that matters should register explicit mappings.
"""

from src.domain.entities.schema import SchemaField, TableSchema, parse_role
from src.domain.entities.subject import DisplayFields
from src.domain.exceptions import ResourceNotFoundException, ValidationException
from src.domain.value_objects.core import Attributes, coerce_attributes
from src.infrastructure.persistence.repositories.subject_repo import SubjectRepository
from src.infrastructure.persistence.repositories.table_repo import TableRepository
from src.shared.enums import CanonicalRole, FieldType, ResolutionSource
from src.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

# Checked in order; a field name takes the first role whose token it contains
HEURISTIC_RULES: tuple[tuple[CanonicalRole, tuple[str, ...]], ...] = (
    (CanonicalRole.FULL_NAME, ("name",)),
    (CanonicalRole.IDENTIFIER, ("id", "code", "state")),
    (CanonicalRole.DESIGNATION, ("designation", "role", "position")),
    (CanonicalRole.DEPARTMENT, ("department", "dept")),
    (CanonicalRole.EMAIL, ("email", "mail")),
)

FALLBACK_NAME_PARTS = 3


def classify_field_name(field_name: str) -> CanonicalRole | None:
    """Heuristic role for a field name, or None if no token matches"""
    lowered = field_name.lower()
    for role, tokens in HEURISTIC_RULES:
        if any(token in lowered for token in tokens):
            return role
    return None


def _display_value(attributes: Attributes, field_name: str) -> str:
    value = attributes.get(field_name)
    if value is None:
        return ""
    return str(value).strip()


def resolve_display_fields(attributes: Attributes, schema: TableSchema | None) -> DisplayFields:
    """
    Map a subject's attributes onto the canonical display roles.

    Without a schema (or with an empty one) the attribute keys themselves are
    treated as unmapped fields.
    """
    display = DisplayFields()
    if schema is not None and schema.fields:
        fields = list(schema.fields)
    else:
        fields = [SchemaField(name=key) for key in attributes]

    for schema_field in fields:
        if schema_field.mapped_to is None or schema_field.mapped_to in display.sources:
            continue
        value = _display_value(attributes, schema_field.name)
        if value:
            display.set(schema_field.mapped_to, value, ResolutionSource.MAPPING)

    for schema_field in fields:
        if schema_field.mapped_to is not None:
            continue
        role = classify_field_name(schema_field.name)
        if role is None or role in display.sources:
            continue
        value = _display_value(attributes, schema_field.name)
        if value:
            display.set(role, value, ResolutionSource.HEURISTIC)

    if CanonicalRole.FULL_NAME not in display.sources:
        parts = [
            value.strip()
            for value in attributes.values()
            if isinstance(value, str) and value.strip()
        ][:FALLBACK_NAME_PARTS]
        if parts:
            display.set(CanonicalRole.FULL_NAME, " ".join(parts), ResolutionSource.FALLBACK)

    return display


def infer_fields(attributes: Attributes) -> tuple[SchemaField, ...]:
    """Text fields for every string or numeric attribute, in attribute order"""
    return tuple(
        SchemaField(name=key, type=FieldType.TEXT)
        for key, value in attributes.items()
        if isinstance(value, (str, int, float)) and not isinstance(value, bool)
    )


class SchemaRegistry:
    """
    Reads table schemas and persists explicit field mappings.

    Nothing is cached: schemas can change underneath a running process, so
    every call reads the current row.
    """

    def __init__(self, table_repo: TableRepository, subject_repo: SubjectRepository):
        self.table_repo = table_repo
        self.subject_repo = subject_repo

    async def get_schema(self, table_id: str) -> TableSchema | None:
        """
        Stored schema of a table, falling back to inference when it is empty.

        Returns None only when the table does not exist. Inference is never
        persisted here.
        """
        table = await self.table_repo.get_by_id(table_id)
        if table is None:
            return None

        stored = table.schema
        if not isinstance(stored, list):
            logger.warning("Ignoring non-list schema stored for table %s", table_id)
            stored = []
        fields = tuple(
            parsed for parsed in (SchemaField.from_stored(raw) for raw in stored) if parsed
        )
        if fields:
            return TableSchema(table_id=table.id, table_name=table.name, fields=fields)

        return await self.infer_schema(table.id, table.name)

    async def infer_schema(self, table_id: str, table_name: str) -> TableSchema:
        """Schema derived from one arbitrary subject of the table"""
        subject = await self.subject_repo.get_any_in_table(table_id)
        if subject is None:
            logger.debug("No subjects to infer schema from for table %s", table_id)
            return TableSchema(table_id=table_id, table_name=table_name, inferred=True)

        fields = infer_fields(coerce_attributes(subject.attributes))
        logger.debug("Inferred %d fields for table %s", len(fields), table_id)
        return TableSchema(table_id=table_id, table_name=table_name, fields=fields, inferred=True)

    async def register_field_mapping(self, table_id: str, mappings: dict[str, str]) -> TableSchema:
        """
        Persist explicit role -> field name mappings for a table.

        Example: {"fullName": "Names", "identifier": "State Code"}.
        When the stored schema is empty the inferred one is materialised first.
        """
        schema = await self.get_schema(table_id)
        if schema is None:
            raise ResourceNotFoundException("Table", table_id)

        parsed: dict[CanonicalRole, str] = {}
        for role_name, field_name in mappings.items():
            role = parse_role(role_name)
            if role is None:
                raise ValidationException(
                    f"Unknown canonical role '{role_name}'. Valid roles: {CanonicalRole.values()}",
                    field="mappings",
                )
            if schema.get_field(field_name) is None:
                raise ValidationException(
                    f"Field '{field_name}' does not exist in table schema", field="mappings"
                )
            if field_name in parsed.values():
                raise ValidationException(
                    f"Field '{field_name}' is mapped to more than one role", field="mappings"
                )
            parsed[role] = field_name

        updated = schema.with_mappings(parsed)
        if not await self.table_repo.save_schema(table_id, updated.to_stored()):
            raise ResourceNotFoundException("Table", table_id)

        logger.info(
            "Field mapping registered for table %s: %s",
            table_id,
            {role.value: name for role, name in parsed.items()},
        )
        return updated

    async def list_tables(self) -> list[tuple[str, str]]:
        """(id, name) pairs for scanner table selection"""
        return await self.table_repo.list_tables()
