from pydantic import BaseModel, Field

from src.domain.entities.schema import TableSchema


class SchemaFieldResponse(BaseModel):
    name: str
    type: str
    display_name: str
    mapped_to: str | None = None


class TableSchemaResponse(BaseModel):
    """Schema for a table's field schema"""

    table_id: str
    table_name: str
    inferred: bool = Field(..., description="True when derived from data rather than stored")
    fields: list[SchemaFieldResponse]

    @classmethod
    def from_entity(cls, schema: TableSchema) -> "TableSchemaResponse":
        return cls(
            table_id=schema.table_id,
            table_name=schema.table_name,
            inferred=schema.inferred,
            fields=[
                SchemaFieldResponse(
                    name=f.name,
                    type=f.type.value,
                    display_name=f.display_name,
                    mapped_to=f.mapped_to.value if f.mapped_to else None,
                )
                for f in schema.fields
            ],
        )


class FieldMappingRequest(BaseModel):
    """Canonical role -> field name, e.g. {"fullName": "Names"}"""

    mappings: dict[str, str] = Field(..., min_length=1)
