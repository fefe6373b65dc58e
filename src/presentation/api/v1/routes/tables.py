from typing import Annotated

from fastapi import APIRouter, Depends

from src.application.services.schema_registry import SchemaRegistry
from src.domain.exceptions import ResourceNotFoundException
from src.presentation.api.dependencies import (
    get_schema_registry,
    get_schema_registry_transactional,
)
from src.presentation.api.v1.schemas.table_schema import FieldMappingRequest, TableSchemaResponse

router = APIRouter()


@router.get("/{table_id}/schema", response_model=TableSchemaResponse)
async def get_table_schema(
    table_id: str,
    registry: Annotated[SchemaRegistry, Depends(get_schema_registry)],
) -> TableSchemaResponse:
    """Stored schema of a table, or one inferred from its data when none is stored"""
    schema = await registry.get_schema(table_id)
    if schema is None:
        raise ResourceNotFoundException("Table", table_id)
    return TableSchemaResponse.from_entity(schema)


@router.put("/{table_id}/field-mapping", response_model=TableSchemaResponse)
async def register_field_mapping(
    table_id: str,
    data: FieldMappingRequest,
    registry: Annotated[SchemaRegistry, Depends(get_schema_registry_transactional)],
) -> TableSchemaResponse:
    """
    Map table fields onto canonical display roles.

    Explicit mappings always win over name heuristics. Unknown roles or
    fields answer 422.
    """
    schema = await registry.register_field_mapping(table_id, data.mappings)
    return TableSchemaResponse.from_entity(schema)
