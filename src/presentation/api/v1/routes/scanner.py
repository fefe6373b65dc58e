from typing import Annotated

from fastapi import APIRouter, Depends

from src.application.services.schema_registry import SchemaRegistry
from src.application.services.verification_service import VerificationService
from src.infrastructure.config.settings import Settings, get_settings
from src.presentation.api.dependencies import get_schema_registry, get_verification_service
from src.presentation.api.v1.schemas.scanner import TableOption, VerifyRequest, VerifyResponse

router = APIRouter()


@router.post("/verify", response_model=VerifyResponse)
async def verify_credential(
    data: VerifyRequest,
    service: Annotated[VerificationService, Depends(get_verification_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> VerifyResponse:
    """
    Verify one scanned credential.

    Always answers 200 with a decision: denials are part of the response
    body, never HTTP errors. Storage outages also set operational_error,
    which is never redacted. Every call appends exactly one access event.
    """
    outcome = await service.verify(
        data.envelope,
        scanner_location=data.scanner_location,
        scope_table_id=data.table_id,
    )
    return VerifyResponse.from_outcome(outcome, settings.expose_denial_reasons)


@router.get("/tables", response_model=list[TableOption])
async def list_scanner_tables(
    registry: Annotated[SchemaRegistry, Depends(get_schema_registry)],
) -> list[TableOption]:
    """Tables a scanner may restrict verification to, by name"""
    tables = await registry.list_tables()
    return [TableOption(id=table_id, name=name) for table_id, name in tables]
