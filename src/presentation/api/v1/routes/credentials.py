from typing import Annotated

from fastapi import APIRouter, Depends, status

from src.application.services.credential_service import CredentialService
from src.presentation.api.dependencies import (
    get_credential_service,
    get_credential_service_transactional,
)
from src.presentation.api.v1.schemas.credential import (
    CredentialIssueRequest,
    CredentialIssueResponse,
    TokenStatusResponse,
)

router = APIRouter()


@router.post("/", response_model=CredentialIssueResponse, status_code=status.HTTP_201_CREATED)
async def issue_credential(
    data: CredentialIssueRequest,
    service: Annotated[CredentialService, Depends(get_credential_service_transactional)],
) -> CredentialIssueResponse:
    """
    Issue a new signed credential for a subject.

    Earlier tokens of the subject stay active; verification always uses the
    newest active one. Unknown subjects answer 404.
    """
    issued = await service.issue_token(data.subject_external_id, data.table_id)
    return CredentialIssueResponse.model_validate(issued)


@router.post("/{token_id}/revoke", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_credential(
    token_id: str,
    service: Annotated[CredentialService, Depends(get_credential_service_transactional)],
) -> None:
    """Deactivate a token (idempotent). Unknown ids answer 404."""
    await service.revoke_token(token_id)


@router.get("/subject/{external_id}", response_model=list[TokenStatusResponse])
async def list_subject_credentials(
    external_id: str,
    service: Annotated[CredentialService, Depends(get_credential_service)],
) -> list[TokenStatusResponse]:
    """Issuance history of a subject, newest first"""
    tokens = await service.list_subject_tokens(external_id)
    return [TokenStatusResponse.model_validate(token) for token in tokens]
