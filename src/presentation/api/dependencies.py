from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.application.services.access_audit_service import AccessAuditService
from src.application.services.credential_service import CredentialService
from src.application.services.schema_registry import SchemaRegistry
from src.application.services.signing_service import CredentialSigner
from src.application.services.verification_service import VerificationService
from src.infrastructure.config.settings import Settings, get_settings
from src.infrastructure.persistence.database import (AsyncSessionLocal, get_db,
                                                     get_db_transactional)
from src.infrastructure.persistence.repositories import (
    AccessEventRepository,
    IssuedTokenRepository,
    SubjectRepository,
    TableRepository,
)

# Global service instances (singletons)
_signer: CredentialSigner | None = None


def get_signer(settings: Settings = Depends(get_settings)) -> CredentialSigner:
    """
    Credential signer dependency (singleton)

    Built on first use from settings; main.py builds it at startup so a
    missing TOKEN_SECRET fails before the first request.
    """
    global _signer
    if _signer is None:
        _signer = CredentialSigner.from_settings(settings)
    return _signer


def set_signer(signer: CredentialSigner | None):
    """Set global signer (called on app startup, reset in tests)"""
    global _signer
    _signer = signer


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for services that open one transaction per storage step"""
    return AsyncSessionLocal


async def get_verification_service(
    signer: CredentialSigner = Depends(get_signer),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    settings: Settings = Depends(get_settings),
) -> VerificationService:
    """Verification pipeline dependency"""
    return VerificationService(
        signer=signer,
        session_factory=session_factory,
        storage_timeout_seconds=settings.storage_timeout_seconds,
    )


def _build_schema_registry(db: AsyncSession) -> SchemaRegistry:
    return SchemaRegistry(TableRepository(db), SubjectRepository(db))


async def get_schema_registry(db: AsyncSession = Depends(get_db)) -> SchemaRegistry:
    """Schema registry dependency for reads"""
    return _build_schema_registry(db)


async def get_schema_registry_transactional(
    db: AsyncSession = Depends(get_db_transactional),
) -> SchemaRegistry:
    """Schema registry dependency with transaction management"""
    return _build_schema_registry(db)


def _build_credential_service(
    db: AsyncSession, signer: CredentialSigner, settings: Settings
) -> CredentialService:
    return CredentialService(
        signer=signer,
        subject_repo=SubjectRepository(db),
        token_repo=IssuedTokenRepository(db),
        verification_base_url=settings.verification_base_url,
    )


async def get_credential_service(
    db: AsyncSession = Depends(get_db),
    signer: CredentialSigner = Depends(get_signer),
    settings: Settings = Depends(get_settings),
) -> CredentialService:
    """Credential service dependency for reads"""
    return _build_credential_service(db, signer, settings)


async def get_credential_service_transactional(
    db: AsyncSession = Depends(get_db_transactional),
    signer: CredentialSigner = Depends(get_signer),
    settings: Settings = Depends(get_settings),
) -> CredentialService:
    """Credential service dependency with transaction management"""
    return _build_credential_service(db, signer, settings)


async def get_access_audit_service(db: AsyncSession = Depends(get_db)) -> AccessAuditService:
    """Access log browsing dependency"""
    return AccessAuditService(AccessEventRepository(db))
