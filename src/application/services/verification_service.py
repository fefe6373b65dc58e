"""
Credential verification pipeline.

One call models one physical scan and walks a fixed state machine:

    RECEIVED -> SIGNATURE_CHECKED -> SUBJECT_RESOLVED -> TOKEN_ACTIVE_CHECKED -> DECIDED

Any step may short-circuit to DECIDED(denied, reason). Whatever happens, the
caller gets a VerificationOutcome (never an exception) and exactly one access
event is appended.

Every storage step runs in its own short transaction under a timeout; a
timeout or database error becomes StorageUnavailable and the decision is
denied (fail-closed). The usage counter increment after a grant is
bookkeeping only: its failure is logged and the grant stands.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.application.services.access_audit_service import AccessAuditService
from src.application.services.hash_service import HashService
from src.application.services.schema_registry import SchemaRegistry, resolve_display_fields
from src.application.services.signing_service import CredentialSigner, extract_envelope
from src.application.services.subject_resolver import SubjectResolver
from src.domain.entities.subject import DisplayFields, SubjectMatch
from src.domain.exceptions import (CredentialError, NoActiveCredential, StorageUnavailable,
                                   SubjectNotFound)
from src.domain.value_objects.core import Attributes
from src.infrastructure.config.settings import Settings
from src.infrastructure.persistence.database import unit_of_work
from src.infrastructure.persistence.models.issued_token import IssuedToken
from src.infrastructure.persistence.repositories.access_event_repo import AccessEventRepository
from src.infrastructure.persistence.repositories.issued_token_repo import IssuedTokenRepository
from src.infrastructure.persistence.repositories.subject_repo import SubjectRepository
from src.infrastructure.persistence.repositories.table_repo import TableRepository
from src.shared.enums import DenialReason, VerificationState
from src.shared.telemetry.logging import get_logger
from src.shared.telemetry.tracing import add_span_attributes, traced
from src.shared.utils import utc_now

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class VerifiedSubject:
    """Subject view returned on a granted scan (internal id included for operators)"""

    id: str
    external_id: str
    display: DisplayFields
    attributes: Attributes
    photo_url: str | None = None


@dataclass
class VerificationOutcome:
    """Final decision of one verification call"""

    granted: bool
    denial_reason: DenialReason | None = None
    subject: VerifiedSubject | None = None
    table_id: str | None = None
    table_name: str | None = None
    token_id: str | None = None
    use_count: int | None = None
    event_id: str | None = None
    audit_recorded: bool = False
    # Set when storage failed; distinguishes outages from legitimate denials
    operational_error: bool = False
    states: list[VerificationState] = field(default_factory=list)

    @property
    def state(self) -> VerificationState:
        return self.states[-1] if self.states else VerificationState.RECEIVED


@dataclass
class _Scan:
    """Mutable per-call progress; never shared between calls"""

    scope_table_id: str | None
    scanner_location: str
    envelope_hash: str | None = None
    match: SubjectMatch | None = None
    token: IssuedToken | None = None
    states: list[VerificationState] = field(
        default_factory=lambda: [VerificationState.RECEIVED]
    )

    def advance(self, state: VerificationState) -> None:
        logger.debug("Verification state %s -> %s", self.states[-1].value, state.value)
        self.states.append(state)


class VerificationService:
    """
    Entry point for scans.

    Stateless between calls: the only shared state is the signer (read-only
    secret) and the session factory, so any number of verifications may run
    concurrently. Schemas are read fresh on every call.
    """

    def __init__(
        self,
        signer: CredentialSigner,
        session_factory: async_sessionmaker[AsyncSession],
        storage_timeout_seconds: float = 5.0,
        hash_service: HashService | None = None,
    ):
        if storage_timeout_seconds <= 0:
            raise ValueError("storage_timeout_seconds must be positive")
        self.signer = signer
        self.session_factory = session_factory
        self.storage_timeout_seconds = storage_timeout_seconds
        self.hash_service = hash_service or HashService()

    @classmethod
    def from_settings(
        cls, settings: Settings, session_factory: async_sessionmaker[AsyncSession]
    ) -> "VerificationService":
        return cls(
            signer=CredentialSigner.from_settings(settings),
            session_factory=session_factory,
            storage_timeout_seconds=settings.storage_timeout_seconds,
        )

    @traced("credential.verify")
    async def verify(
        self,
        envelope: str,
        scanner_location: str = "",
        scope_table_id: str | None = None,
    ) -> VerificationOutcome:
        """
        Decide whether a scanned credential grants access.

        Args:
            envelope: Scanned text, either a bare envelope or a verification URL
            scanner_location: Free-text location of the scanner
            scope_table_id: Restrict resolution to one table (None searches all)

        Returns:
            VerificationOutcome; exceptions never escape this method
        """
        scan = _Scan(scope_table_id=scope_table_id or None, scanner_location=scanner_location or "")
        outcome: VerificationOutcome
        try:
            text = extract_envelope(envelope) if isinstance(envelope, str) else ""
            scan.envelope_hash = self.hash_service.fingerprint(text) if text else None
            outcome = await self._decide(scan, text)
        except CredentialError as e:
            outcome = self._denied(scan, e)
        except Exception as e:
            logger.exception("Unexpected error during verification")
            outcome = self._denied(scan, StorageUnavailable("verification", type(e).__name__))

        scan.advance(VerificationState.DECIDED)
        outcome.states = scan.states
        await self._record(scan, outcome)

        add_span_attributes(
            granted=outcome.granted,
            denial_reason=outcome.denial_reason.value if outcome.denial_reason else None,
        )
        if outcome.granted:
            logger.info(
                "Access GRANTED: subject=%s table=%s location=%r",
                outcome.subject.id if outcome.subject else None,
                outcome.table_id,
                scan.scanner_location,
            )
        else:
            logger.warning(
                "Access DENIED (%s): fingerprint=%s location=%r",
                outcome.denial_reason.value if outcome.denial_reason else None,
                scan.envelope_hash[:16] if scan.envelope_hash else None,
                scan.scanner_location,
            )
        return outcome

    async def _decide(self, scan: _Scan, envelope: str) -> VerificationOutcome:
        payload = self.signer.unseal(envelope)
        scan.advance(VerificationState.SIGNATURE_CHECKED)

        async def resolve(session: AsyncSession) -> SubjectMatch | None:
            subject_repo = SubjectRepository(session)
            registry = SchemaRegistry(TableRepository(session), subject_repo)
            return await SubjectResolver(subject_repo, registry).find_by_external_id(
                payload.subject_external_id, scan.scope_table_id
            )

        match = await self._storage("subject_resolution", resolve)
        if match is None:
            raise SubjectNotFound(payload.subject_external_id, scan.scope_table_id)
        scan.match = match
        scan.advance(VerificationState.SUBJECT_RESOLVED)

        async def find_tokens(
            session: AsyncSession,
        ) -> tuple[IssuedToken | None, IssuedToken | None]:
            token_repo = IssuedTokenRepository(session)
            scanned = await token_repo.get_by_nonce(payload.nonce)
            current = await token_repo.get_most_recent_active(match.subject.id)
            return scanned, current

        scanned, current = await self._storage("token_lookup", find_tokens)
        if scanned is None or scanned.subject_id != match.subject.id:
            raise NoActiveCredential(match.subject.id, reason="not_issued")
        scan.token = scanned
        # Only the subject's newest active issuance grants
        if current is None or current.id != scanned.id:
            reason = "superseded" if scanned.is_active else "revoked"
            raise NoActiveCredential(match.subject.id, scanned.id, reason)
        token = scanned
        scan.advance(VerificationState.TOKEN_ACTIVE_CHECKED)

        use_count = await self._count_use(token)

        display = resolve_display_fields(match.subject.attributes, match.schema)
        return VerificationOutcome(
            granted=True,
            subject=VerifiedSubject(
                id=match.subject.id,
                external_id=match.subject.external_id,
                display=display,
                attributes=match.subject.attributes,
                photo_url=match.subject.photo_url,
            ),
            table_id=match.table_id,
            table_name=match.table_name,
            token_id=token.id,
            use_count=use_count,
        )

    async def _count_use(self, token: IssuedToken) -> int | None:
        """Atomic use_count + 1; failures are logged, never propagated"""

        async def increment(session: AsyncSession) -> int | None:
            return await IssuedTokenRepository(session).increment_usage(token.id, utc_now())

        try:
            return await self._storage("usage_increment", increment)
        except StorageUnavailable as e:
            logger.error("Usage increment failed for token %s: %s", token.id, e.details)
            return None

    def _denied(self, scan: _Scan, error: CredentialError) -> VerificationOutcome:
        match = scan.match
        return VerificationOutcome(
            granted=False,
            denial_reason=error.denial_reason,
            table_id=match.table_id if match else scan.scope_table_id,
            table_name=match.table_name if match else None,
            token_id=scan.token.id if scan.token else None,
            operational_error=isinstance(error, StorageUnavailable),
        )

    async def _record(self, scan: _Scan, outcome: VerificationOutcome) -> None:
        """Append the single access event for this call"""
        match = scan.match

        async def append(session: AsyncSession) -> str:
            event = await AccessAuditService(AccessEventRepository(session)).record(
                granted=outcome.granted,
                denial_reason=outcome.denial_reason,
                scanner_location=scan.scanner_location,
                subject_id=match.subject.id if match else None,
                table_id=outcome.table_id,
                token_id=outcome.token_id,
                envelope_hash=scan.envelope_hash,
            )
            return event.id

        try:
            outcome.event_id = await self._storage("audit_append", append)
            outcome.audit_recorded = True
        except StorageUnavailable as e:
            outcome.operational_error = True
            logger.error("Access event could not be recorded: %s", e.details)

    async def _storage(
        self, operation: str, work: Callable[[AsyncSession], Awaitable[T]]
    ) -> T:
        """Run one storage step in its own transaction under the timeout"""

        async def run() -> T:
            async with unit_of_work(self.session_factory) as session:
                return await work(session)

        try:
            return await asyncio.wait_for(run(), timeout=self.storage_timeout_seconds)
        except asyncio.TimeoutError as e:
            raise StorageUnavailable(operation, "timeout") from e
        except (SQLAlchemyError, OSError) as e:
            raise StorageUnavailable(operation, type(e).__name__) from e
