"""
Credential issuance and revocation.

Issuing never deactivates earlier tokens of the same subject: several tokens
may be active at once, and verification gives precedence to the newest one.
Revocation flips is_active and never deletes the row.
"""

from src.application.services.hash_service import HashService
from src.application.services.signing_service import CredentialSigner, build_verification_url
from src.domain.entities.credential import IssuedCredential, TokenStatus
from src.domain.exceptions import ResourceNotFoundException, SubjectNotFound
from src.infrastructure.persistence.models.issued_token import IssuedToken
from src.infrastructure.persistence.repositories.issued_token_repo import IssuedTokenRepository
from src.infrastructure.persistence.repositories.subject_repo import SubjectRepository
from src.shared.telemetry.logging import get_logger
from src.shared.telemetry.tracing import traced

logger = get_logger(__name__)


def to_token_status(token: IssuedToken) -> TokenStatus:
    return TokenStatus(
        id=token.id,
        subject_id=token.subject_id,
        table_id=token.table_id,
        is_active=token.is_active,
        use_count=token.use_count,
        created_at=token.created_at,
        last_used_at=token.last_used_at,
    )


class CredentialService:
    """
    Issues, revokes and lists credential tokens.

    Storage errors propagate to the caller: issuance has no meaningful
    partial success, so the surrounding transaction simply rolls back.
    """

    def __init__(
        self,
        signer: CredentialSigner,
        subject_repo: SubjectRepository,
        token_repo: IssuedTokenRepository,
        verification_base_url: str,
        hash_service: HashService | None = None,
    ):
        self.signer = signer
        self.subject_repo = subject_repo
        self.token_repo = token_repo
        self.verification_base_url = verification_base_url
        self.hash_service = hash_service or HashService()

    @traced("credential.issue")
    async def issue_token(
        self, subject_external_id: str, table_id: str | None = None
    ) -> IssuedCredential:
        """
        Sign a new credential for a subject and record it as active.

        Raises:
            SubjectNotFound: no subject with that external id (in table_id, if given)
        """
        found = await self.subject_repo.find_by_external_id(subject_external_id, table_id)
        if found is None:
            raise SubjectNotFound(subject_external_id, table_id)
        subject, _table_name = found

        sealed = self.signer.seal(self.signer.new_payload(subject.external_id))
        envelope_hash = self.hash_service.fingerprint(sealed.envelope)

        token = await self.token_repo.create(
            IssuedToken(
                subject_id=subject.id,
                table_id=subject.table_id,
                subject_external_id=subject.external_id,
                issued_at_ms=sealed.payload.issued_at,
                nonce=sealed.payload.nonce,
                payload=sealed.data,
                signature=sealed.signature,
                envelope_hash=envelope_hash,
                is_active=True,
                use_count=0,
            )
        )

        logger.info(
            "Credential issued: token=%s subject=%s table=%s fingerprint=%s",
            token.id,
            subject.id,
            subject.table_id,
            envelope_hash[:16],
        )
        return IssuedCredential(
            token_id=token.id,
            envelope=sealed.envelope,
            envelope_hash=envelope_hash,
            verification_url=build_verification_url(self.verification_base_url, sealed.envelope),
            subject_id=subject.id,
            table_id=subject.table_id,
            issued_at=sealed.payload.issued_at,
        )

    @traced("credential.revoke")
    async def revoke_token(self, token_id: str) -> None:
        """
        Deactivate a token. Revoking an already inactive token is a no-op.

        Raises:
            ResourceNotFoundException: unknown token id
        """
        if not await self.token_repo.deactivate(token_id):
            raise ResourceNotFoundException("Issued token", token_id)
        logger.info("Credential revoked: token=%s", token_id)

    async def list_subject_tokens(self, subject_external_id: str) -> list[TokenStatus]:
        """Issuance history of a subject, newest first"""
        found = await self.subject_repo.find_by_external_id(subject_external_id)
        if found is None:
            raise ResourceNotFoundException("Subject", subject_external_id)
        subject, _table_name = found
        tokens = await self.token_repo.get_by_subject(subject.id)
        return [to_token_status(token) for token in tokens]
