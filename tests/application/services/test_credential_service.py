"""Tests for credential issuance and revocation"""

from urllib.parse import quote

import pytest

from src.application.services.credential_service import CredentialService
from src.application.services.hash_service import HashService
from src.domain.exceptions import ResourceNotFoundException, SubjectNotFound
from src.infrastructure.persistence.repositories.issued_token_repo import IssuedTokenRepository
from src.infrastructure.persistence.repositories.subject_repo import SubjectRepository

BASE_URL = "https://gate.example.com/verify"


@pytest.fixture
def credential_service(signer, test_db) -> CredentialService:
    return CredentialService(
        signer=signer,
        subject_repo=SubjectRepository(test_db),
        token_repo=IssuedTokenRepository(test_db),
        verification_base_url=BASE_URL,
    )


class TestIssueToken:
    @pytest.mark.asyncio
    async def test_issue_records_active_token(
        self, credential_service, signer, test_db, staff_member
    ):
        issued = await credential_service.issue_token("EMP-001")
        await test_db.commit()

        token = await IssuedTokenRepository(test_db).get_by_id(issued.token_id)
        assert token.is_active is True
        assert token.use_count == 0
        assert token.subject_id == staff_member.id
        assert token.table_id == staff_member.table_id
        assert token.envelope_hash == HashService().fingerprint(issued.envelope)
        assert signer.unseal(issued.envelope).subject_external_id == "EMP-001"

    @pytest.mark.asyncio
    async def test_issue_builds_verification_url(self, credential_service, staff_member):
        issued = await credential_service.issue_token("EMP-001")

        assert issued.verification_url == f"{BASE_URL}/{quote(issued.envelope, safe='')}"

    @pytest.mark.asyncio
    async def test_issuing_again_keeps_earlier_tokens_active(
        self, credential_service, test_db, staff_member
    ):
        first = await credential_service.issue_token("EMP-001")
        second = await credential_service.issue_token("EMP-001")
        await test_db.commit()

        history = await credential_service.list_subject_tokens("EMP-001")

        assert [t.id for t in history] == [second.token_id, first.token_id]
        assert all(t.is_active for t in history)
        assert first.envelope != second.envelope

    @pytest.mark.asyncio
    async def test_unknown_subject_is_not_found(self, credential_service, staff_table):
        with pytest.raises(SubjectNotFound):
            await credential_service.issue_token("NOBODY")

    @pytest.mark.asyncio
    async def test_table_scope_must_match(self, credential_service, staff_member, student_table):
        with pytest.raises(SubjectNotFound):
            await credential_service.issue_token("EMP-001", table_id=student_table.id)


class TestRevokeToken:
    @pytest.mark.asyncio
    async def test_revoke_deactivates_and_is_idempotent(
        self, credential_service, test_db, session_factory, staff_member
    ):
        issued = await credential_service.issue_token("EMP-001")
        await test_db.commit()

        await credential_service.revoke_token(issued.token_id)
        await credential_service.revoke_token(issued.token_id)
        await test_db.commit()

        async with session_factory() as session:
            token = await IssuedTokenRepository(session).get_by_id(issued.token_id)
        assert token.is_active is False

    @pytest.mark.asyncio
    async def test_revoke_unknown_token_is_not_found(self, credential_service):
        with pytest.raises(ResourceNotFoundException):
            await credential_service.revoke_token("missing")

    @pytest.mark.asyncio
    async def test_history_of_unknown_subject_is_not_found(self, credential_service):
        with pytest.raises(ResourceNotFoundException):
            await credential_service.list_subject_tokens("NOBODY")
