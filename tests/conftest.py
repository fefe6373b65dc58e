"""Shared test fixtures for pytest"""
import os

# Settings are read at import time by the database module
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TOKEN_SECRET", "test-secret-do-not-use-in-production")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import func, select  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402

from main import app  # noqa: E402
from src.application.services.signing_service import CredentialSigner  # noqa: E402
from src.application.services.verification_service import VerificationService  # noqa: E402
from src.infrastructure.persistence import models  # noqa: E402,F401
from src.infrastructure.persistence.database import (Base, create_session_factory,  # noqa: E402
                                                     get_db, get_db_transactional)
from src.infrastructure.persistence.models.access_event import AccessEvent  # noqa: E402
from src.infrastructure.persistence.models.subject import Subject  # noqa: E402
from src.infrastructure.persistence.models.subject_table import SubjectTable  # noqa: E402
from src.presentation.api.dependencies import get_session_factory, set_signer  # noqa: E402

TEST_SECRET = "unit-test-secret"
FIXED_NOW_MS = 1_700_000_000_000


class FakeClock:
    """Epoch-millisecond clock that only moves when told to"""

    def __init__(self, now: int = FIXED_NOW_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
async def test_engine(tmp_path):
    """Create a file-backed SQLite engine (shared by concurrent sessions)"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'gatekeeper_test.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory bound to the test engine"""
    return create_session_factory(test_engine)


@pytest.fixture
async def test_db(session_factory):
    """Create test database session"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def signer(clock) -> CredentialSigner:
    """Signer with a fixed secret and a controllable clock"""
    return CredentialSigner(TEST_SECRET, clock=clock)


@pytest.fixture
def verification_service(signer, session_factory) -> VerificationService:
    return VerificationService(
        signer=signer, session_factory=session_factory, storage_timeout_seconds=10
    )


@pytest.fixture
async def staff_table(test_db):
    """Table without a stored schema; display fields come from inference"""
    table = SubjectTable(name="Staff", schema=[])
    test_db.add(table)
    await test_db.commit()
    await test_db.refresh(table)
    return table


@pytest.fixture
async def student_table(test_db):
    """Table with a stored schema and explicit mappings"""
    table = SubjectTable(
        name="Students",
        schema=[
            {"name": "Student Name", "type": "text", "displayName": "Student Name"},
            {
                "name": "Matric",
                "type": "text",
                "displayName": "Matric No",
                "isMappedTo": "identifier",
            },
            {
                "name": "Faculty",
                "type": "text",
                "displayName": "Faculty",
                "isMappedTo": "department",
            },
        ],
    )
    test_db.add(table)
    await test_db.commit()
    await test_db.refresh(table)
    return table


@pytest.fixture
async def staff_member(test_db, staff_table):
    subject = Subject(
        table_id=staff_table.id,
        external_id="EMP-001",
        attributes={
            "Names": "Jane Doe",
            "State Code": "SC1",
            "Position": "Engineer",
            "Email Address": "jane@example.com",
        },
        photo_url="https://cdn.example.com/jane.jpg",
    )
    test_db.add(subject)
    await test_db.commit()
    await test_db.refresh(subject)
    return subject


@pytest.fixture
async def student(test_db, student_table):
    subject = Subject(
        table_id=student_table.id,
        external_id="STU-042",
        attributes={"Student Name": "John Roe", "Matric": "MAT/042", "Faculty": "Science"},
    )
    test_db.add(subject)
    await test_db.commit()
    await test_db.refresh(subject)
    return subject


@pytest.fixture
def count_access_events(session_factory):
    """Count access events through a fresh session"""

    async def _count() -> int:
        async with session_factory() as session:
            return (await session.execute(select(func.count(AccessEvent.id)))).scalar_one()

    return _count


@pytest.fixture
async def client(session_factory):
    """HTTP client for API testing"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_db_transactional():
        async with session_factory() as session:
            async with session.begin():
                yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_db_transactional] = override_get_db_transactional
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    set_signer(None)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    set_signer(None)
