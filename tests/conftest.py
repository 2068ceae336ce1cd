import os
import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ------------------------------------------------------------------
# FORCE TESTING MODE
# This must be done BEFORE importing app.main so database.py and
# Settings pick up the test values.
# ------------------------------------------------------------------
os.environ["TESTING"] = "true"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["SMTP_HOST"] = ""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.main import app
from app.api.deps import get_db_session
from app.core.config import settings
from app.core.security import ALGORITHM
from app.models import audit, department, faculty, faculty_assignment, permission_set  # noqa: F401
from app.models.enums import ActorRole
from app.schemas.auth import TenantContext


@pytest_asyncio.fixture
async def engine():
    """One in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def _session_override():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _session_override
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def college_id():
    return uuid.uuid4()


@pytest.fixture
def admin(college_id):
    return TenantContext(actor_id=uuid.uuid4(), college_id=college_id, role=ActorRole.COLLEGE_ADMIN)


@pytest.fixture
def issue_token():
    """Signs a token the way the identity provider does."""
    def _issue(subject, data=None, expires_delta=timedelta(minutes=60)):
        now = datetime.now(timezone.utc)
        claims = {"sub": str(subject), "exp": now + expires_delta, "iat": now, "nbf": now}
        claims.update(data or {})
        return jwt.encode(claims, settings.SECRET_KEY, algorithm=ALGORITHM)
    return _issue


@pytest.fixture
def auth_headers(college_id, issue_token):
    """Builds a bearer header for the given role in the test college."""
    def _headers(role: ActorRole = ActorRole.COLLEGE_ADMIN, actor_id=None, tenant=None):
        token = issue_token(
            subject=actor_id or uuid.uuid4(),
            data={"college_id": str(tenant or college_id), "role": role.value},
        )
        return {"Authorization": f"Bearer {token}"}
    return _headers
