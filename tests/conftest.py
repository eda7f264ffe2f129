"""Pytest configuration and fixtures for lost-and-found tests.

Every test gets its own in-memory SQLite database (aiosqlite) with the
schema created from the ORM metadata and the built-in permission catalog
seeded.  The app's ``get_db`` dependency is overridden with one bound to
that database, keeping the commit-per-request behaviour.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from lostfound.auth import catalog
from lostfound.auth.identity import assign_role_baseline
from lostfound.auth.jwt import create_access_token
from lostfound.auth.password import hash_password
from lostfound.database import Base, get_db
from lostfound.main import app
from lostfound.models import Account, AccountRole

TEST_PASSWORD = "testpassword123"


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def seeded(session_factory) -> None:
    """Seed the built-in permission catalog."""
    async with session_factory() as session:
        await catalog.seed_permissions(session)
        await session.commit()


@pytest_asyncio.fixture
async def db_session(session_factory, seeded) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(session_factory, seeded) -> AsyncGenerator[AsyncClient, None]:
    """Test client with ``get_db`` bound to the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Test Data Fixtures ───────────────────────────────────────────

async def make_account(
    session_factory,
    employee_number: str,
    role: AccountRole,
    with_baseline: bool = True,
) -> Account:
    """Create and commit an account, optionally with its role baseline."""
    async with session_factory() as session:
        account = Account(
            employee_number=employee_number,
            hashed_password=hash_password(TEST_PASSWORD),
            first_name="Test",
            last_name=role.value.title(),
            role=role,
        )
        if with_baseline:
            await assign_role_baseline(session, account)
        session.add(account)
        await session.commit()
        return account


@pytest_asyncio.fixture
async def admin(session_factory, seeded) -> Account:
    return await make_account(session_factory, "AC000001", AccountRole.ADMIN)


@pytest_asyncio.fixture
async def supervisor(session_factory, seeded) -> Account:
    return await make_account(session_factory, "SV000001", AccountRole.SUPERVISOR)


@pytest_asyncio.fixture
async def employee(session_factory, seeded) -> Account:
    return await make_account(session_factory, "EM000001", AccountRole.EMPLOYEE)


@pytest_asyncio.fixture
async def other_employee(session_factory, seeded) -> Account:
    return await make_account(session_factory, "EM000002", AccountRole.EMPLOYEE)


def token_for(account: Account) -> str:
    return create_access_token(
        account_id=account.id,
        employee_number=account.employee_number,
        role=account.role.value,
        permissions=[],
    )


def headers_for(account: Account) -> dict:
    return {"Authorization": f"Bearer {token_for(account)}"}


@pytest.fixture
def admin_headers(admin: Account) -> dict:
    return headers_for(admin)


@pytest.fixture
def supervisor_headers(supervisor: Account) -> dict:
    return headers_for(supervisor)


@pytest.fixture
def employee_headers(employee: Account) -> dict:
    return headers_for(employee)


@pytest.fixture
def other_employee_headers(other_employee: Account) -> dict:
    return headers_for(other_employee)


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: HTTP endpoint tests")
    config.addinivalue_line("markers", "auth: Authentication and authorization tests")
