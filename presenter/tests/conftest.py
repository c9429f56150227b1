"""
Shared fixtures: an isolated in-memory database per test and an HTTP client
wired to it.

Environment overrides must be in place before presenter modules are imported,
because settings are read at import time.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"

from typing import AsyncGenerator, Dict, List

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from presenter.config.settings import settings
from presenter.database import build_engine, build_sessionmaker, get_db, init_db
from presenter.main import app
from presenter.orm.grading_session import GradingSession
from presenter.orm.rubric import RubricCriterion
from presenter.orm.team import Team
from presenter.orm.user import User
from presenter.services.session_orchestrator import add_criteria
from presenter.services.setup_service import add_teams, create_session

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    """One in-memory database shared by every connection of the test."""
    engine = build_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return build_sessionmaker(engine)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, with get_db pointed at the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db, None)


# ================= SERVICE-LEVEL DATA =================

@pytest_asyncio.fixture
async def instructor(db: AsyncSession) -> User:
    user = User(email="instructor@school.edu", password_hash="not-a-real-hash")
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def grading_session(db: AsyncSession, instructor: User) -> GradingSession:
    """Session with presentation_duration=10 and qa_duration=5 minutes."""
    return await create_session(db, instructor, "Period 3", 10, 5)


@pytest_asyncio.fixture
async def teams(db: AsyncSession, grading_session: GradingSession) -> List[Team]:
    added, errors = await add_teams(db, grading_session, [
        {"name": "Alpha", "members": ["Ann", "Ben"]},
        {"name": "Bravo", "members": ["Cal"]},
        {"name": "Charlie", "members": ["Dee", "Eli", "Fay"]},
    ])
    assert errors == []
    return added


@pytest_asyncio.fixture
async def criteria(db: AsyncSession, grading_session: GradingSession) -> List[RubricCriterion]:
    return await add_criteria(db, grading_session, [
        {"name": "Content", "max_score": 10},
        {"name": "Delivery", "max_score": 5},
    ])


# ================= HTTP HELPERS =================

async def signup(client: AsyncClient, email: str, password: str = "secret123") -> Dict[str, str]:
    """
    Register an instructor and return Bearer headers for them.

    The client cookie jar is cleared so several users can share one client.
    """
    response = await client.post("/api/auth/signup", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    token = response.cookies.get(settings.AUTH_COOKIE_NAME)
    assert token
    client.cookies.clear()
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def auth_headers(client: AsyncClient) -> Dict[str, str]:
    return await signup(client, "teacher@school.edu")
