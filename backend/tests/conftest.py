"""
Pytest configuration and shared fixtures for testing.
"""
import os
from pathlib import Path

# Settings are read at import time; provide the required secrets and point
# the application engine at the test database before importing app.
_TEST_DB = Path(__file__).parent / "test.db"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key")
os.environ.setdefault("ADMIN_TOKEN", "test-admin-token")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DB}")

from contextlib import asynccontextmanager  # noqa: E402
from typing import AsyncGenerator, List  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Base, Question, User, get_db  # noqa: E402
from app.models.models import Category, DifficultyLevel, QuestionType  # noqa: E402
from factories import make_question  # noqa: E402


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests (skips Sentry and engine disposal)."""
    yield


app.router.lifespan_context = _test_lifespan

ASYNC_SQLALCHEMY_DATABASE_URL = f"sqlite+aiosqlite:///{_TEST_DB}"

async_test_engine = create_async_engine(
    ASYNC_SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
AsyncTestingSessionLocal = async_sessionmaker(
    async_test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(scope="function")
async def async_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh async database session for each test.
    """
    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncTestingSessionLocal() as session:
        yield session

    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function")
async def async_client(
    async_db_session: AsyncSession,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async test client sharing the test's database session.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield async_db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
async def async_test_user(async_db_session):
    """Create a test user in the async database."""
    user = User(email="test@example.com", full_name="Test User")
    async_db_session.add(user)
    await async_db_session.commit()
    await async_db_session.refresh(user)
    return user


@pytest.fixture
async def other_user(async_db_session):
    """A second user, for ownership checks."""
    user = User(email="other@example.com", full_name="Other User")
    async_db_session.add(user)
    await async_db_session.commit()
    await async_db_session.refresh(user)
    return user


@pytest.fixture
def async_auth_headers(async_test_user):
    """Create authentication headers for async test user."""
    access_token = create_access_token({"user_id": async_test_user.id})
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def admin_headers():
    """
    Create headers with valid admin token for admin endpoints.
    """
    return {"X-Admin-Token": settings.ADMIN_TOKEN}


@pytest.fixture
async def question_bank(async_db_session) -> List[Question]:
    """
    Seed a small bank: 3 easy, 3 medium and 2 hard active questions plus
    one inactive question. Every active question is worth 2 points.
    """
    questions = [
        make_question(
            category=Category.GENERAL,
            difficulty=DifficultyLevel.EASY,
            points=2,
            skills_tested=["terminology"],
            text="Define 'compiler'.",
        ),
        make_question(
            question_type=QuestionType.TRUE_FALSE,
            category=Category.PROGRAMMING,
            difficulty=DifficultyLevel.EASY,
            points=2,
            skills_tested=["terminology"],
            text="A variable names a storage location.",
        ),
        make_question(
            question_type=QuestionType.ACRONYM_MATCHING,
            category=Category.WEB_DEVELOPMENT,
            difficulty=DifficultyLevel.EASY,
            points=2,
            skills_tested=["acronyms"],
            text="Match each acronym to its expansion.",
        ),
        make_question(
            category=Category.DATABASE,
            difficulty=DifficultyLevel.MEDIUM,
            points=2,
            skills_tested=["terminology", "context"],
            text="What is a foreign key?",
        ),
        make_question(
            question_type=QuestionType.FILL_IN_BLANK,
            category=Category.NETWORKING,
            difficulty=DifficultyLevel.MEDIUM,
            points=2,
            skills_tested=["context"],
            text="A ___ resolves names to IP addresses.",
        ),
        make_question(
            question_type=QuestionType.COMPREHENSION,
            category=Category.PROGRAMMING,
            difficulty=DifficultyLevel.MEDIUM,
            points=2,
            skills_tested=["reading"],
            text="Read the passage and answer.",
        ),
        make_question(
            category=Category.ALGORITHMS,
            difficulty=DifficultyLevel.HARD,
            points=2,
            skills_tested=["analysis"],
            text="What is amortized complexity?",
        ),
        make_question(
            question_type=QuestionType.USAGE_IN_SENTENCE,
            category=Category.SECURITY,
            difficulty=DifficultyLevel.HARD,
            points=2,
            skills_tested=["context"],
            text="Which sentence uses 'idempotent' correctly?",
        ),
        make_question(
            category=Category.AI_ML,
            difficulty=DifficultyLevel.HARD,
            points=2,
            is_active=False,
            text="Inactive question - should not appear",
        ),
    ]
    async_db_session.add_all(questions)
    await async_db_session.commit()
    for question in questions:
        await async_db_session.refresh(question)
    return questions
