"""
Test configuration and fixtures.

Provides:
- Isolated in-memory SQLite database per test (real SAVEPOINT support)
- Factories for donors, children, and projects
- HTTPX AsyncClient bound to the test session
"""
from datetime import date, timedelta
from typing import AsyncGenerator, Generator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.deps import get_db
from app.db.base import Base
from app.db.enums import ProjectType
from app.db.models import Child, Donor, Project
from app.db.session import build_engine
from app.services import child_service, donor_service, project_service
from app.services.donor_identity import DonorIdentityHints


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Creates a session on a fresh in-memory database.

    Services commit their own transactions, so each test gets its own
    database instead of a rolled-back outer transaction.
    """
    engine = build_engine("sqlite+pysqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False)()

    yield session

    session.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def make_donor(db: Session):
    """Create a donor through the service (name/email fallbacks apply)."""
    def _make(name: str | None = "Jane Donor", email: str | None = None, **attrs) -> Donor:
        return donor_service.create_donor(db, DonorIdentityHints(name=name, email=email, **attrs))

    return _make


@pytest.fixture
def make_child(db: Session):
    def _make(name: str = "Maria", gender: str | None = None) -> Child:
        return child_service.create_child(db, name=name, gender=gender)

    return _make


@pytest.fixture
def make_project(db: Session):
    def _make(title: str = "Clean Water", project_type: ProjectType = ProjectType.CAMPAIGN) -> Project:
        return project_service.create_project(db, title=title, project_type=project_type)

    return _make


@pytest.fixture
def donor(make_donor) -> Donor:
    return make_donor("Jane Donor", "jane@example.com")


@pytest.fixture
def child(make_child) -> Child:
    return make_child("Maria")


@pytest.fixture
def yesterday() -> date:
    return date.today() - timedelta(days=1)


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Create AsyncClient whose requests share the test session.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as c:
        yield c

    app.dependency_overrides.clear()
