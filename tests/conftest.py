"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.

The application engine is created at import time from DATABASE_URL, so the
variable is pointed at a throwaway SQLite file before anything imports
config. Tests that need isolation use the in-memory engine fixture instead.
"""
import os
import sys
import tempfile
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

_TMP_DIR = tempfile.mkdtemp(prefix="studynotes-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_TMP_DIR) / 'studynotes.db'}"
os.environ.setdefault("LOG_LEVEL", "INFO")


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (require database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def db_engine():
    """Fresh in-memory database with all tables."""
    from sqlalchemy import create_engine
    from sqlalchemy.pool import StaticPool

    from studynotes.db.models import Base

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Session on the in-memory database."""
    from sqlalchemy.orm import sessionmaker

    session = sessionmaker(bind=db_engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_engine):
    """TestClient whose get_db dependency uses the in-memory database."""
    from fastapi.testclient import TestClient
    from sqlalchemy.orm import sessionmaker

    from studynotes.api.main import app
    from studynotes.db.database import get_db

    factory = sessionmaker(bind=db_engine, autoflush=False)

    def override_get_db():
        session = factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.answer_evaluator = None
    app.state.gap_analyzer = None
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.answer_evaluator = None
        app.state.gap_analyzer = None


@pytest.fixture
def sample_gap_candidates():
    """Gap candidates as a text-analysis producer returns them."""
    return [
        {
            "concept": "Photosynthesis",
            "gap_type": "reinforcement",
            "user_mastery": 0.6,
            "explanation": "Confuses light and dark reactions",
            "reinforcement_strategy": "Draw the Calvin cycle from memory",
        },
        {
            "concept": "Chlorophyll",
            "gap_type": "prerequisite",
            "user_mastery": 0.2,
            "missing_prerequisite": "Light absorption",
        },
        {
            "concept": "Cellular respiration",
            "gap_type": "connection",
            "user_mastery": 0.7,
        },
    ]
