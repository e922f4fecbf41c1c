"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import get_settings  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite file database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Never leak cached settings (or env overrides) between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """A fixed review time."""
    return datetime(2026, 3, 1, 9, 30, tzinfo=UTC)


@pytest.fixture
def repository(tmp_path):
    """CardRepository backed by a fresh SQLite file."""
    from src.db.database import create_db_engine, init_db
    from src.db.repository import CardRepository

    engine = create_db_engine(f"sqlite:///{tmp_path / 'cards.db'}")
    init_db(engine)
    yield CardRepository(engine)
    engine.dispose()


@pytest.fixture
def sample_payload():
    """Two topics with a few cards each."""
    from src.core.models import Card, ImportPayload, Topic

    limits = Topic(id="topic-limits", name="Limits", description="Imported from Notion")
    derivatives = Topic(id="topic-derivatives", name="Derivatives")
    return ImportPayload(
        topics=[limits, derivatives],
        cards=[
            Card(id="card-1", topic_id=limits.id, question="Define a limit", answer="..."),
            Card(id="card-2", topic_id=limits.id, question="Squeeze theorem"),
            Card(id="card-3", topic_id=limits.id, question="L'Hopital's rule"),
            Card(id="card-4", topic_id=derivatives.id, question="Chain rule"),
        ],
    )


@pytest.fixture
def child_html():
    """Factory for a child page with a title and some paragraphs."""

    def build(title: str, *paragraphs: str) -> str:
        body = "".join(f"<p>{p}</p>" for p in paragraphs)
        return f"<html><head><title>{title}</title></head><body>{body}</body></html>"

    return build
