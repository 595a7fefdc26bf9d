"""
Pytest configuration for backend tests.

Shared fixtures: an initialised temporary database, actors for each role and
a private event bus per test.
"""
import sys
from pathlib import Path

import pytest

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from lostfound import db
from lostfound.events import EventBus
from lostfound.identity import Actor

ITEM_ID = "item-umbrella-01"
ADMIN_ID = "admin-1"


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests that exercise real threads or timers",
    )


# --- Database Fixtures ---
@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Temporary database path with the schema already created."""
    path = tmp_path / "index" / "test_lostfound.sqlite3"
    db.init_db(path)
    return path


# --- Actor Fixtures ---
@pytest.fixture
def admin() -> Actor:
    return Actor(actor_id=ADMIN_ID, role="admin")


@pytest.fixture
def override_admin() -> Actor:
    """Admin holding the override capability."""
    return Actor(actor_id="admin-override", role="admin", can_override=True)


@pytest.fixture
def student() -> Actor:
    return Actor(actor_id="student-1", role="student")


# --- Event Fixtures ---
@pytest.fixture
def bus() -> EventBus:
    """Private bus so tests never see each other's events."""
    return EventBus()


@pytest.fixture
def events(bus):
    """Subscriber queue on the private bus."""
    return bus.subscribe()


# --- HTTP Fixtures ---
SEED_POLICIES = """\
policies:
  - entity: claims
    retention_days: 365
    action: anonymize
"""


@pytest.fixture
def client(tmp_path):
    """Test client over a throwaway data and config directory."""
    from fastapi.testclient import TestClient

    from lostfound.main import app
    from lostfound.settings import settings

    original_data_dir = settings.data_dir
    original_config_dir = settings.config_dir
    original_start = settings.archival_start_on_startup

    config_dir = tmp_path / "config"
    config_dir.mkdir(parents=True)
    (config_dir / "retention_policies.yaml").write_text(SEED_POLICIES, encoding="utf-8")

    # Directly modify the singleton, restored afterwards
    settings.data_dir = tmp_path / "data"
    settings.config_dir = config_dir
    settings.archival_start_on_startup = False

    try:
        with TestClient(app) as client:
            yield client
    finally:
        settings.data_dir = original_data_dir
        settings.config_dir = original_config_dir
        settings.archival_start_on_startup = original_start
