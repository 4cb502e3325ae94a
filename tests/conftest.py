"""
Pytest configuration and fixtures for infrabase tests.

Provides:
- Settings with a WireGuard range and a key path template under tmp_path
- In-memory SQLite database, fresh per test
- MachineManager and a FastAPI TestClient bound to that database
"""

import pytest
from fastapi.testclient import TestClient

from infrabase.config import Settings
from infrabase.core.machine_manager import MachineManager
from infrabase.database.session import Database
from infrabase.main import create_app

ADMIN_TOKEN = "test-admin-token"


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        DATABASE_URL="sqlite://",
        ADMIN_SECRET=ADMIN_TOKEN,
        WIREGUARD_IPV4_START="10.8.0.2",
        WIREGUARD_IPV4_END="10.8.0.5",
        WIREGUARD_PRIVKEY_PATH_TEMPLATE=str(tmp_path / "keys" / "{hostname}" / "{wireguard_ip}.key"),
        DEFAULT_OWNER="ops",
        DEFAULT_SSH_PORT=22,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def database(settings):
    database = Database.from_settings(settings)
    database.init_db()
    yield database
    database.dispose()


@pytest.fixture
def db(database):
    """A session inside one transaction"""
    with database.transaction() as session:
        yield session


@pytest.fixture
def manager(settings):
    return MachineManager(settings)


@pytest.fixture
def client(settings, database):
    app = create_app(settings, database)
    with TestClient(app) as client:
        client.headers.update({"X-Admin-Token": ADMIN_TOKEN})
        yield client
