import pytest
from fastapi.testclient import TestClient

import delivery_api.config as config_mod
from delivery_api.app_factory import create_app
from delivery_api.rate_limit import limiter
from delivery_api.storage.base import AvailabilityKind

from fakes import FlakyStore, wait_for

# Test admin credentials
TEST_ADMIN_KEY = "test-admin-key-123"


@pytest.fixture
def store():
    """Store seeded with a couple of products and flavors."""
    return FlakyStore({
        AvailabilityKind.PRODUCTS: {"p1": True, "p2": False},
        AvailabilityKind.FLAVORS: {"suco_laranja": True},
    })


@pytest.fixture
def admin_key(monkeypatch):
    """Configure the admin key and return the header to send it."""
    monkeypatch.setattr(config_mod, "ADMIN_KEY", TEST_ADMIN_KEY)
    monkeypatch.setattr(config_mod, "ADMIN_KEY_SHA256", "")
    return {"x-admin-key": TEST_ADMIN_KEY}


@pytest.fixture
def app(store):
    """App wired to the FlakyStore with short timers so tests run fast."""
    return create_app(
        store=store,
        probe_interval=0.05,
        retry_base_delay=0.01,
        retry_max_attempts=3,
        store_timeout=0.5,
    )


@pytest.fixture
def client(app):
    """Shared FastAPI TestClient, started once the store is connected."""
    limiter.reset()

    with TestClient(app) as test_client:
        supervisor = app.state.supervisor
        assert wait_for(lambda: supervisor.connection_state().connected), "store never connected"
        yield test_client

    limiter.reset()


@pytest.fixture
def offline_client(app, store):
    """TestClient after the store has gone away and the supervisor noticed."""
    limiter.reset()

    with TestClient(app) as test_client:
        supervisor = app.state.supervisor
        assert wait_for(lambda: supervisor.connection_state().connected), "store never connected"
        store.down = True
        assert wait_for(lambda: not supervisor.connection_state().connected), "outage not detected"
        yield test_client

    limiter.reset()
