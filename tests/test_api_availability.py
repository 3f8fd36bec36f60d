"""
Tests for the public availability and health endpoints.
"""
from fakes import wait_for


def test_health_reports_connection_and_sizes(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "online"
    assert data["connected"] is True
    assert data["connection"]["status"] == "connected"
    assert data["connection"]["retryCount"] == 0
    assert data["data"] == {"products": 2, "flavors": 1}
    assert data["storage"] == "memory"


def test_health_while_store_down(offline_client):
    """Health must answer (200) even when the store is unreachable."""
    resp = offline_client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["connected"] is False
    assert data["connection"]["lastError"]


def test_root_redirects_to_health(client):
    resp = client.get("/", follow_redirects=False)
    assert resp.status_code in (302, 307)
    assert resp.headers["location"] == "/health"


def test_api_test_lists_endpoints(client):
    resp = client.get("/api/test")
    assert resp.status_code == 200
    endpoints = resp.json()["endpoints"]
    assert any("/api/product-availability" in e for e in endpoints)
    assert any("/api/admin/product-availability/bulk" in e for e in endpoints)


def test_get_product_availability(client):
    resp = client.get("/api/product-availability")
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["productAvailability"] == {"p1": True, "p2": False}
    assert data["count"] == 2
    assert data["offline"] is False
    assert data["lastUpdated"] is not None


def test_get_flavor_availability(client):
    resp = client.get("/api/flavor-availability")
    assert resp.status_code == 200
    data = resp.json()
    assert data["flavorAvailability"] == {"suco_laranja": True}
    assert data["offline"] is False


def test_reads_while_offline_serve_last_known_data(offline_client):
    """Stale-but-available: data from the cache flagged offline, not an error."""
    resp = offline_client.get("/api/flavor-availability")
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["flavorAvailability"] == {"suco_laranja": True}
    assert data["offline"] is True


def test_sync_all_returns_both_maps(client):
    resp = client.get("/api/sync-all")
    assert resp.status_code == 200
    data = resp.json()
    assert data["productAvailability"] == {"p1": True, "p2": False}
    assert data["flavorAvailability"] == {"suco_laranja": True}
    assert data["counts"] == {"products": 2, "flavors": 1}
    assert data["offline"] is False


def test_sync_all_offline(offline_client):
    data = offline_client.get("/api/sync-all").json()
    assert data["offline"] is True
    assert data["productAvailability"] == {"p1": True, "p2": False}


def test_reads_recover_after_reconnect(app, offline_client, store):
    store.down = False
    supervisor = app.state.supervisor
    assert wait_for(lambda: supervisor.connection_state().connected)

    data = offline_client.get("/api/product-availability").json()
    assert data["offline"] is False


def test_request_id_header(client):
    resp = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"

    generated = client.get("/health").headers["X-Request-ID"]
    assert generated and generated != "abc-123"


def test_unknown_route_lists_endpoints(client):
    resp = client.get("/api/does-not-exist")
    assert resp.status_code == 404
    data = resp.json()
    assert data["success"] is False
    assert data["code"] == "NOT_FOUND"
    assert data["requestedUrl"] == "/api/does-not-exist"
    assert "GET   /api/product-availability" in data["availableEndpoints"]
    assert "POST  /api/admin/reset-data" in data["availableEndpoints"]
