# notehub/tests/test_health.py

def test_root(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json() == {"status": "OK"}


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_version(client):
    r = client.get("/version")
    assert r.status_code == 200
    assert "version" in r.json()


def test_security_headers(client):
    r = client.get("/health")
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"


def test_stats_counts_notes(client):
    client.post("/notes", json={"title": "a", "content": ""})
    client.post("/notes", json={"title": "b", "content": ""})
    r = client.get("/stats")
    assert r.status_code == 200
    assert r.json() == {"notes": 2, "watchers": 0}


def test_metrics_endpoint(client):
    client.get("/health")
    r = client.get("/metrics")
    assert r.status_code == 200
    # Prometheus exposition format
    assert "http_requests_total" in r.text or "http_requests" in r.text
    assert "notehub_active_watchers" in r.text
