"""Health check tests for the API."""


def test_health(client):
    response = client.get("/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ready_checks_database(client):
    response = client.get("/v1/ready", headers={"X-Request-ID": "ready-check-1"})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["checks"]["db"]["status"] == "ok"
    assert data["request_id"] == "ready-check-1"
    assert response.headers["X-Request-ID"] == "ready-check-1"


def test_errors_use_envelope(client):
    response = client.get("/v1/quizzes/00000000-0000-0000-0000-000000000000/status")

    assert response.status_code == 401
    assert set(response.json()) == {"error_code", "message", "details", "request_id"}


def test_request_id_minted_when_absent(client):
    response = client.get("/v1/health")

    request_id = response.headers["X-Request-ID"]
    assert len(request_id) == 32
    int(request_id, 16)


def test_unknown_route_uses_envelope(client):
    response = client.get("/v1/nowhere", headers={"X-Request-ID": "missing-route-1"})

    assert response.status_code == 404
    assert response.json()["error_code"] == "HTTP_ERROR"
    assert response.json()["request_id"] == "missing-route-1"
