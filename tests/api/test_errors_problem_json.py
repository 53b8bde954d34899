from fastapi.testclient import TestClient

from filestore.main import create_app


def test_storage_error_problem_json():
    app = create_app()
    client = TestClient(app)
    # missing object -> 502 with RFC7807 body carrying the storage error code
    r = client.get("/api/v1/files/does/not/exist.bin")
    assert r.status_code == 502
    assert r.headers.get("content-type", "").startswith("application/problem+json")
    body = r.json()
    for key in ("type", "title", "status", "detail", "instance", "error_code"):
        assert key in body
    assert body["status"] == 502
    assert body["error_code"] == "STORAGE_OPERATION_FAILED"


def test_unknown_route_problem_json():
    client = TestClient(create_app())
    r = client.get("/api/v1/unknown")
    assert r.status_code == 404
    assert r.json()["error_code"] == "not_found"


def test_validation_error_problem_json():
    app = create_app()
    client = TestClient(app)
    # non-integer timeout should trigger 422 Validation Error
    r = client.get("/api/v1/files", params={"timeout_ms": "soon"})
    assert r.status_code == 422
    assert r.headers.get("content-type", "").startswith("application/problem+json")
    body = r.json()
    assert body.get("status") == 422
    assert body.get("error_code") == "validation_error"
    assert isinstance(body.get("detail"), list)


def test_method_not_allowed_problem_json():
    client = TestClient(create_app())
    r = client.post("/api/v1/files/a.txt", content=b"x")
    assert r.status_code == 405
    assert r.headers.get("content-type", "").startswith("application/problem+json")
    assert r.json()["error_code"] == "method_not_allowed"


def test_generated_request_id_in_problem_body():
    client = TestClient(create_app())
    # no X-Request-Id sent: the generated id is echoed in header and body
    r = client.get("/api/v1/files/missing.bin")
    assert r.status_code == 502
    rid = r.headers.get("X-Request-Id")
    assert rid
    assert r.json()["request_id"] == rid

    r = client.get("/api/v1/unknown")
    assert r.json()["request_id"] == r.headers.get("X-Request-Id")


def test_client_request_id_in_problem_body():
    client = TestClient(create_app())
    r = client.get("/api/v1/unknown", headers={"X-Request-Id": "req-42"})
    assert r.json()["request_id"] == "req-42"
