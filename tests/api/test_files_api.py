from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from filestore.api.v1.deps import get_file_manager
from filestore.infra.storage import MemoryStorageClient
from filestore.main import create_app
from filestore.services import FileManager
from tests.services.mock_storage import MockStorageClient


def _client_for(manager: FileManager) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_file_manager] = lambda: manager
    return TestClient(app)


@pytest.fixture
def manager():
    return FileManager(MemoryStorageClient())


@pytest.fixture
def client(manager):
    return _client_for(manager)


def test_upload_download_delete_roundtrip(client):
    resp = client.put("/api/v1/files/docs/a.txt", content=b"hello")
    assert resp.status_code == 201, resp.text
    assert resp.json() == {
        "key": "docs/a.txt",
        "location": "memory://docs/a.txt",
        "size_bytes": 5,
    }

    resp = client.get("/api/v1/files/docs/a.txt")
    assert resp.status_code == 200
    assert resp.content == b"hello"
    assert resp.headers["content-type"] == "application/octet-stream"

    resp = client.delete("/api/v1/files/docs/a.txt")
    assert resp.status_code == 204
    assert resp.content == b""


def test_list_files_by_prefix(client):
    for key in ("docs/a.txt", "docs/b.txt", "img/c.png"):
        client.put(f"/api/v1/files/{key}", content=b"x")

    resp = client.get("/api/v1/files", params={"prefix": "docs/"})
    assert resp.status_code == 200
    assert resp.json() == {
        "prefix": "docs/",
        "keys": ["docs/a.txt", "docs/b.txt"],
        "count": 2,
    }

    resp = client.get("/api/v1/files")
    assert resp.json()["count"] == 3


def test_empty_body_is_bad_request(client, manager):
    resp = client.put("/api/v1/files/docs/a.txt", content=b"")

    assert resp.status_code == 400
    assert resp.headers["content-type"].startswith("application/problem+json")
    body = resp.json()
    assert body["error_code"] == "EMPTY_BUFFER_ERROR"
    assert body["detail"] == "File content cannot be empty"
    assert manager.get_metrics() == {}


def test_blank_key_is_bad_request(client):
    resp = client.get("/api/v1/files/%20%20")

    assert resp.status_code == 400
    assert resp.json()["error_code"] == "EMPTY_KEY_ERROR"


def test_forbidden_character_is_bad_request(client):
    resp = client.put("/api/v1/files/docs/a:b.txt", content=b"x")

    assert resp.status_code == 400
    body = resp.json()
    assert body["error_code"] == "INVALID_KEY_FORMAT"
    assert body["detail"]["metadata"] == {
        "key": "docs/a:b.txt",
        "invalid_characters": ":",
    }


def test_backend_failure_is_bad_gateway(client, manager):
    resp = client.get("/api/v1/files/missing.txt")

    assert resp.status_code == 502
    body = resp.json()
    assert body["error_code"] == "STORAGE_OPERATION_FAILED"
    assert body["detail"] == {
        "message": "Failed to download: Object not found: missing.txt",
        "metadata": {"context": "missing.txt"},
    }
    assert manager.get_metrics() == {"download": {"successes": 0, "failures": 1}}


def test_timeout_override_from_query():
    storage = MockStorageClient(delays={"list_files": 0.5})
    client = _client_for(FileManager(storage))

    resp = client.get("/api/v1/files", params={"timeout_ms": 20})

    assert resp.status_code == 502
    assert resp.json()["detail"] == (
        "Failed to list files: List files operation timed out after 20ms"
    )


def test_timeout_must_be_positive(client):
    resp = client.get("/api/v1/files", params={"timeout_ms": 0})

    assert resp.status_code == 422
    assert resp.json()["error_code"] == "validation_error"


def test_operation_metrics_endpoint(client):
    client.put("/api/v1/files/a.txt", content=b"x")
    client.get("/api/v1/files/missing")

    resp = client.get("/api/v1/operations/metrics")

    assert resp.status_code == 200
    assert resp.json() == {
        "operations": {
            "upload": {"successes": 1, "failures": 0},
            "download": {"successes": 0, "failures": 1},
        },
        "timeouts_ms": {
            "upload": 5000,
            "download": 5000,
            "delete": 3000,
            "listFiles": 10000,
        },
    }


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
