from fastapi import FastAPI
from fastapi.testclient import TestClient

from filestore.infra.observability.metrics import metrics_app
from filestore.infra.observability.middleware import MetricsMiddleware
from filestore.main import create_app


def build_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(MetricsMiddleware)

    @app.get("/api/v1/files/{key:path}")
    def get_file(key: str):
        return {"key": key}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.mount("/metrics", metrics_app)
    return app


def test_metrics_route_template_label():
    app = build_app()
    client = TestClient(app)
    # object keys must not leak into the route label
    resp = client.get("/api/v1/files/docs/report-123.pdf")
    assert resp.status_code == 200

    m = client.get("/metrics")
    assert m.status_code == 200
    metrics_text = m.text
    assert "http_requests_total" in metrics_text
    assert 'route="/api/v1/files/{key:path}"' in metrics_text
    assert "report-123.pdf" not in metrics_text


def test_latency_metric_present():
    app = build_app()
    client = TestClient(app)
    client.get("/api/v1/files/a.txt")
    m = client.get("/metrics")
    assert m.status_code == 200
    assert "http_request_duration_seconds" in m.text


def test_request_id_propagation():
    app = build_app()
    client = TestClient(app)

    # auto-generate when missing
    r1 = client.get("/health")
    rid1 = r1.headers.get("X-Request-Id")
    assert rid1 is not None and len(rid1) > 0

    # echo when provided
    rid = "req-abc-123"
    r2 = client.get("/health", headers={"X-Request-Id": rid})
    assert r2.headers.get("X-Request-Id") == rid


def test_storage_metrics_exported():
    client = TestClient(create_app())
    client.put("/api/v1/files/obs/a.txt", content=b"x")

    text = client.get("/metrics").text
    assert 'storage_operations_total{operation="upload",outcome="success"}' in text
    assert "storage_operation_duration_seconds_bucket" in text


def test_metrics_disabled(monkeypatch):
    monkeypatch.setenv("ENABLE_METRICS", "false")

    client = TestClient(create_app())

    assert client.get("/metrics").status_code == 404
    assert "X-Request-Id" not in client.get("/health").headers
