import threading

from prometheus_client import Counter, Histogram, make_asgi_app

# 低基数标签：使用路由模板（如 /api/v1/files/{key:path}），避免对象 key 导致高基数
REQUESTS = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)

LATENCY = Histogram(
    "http_request_duration_seconds",
    "Request latency in seconds",
    ["method", "route"],
)

STORAGE_OPERATIONS = Counter(
    "storage_operations_total",
    "Storage operations by outcome",
    ["operation", "outcome"],
)

STORAGE_LATENCY = Histogram(
    "storage_operation_duration_seconds",
    "Storage backend call latency in seconds",
    ["operation"],
)

# /metrics 端点 ASGI 应用
metrics_app = make_asgi_app()


class MetricsTracker:
    """Per-operation success/failure counters.

    Counts live in memory for snapshots and are mirrored to the process-wide
    Prometheus counters. Increments are guarded by a lock, so tracking from
    worker threads is safe.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._operations: dict[str, dict[str, int]] = {}

    def _increment(self, operation: str, field: str) -> None:
        with self._lock:
            counts = self._operations.setdefault(
                operation, {"successes": 0, "failures": 0}
            )
            counts[field] += 1

    def track_success(self, operation: str) -> None:
        self._increment(operation, "successes")
        STORAGE_OPERATIONS.labels(operation, "success").inc()

    def track_failure(self, operation: str) -> None:
        self._increment(operation, "failures")
        STORAGE_OPERATIONS.labels(operation, "failure").inc()

    def observe_latency(self, operation: str, seconds: float) -> None:
        STORAGE_LATENCY.labels(operation).observe(seconds)

    def get_metrics(self) -> dict[str, dict[str, int]]:
        with self._lock:
            return {name: dict(counts) for name, counts in self._operations.items()}
