import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from filestore.infra.observability.metrics import LATENCY, REQUESTS

logger = logging.getLogger("http")

REQUEST_ID_HEADER = "X-Request-Id"


def _route_label(request: Request) -> str:
    # 使用路由模板，避免对象 key 进入标签
    route = request.scope.get("route")
    if route is not None and hasattr(route, "path"):
        return route.path
    return request.url.path


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class MetricsMiddleware(BaseHTTPMiddleware):
    """Records Prometheus request metrics and one access log line per request."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as exc:
            self._log(
                request,
                request_id,
                status_code=500,
                elapsed=time.perf_counter() - start,
                exception=exc,
            )
            raise

        elapsed = time.perf_counter() - start
        route = _route_label(request)
        REQUESTS.labels(request.method, route, str(response.status_code)).inc()
        LATENCY.labels(request.method, route).observe(elapsed)

        if REQUEST_ID_HEADER not in response.headers:
            response.headers[REQUEST_ID_HEADER] = request_id

        self._log(
            request,
            request_id,
            status_code=response.status_code,
            elapsed=elapsed,
            route=route,
        )
        return response

    @staticmethod
    def _log(
        request: Request,
        request_id: str,
        *,
        status_code: int,
        elapsed: float,
        route: str | None = None,
        exception: Exception | None = None,
    ) -> None:
        duration_ms = round(elapsed * 1000, 3)
        client_ip = _client_ip(request)
        fields = {
            "method": request.method,
            "route": route or request.url.path,
            "query": request.url.query,
            "status": status_code,
            "duration_ms": duration_ms,
            "request_id": request_id,
            "client_ip": client_ip,
            "user_agent": request.headers.get("User-Agent"),
        }
        message = (
            "request method=%s route=%s status=%s duration_ms=%.3f "
            "request_id=%s client_ip=%s"
        )
        args = (
            fields["method"],
            fields["route"],
            status_code,
            duration_ms,
            request_id,
            client_ip or "-",
        )
        if exception is not None:
            fields["exception"] = repr(exception)
            logger.error(
                "request_error " + message,
                *args,
                exc_info=exception,
                extra={"extra": fields},
            )
            return
        logger.log(_level_for(status_code), message, *args, extra={"extra": fields})
