import logging
from typing import Any

import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from filestore.api.v1.deps import require_api_key
from filestore.api.v1.routers.files import router as files_router
from filestore.api.v1.routers.operations import router as operations_router
from filestore.common.config import Settings, get_settings
from filestore.common.errors import StorageError
from filestore.common.logging import setup_logging
from filestore.infra.observability.metrics import metrics_app
from filestore.infra.observability.middleware import REQUEST_ID_HEADER, MetricsMiddleware

logger = logging.getLogger("http")

ERROR_CODE_BY_STATUS = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
    429: "too_many_requests",
    500: "internal_error",
    502: "bad_gateway",
    503: "service_unavailable",
    504: "gateway_timeout",
}


def _normalize_detail(detail):
    if isinstance(detail, dict):
        maybe_code = detail.get("error_code")
        cleaned = {k: v for k, v in detail.items() if k != "error_code"}
        if len(cleaned) == 1 and "message" in cleaned:
            cleaned = cleaned["message"]
        if not cleaned:
            cleaned = None
        return cleaned, maybe_code if isinstance(maybe_code, str) else None
    return detail, None


def _resolve_error_code(status_code: int, override: str | None = None) -> str:
    if override:
        return override
    if status_code == 422:
        return "validation_error"
    return ERROR_CODE_BY_STATUS.get(status_code, "unknown_error")


def _storage_error_status(exc: StorageError) -> int:
    # 输入校验错误属于调用方问题，其余均视为上游存储故障
    if exc.is_validation_error:
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_502_BAD_GATEWAY


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None) or request.headers.get(
        REQUEST_ID_HEADER
    )


def _problem(
    request: Request,
    status_code: int,
    title: str,
    detail: Any,
    error_code: str,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        media_type="application/problem+json",
        content={
            "type": "about:blank",
            "title": title,
            "status": status_code,
            "detail": detail,
            "error_code": error_code,
            "instance": str(request.url),
            "request_id": _request_id(request),
        },
    )


def _log_error_response(request: Request, status_code: int, detail: Any, error_code: str) -> None:
    logger.log(
        logging.WARNING if status_code < 500 else logging.ERROR,
        "http_error status=%s error_code=%s detail=%s method=%s path=%s request_id=%s",
        status_code,
        error_code,
        detail,
        request.method,
        request.url.path,
        _request_id(request),
        extra={
            "extra": {
                "status": status_code,
                "error_code": error_code,
                "detail": detail,
                "method": request.method,
                "route": request.url.path,
                "request_id": _request_id(request),
            }
        },
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        status_code = _storage_error_status(exc)
        detail: Any = exc.message
        if exc.metadata is not None:
            detail = {"message": exc.message, "metadata": dict(exc.metadata)}
        _log_error_response(request, status_code, detail, exc.code)
        return _problem(request, status_code, "Storage Error", detail, exc.code)

    # 覆盖 FastAPI 与 Starlette 路由层（404/405）抛出的 HTTPException
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        detail, code_override = _normalize_detail(exc.detail)
        error_code = _resolve_error_code(exc.status_code, code_override)
        _log_error_response(request, exc.status_code, detail, error_code)
        return _problem(request, exc.status_code, "HTTP Error", detail, error_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        # 确保可序列化
        detail = jsonable_encoder(exc.errors())
        return _problem(
            request, 422, "Validation Error", detail, _resolve_error_code(422)
        )


def _log_startup(settings: Settings) -> None:
    logging.getLogger("filestore.startup").info(
        "Storage facade starting. [event=startup] (backend=%s, bucket=%s, timeouts_ms=%s, metrics=%s)",
        settings.STORAGE_BACKEND,
        settings.S3_BUCKET or "-",
        settings.operation_timeouts().as_dict(),
        "on" if settings.ENABLE_METRICS else "off",
    )


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(
        title="Filestore Service",
        version="v1.0",
        description="Validated, timed and metered facade over object storage",
    )

    if settings.CORS_ENABLED:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS or ["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # 文件路由受 API Key 保护；运维指标只读，不做鉴权
    app.include_router(
        files_router,
        prefix="/api/v1",
        tags=["files"],
        dependencies=[Depends(require_api_key)],
    )
    app.include_router(operations_router, prefix="/api/v1", tags=["operations"])

    if settings.ENABLE_METRICS:
        app.add_middleware(MetricsMiddleware)
        app.mount("/metrics", metrics_app)

    _register_exception_handlers(app)

    @app.on_event("startup")
    def on_startup() -> None:
        _log_startup(settings)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


if __name__ == "__main__":
    uvicorn.run("filestore.main:create_app", factory=True, host="0.0.0.0", port=8000)
