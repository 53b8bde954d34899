from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from filestore.services.timeouts import OperationTimeouts

ENV_FILE = Path(".env")

SUPPORTED_STORAGE_BACKENDS: tuple[str, ...] = ("memory", "s3")


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _as_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass
class Settings:
    STORAGE_BACKEND: str = "memory"
    S3_BUCKET: str | None = None
    S3_REGION: str = "us-east-1"
    S3_ENDPOINT_URL: str | None = None
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_USE_SSL: bool = True
    S3_ADDRESSING_STYLE: str = "path"
    UPLOAD_TIMEOUT_MS: int = 5000
    DOWNLOAD_TIMEOUT_MS: int = 5000
    DELETE_TIMEOUT_MS: int = 3000
    LIST_TIMEOUT_MS: int = 10000
    ENABLE_METRICS: bool = True
    API_KEY_ENABLED: bool = False
    API_KEY: str | None = None
    CORS_ENABLED: bool = False
    CORS_ORIGINS: list[str] = field(default_factory=list)
    LOG_LEVEL: str = "INFO"

    def __post_init__(self) -> None:
        self.STORAGE_BACKEND = (self.STORAGE_BACKEND or "").strip().lower()
        if self.STORAGE_BACKEND not in SUPPORTED_STORAGE_BACKENDS:
            raise ValueError(
                f"STORAGE_BACKEND must be one of {', '.join(SUPPORTED_STORAGE_BACKENDS)}, "
                f"got {self.STORAGE_BACKEND!r}."
            )
        for name in (
            "UPLOAD_TIMEOUT_MS",
            "DOWNLOAD_TIMEOUT_MS",
            "DELETE_TIMEOUT_MS",
            "LIST_TIMEOUT_MS",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be a positive number of milliseconds.")
        self.LOG_LEVEL = (self.LOG_LEVEL or "INFO").strip().upper()

    def operation_timeouts(self) -> OperationTimeouts:
        return OperationTimeouts(
            upload=self.UPLOAD_TIMEOUT_MS,
            download=self.DOWNLOAD_TIMEOUT_MS,
            delete=self.DELETE_TIMEOUT_MS,
            list_files=self.LIST_TIMEOUT_MS,
        )

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            STORAGE_BACKEND=os.environ.get("STORAGE_BACKEND", cls.STORAGE_BACKEND),
            S3_BUCKET=os.environ.get("S3_BUCKET") or None,
            S3_REGION=os.environ.get("S3_REGION", cls.S3_REGION),
            S3_ENDPOINT_URL=os.environ.get("S3_ENDPOINT_URL") or None,
            S3_ACCESS_KEY_ID=os.environ.get("S3_ACCESS_KEY_ID") or None,
            S3_SECRET_ACCESS_KEY=os.environ.get("S3_SECRET_ACCESS_KEY") or None,
            S3_USE_SSL=_as_bool(os.environ.get("S3_USE_SSL"), cls.S3_USE_SSL),
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            UPLOAD_TIMEOUT_MS=_as_int("UPLOAD_TIMEOUT_MS", cls.UPLOAD_TIMEOUT_MS),
            DOWNLOAD_TIMEOUT_MS=_as_int("DOWNLOAD_TIMEOUT_MS", cls.DOWNLOAD_TIMEOUT_MS),
            DELETE_TIMEOUT_MS=_as_int("DELETE_TIMEOUT_MS", cls.DELETE_TIMEOUT_MS),
            LIST_TIMEOUT_MS=_as_int("LIST_TIMEOUT_MS", cls.LIST_TIMEOUT_MS),
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
            API_KEY_ENABLED=_as_bool(
                os.environ.get("API_KEY_ENABLED"), cls.API_KEY_ENABLED
            ),
            API_KEY=os.environ.get("API_KEY"),
            CORS_ENABLED=_as_bool(os.environ.get("CORS_ENABLED"), cls.CORS_ENABLED),
            CORS_ORIGINS=_as_list(os.environ.get("CORS_ORIGINS")),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
