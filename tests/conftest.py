from __future__ import annotations

import pytest

from filestore.api.v1.deps import get_file_manager
from filestore.common.config import get_settings

_SETTINGS_ENV = (
    "STORAGE_BACKEND",
    "S3_BUCKET",
    "S3_REGION",
    "S3_ENDPOINT_URL",
    "S3_ACCESS_KEY_ID",
    "S3_SECRET_ACCESS_KEY",
    "S3_USE_SSL",
    "S3_ADDRESSING_STYLE",
    "UPLOAD_TIMEOUT_MS",
    "DOWNLOAD_TIMEOUT_MS",
    "DELETE_TIMEOUT_MS",
    "LIST_TIMEOUT_MS",
    "ENABLE_METRICS",
    "API_KEY_ENABLED",
    "API_KEY",
    "CORS_ENABLED",
    "CORS_ORIGINS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Each test starts from defaults, with no .env file and empty caches."""
    monkeypatch.chdir(tmp_path)
    for name in _SETTINGS_ENV:
        # setenv first so teardown also removes values loaded from a .env file
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    get_settings.cache_clear()  # type: ignore[attr-defined]
    get_file_manager.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]
    get_file_manager.cache_clear()  # type: ignore[attr-defined]
