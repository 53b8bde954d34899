from __future__ import annotations

from functools import lru_cache

from fastapi import Header, HTTPException

from filestore.common.config import get_settings
from filestore.infra.storage import build_storage_client
from filestore.services import FileManager


@lru_cache(maxsize=1)
def get_file_manager() -> FileManager:
    """Composition root: one backend and one file manager per process."""
    settings = get_settings()
    return FileManager(
        build_storage_client(settings),
        timeouts=settings.operation_timeouts(),
    )


def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
    settings = get_settings()
    if settings.API_KEY_ENABLED:
        api_key_expected = getattr(settings, "API_KEY", None)
        if not x_api_key or (api_key_expected and x_api_key != api_key_expected):
            raise HTTPException(status_code=401, detail="Invalid API key")
