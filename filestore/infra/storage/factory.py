"""Storage backend selection from configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from filestore.infra.storage.client import StorageClient
from filestore.infra.storage.memory_client import MemoryStorageClient

if TYPE_CHECKING:
    from filestore.common.config import Settings


class StorageBackendNotConfiguredError(Exception):
    """Raised when the storage backend is not properly configured."""


def build_storage_client(settings: "Settings") -> StorageClient:
    """Build the storage client selected by ``STORAGE_BACKEND``."""
    backend = (settings.STORAGE_BACKEND or "").strip().lower()
    if backend == "memory":
        return MemoryStorageClient()
    if backend == "s3":
        if not settings.S3_BUCKET:
            raise StorageBackendNotConfiguredError("S3_BUCKET is required")
        from filestore.infra.storage.s3_client import S3StorageClient

        return S3StorageClient(bucket=settings.S3_BUCKET, settings=settings)
    raise StorageBackendNotConfiguredError(
        f"Unsupported storage backend: {backend}. Use 's3' or 'memory'."
    )
