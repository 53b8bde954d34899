"""Object storage abstraction layer.

This module provides a protocol-based abstraction for object storage backends,
enabling support for S3, MinIO, and other S3-compatible services, plus an
in-memory backend for local use.
"""

from .client import StorageClient
from .factory import StorageBackendNotConfiguredError, build_storage_client
from .memory_client import MemoryStorageClient

__all__ = [
    "MemoryStorageClient",
    "StorageBackendNotConfiguredError",
    "StorageClient",
    "build_storage_client",
]
