"""Storage client protocol.

This module defines the abstract interface every object storage backend must
satisfy. The file manager talks to backends only through this contract.
"""

from __future__ import annotations

from typing import Protocol


class StorageClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Each call is a single best-effort attempt: implementations do not retry,
    and report failures by raising.
    """

    async def upload(self, content: bytes, key: str) -> str:
        """Store content under a key.

        Args:
            content: Object body.
            key: Object key (path) in the backend.

        Returns:
            Backend-specific locator of the stored object, e.g. ``s3://bucket/key``.
        """
        ...

    async def download(self, key: str) -> bytes:
        """Fetch the body of an object.

        Args:
            key: Object key (path) in the backend.

        Returns:
            The object body.

        Raises:
            Exception: If the object does not exist or its body is absent or empty.
        """
        ...

    async def delete(self, key: str) -> None:
        """Delete an object.

        Whether deleting a missing object succeeds is backend-dependent.

        Args:
            key: Object key (path) to delete.
        """
        ...

    async def list_files(self, prefix: str | None = None) -> list[str]:
        """List object keys, optionally restricted to a prefix.

        Args:
            prefix: Only keys starting with this value are returned.

        Returns:
            Matching keys; an empty list when nothing matches.
        """
        ...
