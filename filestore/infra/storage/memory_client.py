"""In-memory storage client.

Keeps objects in a dict for local development and tests. Not shared across
processes and lost on restart.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class MemoryStorageClient:
    """Dict-backed implementation of :class:`StorageClient`."""

    objects: dict[str, bytes] = field(default_factory=dict)

    async def upload(self, content: bytes, key: str) -> str:
        self.objects[key] = bytes(content)
        return f"memory://{key}"

    async def download(self, key: str) -> bytes:
        data = self.objects.get(key)
        if not data:
            raise FileNotFoundError(f"Object not found: {key}")
        return data

    async def delete(self, key: str) -> None:
        if key not in self.objects:
            raise FileNotFoundError(f"Object not found: {key}")
        del self.objects[key]

    async def list_files(self, prefix: str | None = None) -> list[str]:
        keys = sorted(self.objects)
        if prefix:
            keys = [key for key in keys if key.startswith(prefix)]
        return keys
