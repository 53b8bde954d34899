"""S3-compatible storage client implementation.

This module provides an S3-compatible storage client that works with
AWS S3, MinIO, and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from filestore.common.errors import ErrorCode, StorageError, describe_error

if TYPE_CHECKING:
    from filestore.common.config import Settings


class S3StorageClient:
    """S3-compatible object storage client.

    Supports AWS S3, MinIO, and other S3-compatible services. boto3 is
    blocking, so every call runs in a worker thread.
    """

    def __init__(self, *, bucket: str, settings: "Settings") -> None:
        """Initialize the S3 client with configuration from settings.

        Args:
            bucket: Bucket all operations target.
            settings: Application settings containing S3 configuration.

        Raises:
            StorageError: If boto3 is not installed.
        """
        self._bucket = bucket
        self._settings = settings
        self._client = self._build_client(settings)

    @property
    def bucket(self) -> str:
        return self._bucket

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        try:
            import boto3
            from botocore.config import Config
        except ImportError as exc:
            raise StorageError(
                "boto3 and botocore are required for S3 storage backend. "
                "Install with: pip install boto3"
            ) from exc

        addressing_style = (settings.S3_ADDRESSING_STYLE or "path").strip().lower()
        config = Config(s3={"addressing_style": addressing_style})

        return boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            use_ssl=bool(settings.S3_USE_SSL),
            config=config,
        )

    def _wrap(
        self, exc: Exception, action: str, code: str, **context: str | None
    ) -> StorageError:
        metadata: dict[str, str] = {"bucket": self._bucket}
        metadata.update({k: v for k, v in context.items() if v is not None})
        return StorageError(
            f"Failed to {action}: {describe_error(exc)}", code, metadata
        )

    async def upload(self, content: bytes, key: str) -> str:
        """Upload an object and return its ``s3://`` locator."""
        try:
            await asyncio.to_thread(
                self._client.put_object, Bucket=self._bucket, Key=key, Body=content
            )
        except Exception as exc:
            raise self._wrap(exc, "upload file", ErrorCode.S3_UPLOAD, key=key) from exc
        return f"s3://{self._bucket}/{key}"

    async def download(self, key: str) -> bytes:
        """Download an object body."""
        try:
            response = await asyncio.to_thread(
                self._client.get_object, Bucket=self._bucket, Key=key
            )
            body = response.get("Body")
            data = await asyncio.to_thread(body.read) if body is not None else b""
        except Exception as exc:
            raise self._wrap(
                exc, "download file", ErrorCode.S3_DOWNLOAD, key=key
            ) from exc

        if not data:
            raise StorageError(
                "S3 object body is undefined",
                ErrorCode.S3_EMPTY_BODY,
                {"bucket": self._bucket, "key": key},
            )
        return bytes(data)

    async def delete(self, key: str) -> None:
        """Delete an object."""
        try:
            await asyncio.to_thread(
                self._client.delete_object, Bucket=self._bucket, Key=key
            )
        except Exception as exc:
            raise self._wrap(exc, "delete file", ErrorCode.S3_DELETE, key=key) from exc

    async def list_files(self, prefix: str | None = None) -> list[str]:
        """List object keys, following pagination."""
        params: dict[str, Any] = {"Bucket": self._bucket}
        if prefix:
            params["Prefix"] = prefix

        def _collect() -> list[str]:
            keys: list[str] = []
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(**params):
                for obj in page.get("Contents") or []:
                    key = obj.get("Key")
                    if key:
                        keys.append(key)
            return keys

        try:
            return await asyncio.to_thread(_collect)
        except Exception as exc:
            raise self._wrap(
                exc, "list files", ErrorCode.S3_LIST, prefix=prefix
            ) from exc
