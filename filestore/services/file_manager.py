"""File manager service.

Validated, deadline-bounded and metered access to a storage backend. Every
failure leaving this module is a :class:`StorageError`.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar

from filestore.common.errors import (
    ErrorCode,
    OperationTimeoutError,
    StorageError,
    describe_error,
)
from filestore.infra.observability.metrics import MetricsTracker
from filestore.services.timeouts import (
    DELETE,
    DOWNLOAD,
    LIST_FILES,
    UPLOAD,
    Operation,
    OperationTimeouts,
)

if TYPE_CHECKING:
    from filestore.infra.storage.client import StorageClient

T = TypeVar("T")

FORBIDDEN_KEY_CHARACTERS = re.compile(r'[\\:*?"<>|]')

logger = logging.getLogger("filestore.storage")


def _discard_outcome(task: asyncio.Future) -> None:
    # Timed-out call: its outcome is dropped, but must still be consumed.
    if not task.cancelled():
        task.exception()


class FileManager:
    """Orchestrates storage operations against an injected backend.

    Each operation validates its input, races the backend call against the
    operation's timeout, records the outcome in the metrics tracker, logs it,
    and normalizes failures into :class:`StorageError`. Validation failures
    are raised before the backend is touched and are not counted as
    operation failures.
    """

    def __init__(
        self,
        storage: "StorageClient",
        *,
        timeouts: OperationTimeouts | None = None,
        metrics: MetricsTracker | None = None,
    ) -> None:
        self._storage = storage
        self._timeouts = timeouts if timeouts is not None else OperationTimeouts()
        self._metrics = metrics if metrics is not None else MetricsTracker()

    @property
    def timeouts(self) -> OperationTimeouts:
        return self._timeouts

    @property
    def metrics(self) -> MetricsTracker:
        return self._metrics

    def get_metrics(self) -> dict[str, dict[str, int]]:
        return self._metrics.get_metrics()

    async def upload_file(
        self, content: bytes, key: str, *, timeout_ms: float | None = None
    ) -> str:
        """Upload content under key and return the backend locator.

        Raises:
            StorageError: ``EMPTY_BUFFER_ERROR``, ``EMPTY_KEY_ERROR`` or
                ``INVALID_KEY_FORMAT`` for bad input; the backend's own
                StorageError or ``STORAGE_OPERATION_FAILED`` otherwise.
        """
        self._validate_content(UPLOAD, content)
        self._validate_key(UPLOAD, key)
        size = len(content)
        return await self._execute(
            UPLOAD,
            lambda: self._storage.upload(content, key),
            timeout_ms=timeout_ms,
            context_field="key",
            context=key,
            success_fields=lambda _: {"size_bytes": size},
        )

    async def download_file(self, key: str, *, timeout_ms: float | None = None) -> bytes:
        """Download the object stored under key."""
        self._validate_key(DOWNLOAD, key)
        return await self._execute(
            DOWNLOAD,
            lambda: self._storage.download(key),
            timeout_ms=timeout_ms,
            context_field="key",
            context=key,
            success_fields=lambda data: {"size_bytes": len(data)},
        )

    async def delete_file(self, key: str, *, timeout_ms: float | None = None) -> None:
        """Delete the object stored under key."""
        self._validate_key(DELETE, key)
        await self._execute(
            DELETE,
            lambda: self._storage.delete(key),
            timeout_ms=timeout_ms,
            context_field="key",
            context=key,
        )

    async def list_files(
        self, prefix: str | None = None, *, timeout_ms: float | None = None
    ) -> list[str]:
        """List keys under prefix, or every key when no prefix is given.

        An absent listing from the backend is returned as an empty list.
        """

        async def call() -> list[str]:
            return list(await self._storage.list_files(prefix) or [])

        return await self._execute(
            LIST_FILES,
            call,
            timeout_ms=timeout_ms,
            context_field="prefix",
            context=prefix,
            success_fields=lambda keys: {"count": len(keys)},
        )

    def _validate_content(self, operation: Operation, content: bytes | None) -> None:
        if content is None or len(content) == 0:
            self._reject(
                operation,
                "content",
                StorageError("File content cannot be empty", ErrorCode.EMPTY_BUFFER),
            )

    def _validate_key(self, operation: Operation, key: str | None) -> None:
        if key is None or not key.strip():
            self._reject(
                operation,
                "key",
                StorageError("Key cannot be empty", ErrorCode.EMPTY_KEY),
            )
        invalid = FORBIDDEN_KEY_CHARACTERS.findall(key)
        if invalid:
            characters = "".join(dict.fromkeys(invalid))
            self._reject(
                operation,
                "key",
                StorageError(
                    f"Invalid key format: {key} (forbidden characters: {characters})",
                    ErrorCode.INVALID_KEY_FORMAT,
                    {"key": key, "invalid_characters": characters},
                ),
            )

    @staticmethod
    def _reject(operation: Operation, field: str, error: StorageError) -> None:
        logger.warning(
            "storage_validation_failed operation=%s field=%s code=%s",
            operation.name,
            field,
            error.code,
            extra={
                "extra": {
                    "event": "storage_validation_failed",
                    "operation": operation.name,
                    "field": field,
                    "code": error.code,
                    "error": error.message,
                }
            },
        )
        raise error

    async def _execute(
        self,
        operation: Operation,
        call: Callable[[], Awaitable[T]],
        *,
        timeout_ms: float | None,
        context_field: str,
        context: str | None,
        success_fields: Callable[[T], dict[str, Any]] | None = None,
    ) -> T:
        timeout = self._timeouts.resolve(operation.name, timeout_ms)
        started = time.perf_counter()
        try:
            result = await self._race(operation, call, timeout)
        except Exception as exc:
            self._metrics.observe_latency(operation.name, time.perf_counter() - started)
            self._metrics.track_failure(operation.name)
            logger.error(
                "storage_operation_failed operation=%s %s=%s error=%s",
                operation.name,
                context_field,
                context,
                describe_error(exc),
                exc_info=exc,
                extra={
                    "extra": {
                        "event": "storage_operation_failed",
                        "operation": operation.name,
                        context_field: context,
                        "timeout_ms": timeout,
                        "error": describe_error(exc),
                        "error_type": type(exc).__name__,
                    }
                },
            )
            normalized = self._normalize(operation, exc, context)
            if normalized is exc:
                raise
            raise normalized from exc

        elapsed = time.perf_counter() - started
        fields: dict[str, Any] = {context_field: context}
        if success_fields is not None:
            fields.update(success_fields(result))
        self._metrics.observe_latency(operation.name, elapsed)
        self._metrics.track_success(operation.name)
        logger.info(
            "storage_operation_succeeded operation=%s %s duration_ms=%.3f",
            operation.name,
            " ".join(f"{name}={value}" for name, value in fields.items()),
            elapsed * 1000,
            extra={
                "extra": {
                    "event": "storage_operation_succeeded",
                    "operation": operation.name,
                    "duration_ms": round(elapsed * 1000, 3),
                    **fields,
                }
            },
        )
        return result

    @staticmethod
    async def _race(
        operation: Operation, call: Callable[[], Awaitable[T]], timeout_ms: float
    ) -> T:
        """Await the backend call unless the deadline passes first."""
        task = asyncio.ensure_future(call())
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task not in done:
            task.add_done_callback(_discard_outcome)
            task.cancel()
            raise OperationTimeoutError(operation.label, timeout_ms)
        return task.result()

    @staticmethod
    def _normalize(
        operation: Operation, error: BaseException, context: str | None
    ) -> StorageError:
        if isinstance(error, StorageError):
            return error
        return StorageError(
            f"Failed to {operation.phrase}: {describe_error(error)}",
            ErrorCode.STORAGE_OPERATION_FAILED,
            {"context": context} if context else None,
        )
