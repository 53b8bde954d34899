"""Structured storage errors.

Every failure surfaced by the file manager is a :class:`StorageError` carrying
a machine-readable code, so callers can branch on ``exc.code`` regardless of
which backend produced the failure.
"""

from __future__ import annotations

import json
from types import MappingProxyType
from typing import Any, Mapping


class ErrorCode:
    """Stable error codes carried by :class:`StorageError`."""

    EMPTY_BUFFER = "EMPTY_BUFFER_ERROR"
    # Older name for EMPTY_BUFFER, still accepted by clients branching on codes.
    EMPTY_FILE = "EMPTY_FILE_ERROR"
    EMPTY_KEY = "EMPTY_KEY_ERROR"
    INVALID_KEY_FORMAT = "INVALID_KEY_FORMAT"
    STORAGE_OPERATION_FAILED = "STORAGE_OPERATION_FAILED"

    S3_UPLOAD = "S3_UPLOAD_ERROR"
    S3_DOWNLOAD = "S3_DOWNLOAD_ERROR"
    S3_EMPTY_BODY = "S3_EMPTY_BODY_ERROR"
    S3_DELETE = "S3_DELETE_ERROR"
    S3_LIST = "S3_LIST_ERROR"


VALIDATION_ERROR_CODES: frozenset[str] = frozenset(
    {
        ErrorCode.EMPTY_BUFFER,
        ErrorCode.EMPTY_FILE,
        ErrorCode.EMPTY_KEY,
        ErrorCode.INVALID_KEY_FORMAT,
    }
)

_UNPRINTABLE = "<unprintable error>"


class StorageError(RuntimeError):
    """Raised when an object storage operation fails.

    Attributes are read-only once constructed; ``metadata`` is exposed as a
    read-only mapping (or ``None`` when no context was attached).
    """

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.STORAGE_OPERATION_FAILED,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self._message = message
        self._code = code
        self._metadata = (
            MappingProxyType(dict(metadata)) if metadata is not None else None
        )

    @property
    def message(self) -> str:
        return self._message

    @property
    def code(self) -> str:
        return self._code

    @property
    def metadata(self) -> Mapping[str, Any] | None:
        return self._metadata

    @property
    def is_validation_error(self) -> bool:
        return self._code in VALIDATION_ERROR_CODES

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self._message, "code": self._code}
        if self._metadata is not None:
            payload["metadata"] = dict(self._metadata)
        return payload

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self._message!r}, code={self._code!r}, "
            f"metadata={dict(self._metadata) if self._metadata is not None else None!r})"
        )


class OperationTimeoutError(Exception):
    """Raised when a backend call does not settle before its local deadline."""

    def __init__(self, operation: str, timeout_ms: float) -> None:
        self.operation = operation
        self.timeout_ms = timeout_ms
        super().__init__(f"{operation} operation timed out after {timeout_ms}ms")


def _has_own_str(value: object) -> bool:
    return type(value).__str__ is not object.__str__


def describe_error(error: object) -> str:
    """Return a human-readable message for any caught failure value.

    Tries, in order: exception text, plain scalars, a ``message`` attribute
    or key, a custom ``__str__``, JSON serialization, ``repr`` and finally a
    literal fallback. Never raises.
    """
    try:
        if isinstance(error, BaseException):
            text = str(error)
            return text or type(error).__name__
        if error is None:
            return "None"
        if isinstance(error, str):
            return error
        if isinstance(error, (bytes, bytearray)):
            return bytes(error).decode("utf-8", errors="replace")
        if isinstance(error, (int, float)):
            return str(error)

        message = getattr(error, "message", None)
        if isinstance(message, str) and message:
            return message
        if isinstance(error, Mapping):
            message = error.get("message")
            if isinstance(message, str) and message:
                return message
    except Exception:
        return _UNPRINTABLE

    if _has_own_str(error):
        try:
            return str(error)
        except Exception:
            pass

    try:
        return json.dumps(error, ensure_ascii=False)
    except Exception:
        pass

    try:
        return repr(error)
    except Exception:
        return _UNPRINTABLE
