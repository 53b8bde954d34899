from __future__ import annotations

import json
import logging
import sys

from filestore.common.logging import JsonFormatter


def _record(msg: str, *args, level: int = logging.INFO, **kwargs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="filestore.storage",
        level=level,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=kwargs.pop("exc_info", None),
    )
    record.created = 0.25
    record.msecs = 250.0
    for key, value in kwargs.items():
        setattr(record, key, value)
    return record


def test_formats_base_fields():
    payload = json.loads(JsonFormatter().format(_record("hello %s", "world")))

    assert payload == {
        "timestamp": "1970-01-01T00:00:00.250Z",
        "level": "INFO",
        "logger": "filestore.storage",
        "message": "hello world",
    }


def test_merges_structured_extra():
    record = _record(
        "storage_operation_succeeded",
        extra={"operation": "upload", "size_bytes": 5, "key": "a.txt"},
    )

    payload = json.loads(JsonFormatter().format(record))

    assert payload["operation"] == "upload"
    assert payload["size_bytes"] == 5
    assert payload["key"] == "a.txt"


def test_includes_exception_text():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record("failed", level=logging.ERROR, exc_info=sys.exc_info())

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "ERROR"
    assert "RuntimeError: boom" in payload["exception"]


def test_non_serializable_extra_values_are_stringified():
    record = _record("x", extra={"timeout_ms": 50, "target": object()})

    payload = json.loads(JsonFormatter().format(record))

    assert payload["timeout_ms"] == 50
    assert payload["target"].startswith("<object object")
