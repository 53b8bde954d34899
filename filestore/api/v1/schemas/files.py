"""Pydantic schemas for file API endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class FileUploadOut(BaseModel):
    """Response model for a stored object."""

    key: str
    location: str
    size_bytes: int = Field(ge=1)


class FileListOut(BaseModel):
    """Response model for a key listing."""

    prefix: str | None = None
    keys: list[str] = Field(default_factory=list)
    count: int = 0


class OperationCounts(BaseModel):
    """Success and failure counts of one storage operation."""

    successes: int = Field(ge=0)
    failures: int = Field(ge=0)


class OperationMetricsOut(BaseModel):
    """Per-operation counters keyed by operation name."""

    operations: dict[str, OperationCounts] = Field(default_factory=dict)
    timeouts_ms: dict[str, float] = Field(default_factory=dict)
