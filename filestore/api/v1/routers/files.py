"""File API router.

REST endpoints over the file manager: raw-body upload, download, delete and
prefix listing. ``StorageError`` is left to the application handler, which
renders it as problem+json carrying the storage error code.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response, status

from filestore.api.v1.deps import get_file_manager
from filestore.api.v1.schemas.files import FileListOut, FileUploadOut
from filestore.services import FileManager

router = APIRouter()


def timeout_override(
    timeout_ms: int | None = Query(
        default=None,
        ge=1,
        description="Override the operation timeout, in milliseconds.",
    ),
) -> int | None:
    return timeout_ms


@router.get(
    "/files",
    response_model=FileListOut,
    summary="List files",
    description="List object keys, optionally restricted to a prefix.",
)
async def list_files(
    prefix: str | None = Query(default=None),
    timeout_ms: int | None = Depends(timeout_override),
    manager: FileManager = Depends(get_file_manager),
) -> FileListOut:
    keys = await manager.list_files(prefix, timeout_ms=timeout_ms)
    return FileListOut(prefix=prefix, keys=keys, count=len(keys))


@router.put(
    "/files/{key:path}",
    response_model=FileUploadOut,
    status_code=status.HTTP_201_CREATED,
    summary="Upload file",
    description="Store the raw request body under the given key.",
)
async def upload_file(
    key: str,
    request: Request,
    timeout_ms: int | None = Depends(timeout_override),
    manager: FileManager = Depends(get_file_manager),
) -> FileUploadOut:
    content = await request.body()
    location = await manager.upload_file(content, key, timeout_ms=timeout_ms)
    return FileUploadOut(key=key, location=location, size_bytes=len(content))


@router.get(
    "/files/{key:path}",
    response_class=Response,
    summary="Download file",
)
async def download_file(
    key: str,
    timeout_ms: int | None = Depends(timeout_override),
    manager: FileManager = Depends(get_file_manager),
) -> Response:
    data = await manager.download_file(key, timeout_ms=timeout_ms)
    return Response(content=data, media_type="application/octet-stream")


@router.delete(
    "/files/{key:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete file",
)
async def delete_file(
    key: str,
    timeout_ms: int | None = Depends(timeout_override),
    manager: FileManager = Depends(get_file_manager),
) -> Response:
    await manager.delete_file(key, timeout_ms=timeout_ms)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
