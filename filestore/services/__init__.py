from .file_manager import FORBIDDEN_KEY_CHARACTERS, FileManager
from .timeouts import (
    DELETE,
    DOWNLOAD,
    LIST_FILES,
    UPLOAD,
    Operation,
    OperationTimeouts,
)

__all__ = [
    "FileManager",
    "FORBIDDEN_KEY_CHARACTERS",
    "Operation",
    "OperationTimeouts",
    "UPLOAD",
    "DOWNLOAD",
    "DELETE",
    "LIST_FILES",
]
