"""Per-operation deadlines for the file manager."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Operation:
    """Identity of a file manager operation.

    ``name`` tags metrics, ``label`` starts timeout messages and ``phrase``
    completes ``"Failed to <phrase>"`` in normalized errors.
    """

    name: str
    label: str
    phrase: str


UPLOAD = Operation(name="upload", label="Upload", phrase="upload")
DOWNLOAD = Operation(name="download", label="Download", phrase="download")
DELETE = Operation(name="delete", label="Delete", phrase="delete")
LIST_FILES = Operation(name="listFiles", label="List files", phrase="list files")


@dataclass(frozen=True, slots=True)
class OperationTimeouts:
    """Default timeout, in milliseconds, for each storage operation."""

    upload: float = 5000
    download: float = 5000
    delete: float = 3000
    list_files: float = 10000
    _by_name: dict[str, float] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "_by_name",
            {
                UPLOAD.name: self.upload,
                DOWNLOAD.name: self.download,
                DELETE.name: self.delete,
                LIST_FILES.name: self.list_files,
            },
        )

    def for_operation(self, operation: str) -> float:
        try:
            return self._by_name[operation]
        except KeyError as exc:
            raise KeyError(f"No timeout configured for operation {operation!r}") from exc

    def resolve(self, operation: str, override: float | None = None) -> float:
        """Return ``override`` when given, else the configured default."""
        if override is not None:
            return override
        return self.for_operation(operation)

    def as_dict(self) -> dict[str, float]:
        return dict(self._by_name)
