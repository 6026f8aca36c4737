from __future__ import annotations
import uuid
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.utils import file_extension, human_size


class FileStatus(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


# idle -> uploading -> processing -> {success | error}; error -> idle on retry
TRANSITIONS: dict[FileStatus, frozenset[FileStatus]] = {
    FileStatus.IDLE: frozenset({FileStatus.UPLOADING}),
    FileStatus.UPLOADING: frozenset({FileStatus.PROCESSING, FileStatus.ERROR}),
    FileStatus.PROCESSING: frozenset({FileStatus.SUCCESS, FileStatus.ERROR}),
    FileStatus.SUCCESS: frozenset(),
    FileStatus.ERROR: frozenset({FileStatus.IDLE}),
}

REMOVABLE_STATUSES = frozenset({FileStatus.IDLE, FileStatus.ERROR})


def can_transition(current: FileStatus, target: FileStatus) -> bool:
    return target in TRANSITIONS[current]


class SourceFile(BaseModel):
    """Raw file payload selected by the user."""

    name: str
    content: bytes
    content_type: str = Field(default="application/octet-stream")

    model_config = ConfigDict(frozen=True)

    @field_validator("name", mode="before")
    @classmethod
    def _basename_only(cls, value) -> str:
        name = Path(str(value or "")).name
        if not name:
            raise ValueError("file name is required")
        return name

    @property
    def extension(self) -> str:
        return file_extension(self.name)

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def size_human(self) -> str:
        return human_size(self.size)


class IngestedFile(BaseModel):
    """
    One queued file and its per-attempt processing state.

    `job_id` is present only once the transport has handed the file to the
    server: while processing, after success, or after a processing error.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    source: SourceFile
    status: FileStatus = FileStatus.IDLE
    progress: int = Field(default=0, ge=0, le=100)
    error: str | None = None
    job_id: str | None = None
    result_count: int | None = None
    format_mismatch: bool = False

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def is_terminal(self) -> bool:
        return self.status in (FileStatus.SUCCESS, FileStatus.ERROR)

    @property
    def is_removable(self) -> bool:
        return self.status in REMOVABLE_STATUSES


class TerminalOutcome(BaseModel):
    status: FileStatus
    result_count: int | None = None
    error_message: str | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("status")
    @classmethod
    def _terminal_only(cls, value: FileStatus) -> FileStatus:
        if value not in (FileStatus.SUCCESS, FileStatus.ERROR):
            raise ValueError(f"terminal outcome cannot be {value.value}")
        return value

    @classmethod
    def parsed(cls, result_count: int | None) -> "TerminalOutcome":
        return cls(status=FileStatus.SUCCESS, result_count=result_count or 0)

    @classmethod
    def failed(cls, message: str) -> "TerminalOutcome":
        return cls(status=FileStatus.ERROR, error_message=message)


class StatementStatus(BaseModel):
    """
    Status endpoint payload.

    Only `status` decides the outcome. The other fields are read best-effort
    so a terminal answer is never lost to an oddly typed extra field.
    """

    id: int | str | None = None
    status: str | None = None
    transaction_count: int | None = None
    error_message: str | None = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("id", mode="before")
    @classmethod
    def _lenient_id(cls, value):
        return value if isinstance(value, (int, str)) else None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value):
        if not isinstance(value, str):
            return None
        return value.strip().lower() or None

    @field_validator("transaction_count", mode="before")
    @classmethod
    def _lenient_count(cls, value):
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return None

    @field_validator("error_message", mode="before")
    @classmethod
    def _flatten_message(cls, value):
        if not value:
            return None
        if isinstance(value, (list, tuple)):
            return "; ".join(str(v) for v in value if v) or None
        return str(value)


class IntakeSummary(BaseModel):
    total_files: int = 0
    success_count: int = 0
    failed_count: int = 0
    pending_count: int = 0
    total_results: int = 0
    has_files_to_upload: bool = False
    is_busy: bool = False
