"""In-memory intake queue and the per-file status state machine."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Optional

from core.config import config
from core.logger import get_logger
from core.utils import human_size
from models.intake import (
    FileStatus,
    IngestedFile,
    IntakeSummary,
    SourceFile,
    TerminalOutcome,
    can_transition,
)
from models.template import Template
from .errors import InvalidTransitionError, ParseFailure, ValidationError
from .events import EventChannel, ProgressEvent, QueueEvent

log = get_logger("ingestion/intake")


@dataclass
class AddFilesResult:
    added: list[str] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)
    error: Optional[ValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.rejected


class IntakeQueue:
    """
    Ordered collection of submitted files.

    Public operations address entries by position. Status updates coming
    from an in-flight upload address the entry object itself, so removing
    another file mid-upload cannot redirect them.
    """

    def __init__(self, max_files: int | None = None, max_total_bytes: int | None = None):
        self._entries: list[IngestedFile] = []
        self.max_files = config.max_files if max_files is None else max_files
        self.max_total_bytes = config.max_total_bytes if max_total_bytes is None else max_total_bytes
        self._events: EventChannel[QueueEvent] = EventChannel()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[IngestedFile]:
        return iter(list(self._entries))

    @property
    def entries(self) -> list[IngestedFile]:
        return list(self._entries)

    def get(self, index: int) -> Optional[IngestedFile]:
        if 0 <= index < len(self._entries):
            return self._entries[index]
        return None

    def index_of(self, entry: IngestedFile) -> Optional[int]:
        for i, candidate in enumerate(self._entries):
            if candidate is entry:
                return i
        return None

    def subscribe(self, listener: Callable[[QueueEvent], None]) -> Callable[[], None]:
        return self._events.subscribe(listener)

    # ---- user operations ----

    def add_files(self, files: Iterable[SourceFile], active_template: Optional[Template]) -> AddFilesResult:
        """
        Queue files that match the active template's format.

        Returns:
            AddFilesResult with the names added, the names rejected for a
            format mismatch, and a validation error when nothing could be
            queued at all (no active template, batch over limits).
        """
        files = list(files)
        if active_template is None:
            log.warning(f"Rejected {len(files)} file(s): no template selected")
            return AddFilesResult(error=ValidationError("Please complete the selection first"))

        expected = active_template.file_format.value
        accepted = [f for f in files if f.extension == expected]
        result = AddFilesResult(rejected=[f.name for f in files if f.extension != expected])

        if result.rejected:
            log.warning(f"Rejected file(s) (ext != {expected}): {result.rejected}")
            if not accepted:
                result.error = ValidationError(f"Please select {expected.upper()} files")
                return result

        if len(accepted) > self.max_files:
            log.warning(f"Upload rejected: {len(accepted)} files > limit {self.max_files}")
            result.error = ValidationError(f"Too many files. Max allowed: {self.max_files}.")
            return result

        total_size = sum(f.size for f in accepted)
        if total_size > self.max_total_bytes:
            log.warning(f"Upload rejected: size {human_size(total_size)}")
            result.error = ValidationError(f"Total upload size exceeds {human_size(self.max_total_bytes)}.")
            return result

        for source in accepted:
            entry = IngestedFile(source=source)
            self._entries.append(entry)
            result.added.append(source.name)
            self._events.emit(QueueEvent("added", entry.id))

        if result.added:
            log.info(f"Queued {len(result.added)} file(s) for template {active_template.id}")
        return result

    def remove_file(self, index: int) -> bool:
        entry = self.get(index)
        if entry is None or not entry.is_removable:
            return False
        del self._entries[index]
        log.info(f"Removed {entry.name} from queue")
        self._events.emit(QueueEvent("removed", entry.id))
        return True

    def retry(self, index: int) -> bool:
        entry = self.get(index)
        if entry is None or entry.status != FileStatus.ERROR:
            return False
        self._transition(entry, FileStatus.IDLE)
        entry.progress = 0
        entry.error = None
        entry.job_id = None
        entry.result_count = None
        log.info(f"Reset {entry.name} for retry")
        self._events.emit(QueueEvent("updated", entry.id))
        return True

    def revalidate(self, active_template: Optional[Template]) -> list[int]:
        """
        Flag waiting entries whose extension no longer matches the template.

        Entries are never removed or blocked; the flag is informational.
        Returns the positions of flagged entries.
        """
        flagged: list[int] = []
        for i, entry in enumerate(self._entries):
            if entry.status not in (FileStatus.IDLE, FileStatus.ERROR):
                continue
            mismatch = (
                active_template is not None
                and entry.source.extension != active_template.file_format.value
            )
            entry.format_mismatch = mismatch
            if mismatch:
                flagged.append(i)
        if flagged:
            log.warning(f"{len(flagged)} queued file(s) do not match the selected format")
        self._events.emit(QueueEvent("revalidated"))
        return flagged

    def summary(self) -> IntakeSummary:
        statuses = [e.status for e in self._entries]
        return IntakeSummary(
            total_files=len(statuses),
            success_count=statuses.count(FileStatus.SUCCESS),
            failed_count=statuses.count(FileStatus.ERROR),
            pending_count=sum(1 for s in statuses if s in (FileStatus.UPLOADING, FileStatus.PROCESSING)),
            total_results=sum(e.result_count or 0 for e in self._entries if e.status == FileStatus.SUCCESS),
            has_files_to_upload=FileStatus.IDLE in statuses,
            is_busy=any(s in (FileStatus.UPLOADING, FileStatus.PROCESSING) for s in statuses),
        )

    # ---- pipeline updates ----

    def start_upload(self, entry: IngestedFile) -> None:
        self._transition(entry, FileStatus.UPLOADING)
        entry.progress = 0
        entry.format_mismatch = False
        self._events.emit(QueueEvent("updated", entry.id))

    def record_progress(self, entry: IngestedFile, event: ProgressEvent) -> None:
        if entry.status != FileStatus.UPLOADING:
            return
        if event.percent > entry.progress:
            entry.progress = min(event.percent, 100)
            self._events.emit(QueueEvent("updated", entry.id))

    def mark_processing(self, entry: IngestedFile, job_id: str) -> None:
        self._transition(entry, FileStatus.PROCESSING)
        entry.progress = 100
        entry.job_id = job_id
        self._events.emit(QueueEvent("updated", entry.id))

    def complete(self, entry: IngestedFile, outcome: TerminalOutcome) -> None:
        if outcome.status == FileStatus.SUCCESS:
            self._transition(entry, FileStatus.SUCCESS)
            entry.result_count = outcome.result_count or 0
            log.info(f"{entry.name} parsed: {entry.result_count} transaction(s)")
            self._events.emit(QueueEvent("updated", entry.id))
        else:
            self.fail(entry, ParseFailure(outcome.error_message).message)

    def fail(self, entry: IngestedFile, message: str) -> None:
        self._transition(entry, FileStatus.ERROR)
        entry.error = message
        log.error(f"{entry.name} failed: {message}")
        self._events.emit(QueueEvent("updated", entry.id))

    def _transition(self, entry: IngestedFile, target: FileStatus) -> None:
        if not can_transition(entry.status, target):
            raise InvalidTransitionError(entry.status, target)
        entry.status = target
