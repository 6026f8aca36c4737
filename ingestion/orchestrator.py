"""
Drives queued files through upload and status polling.

Each file moves idle -> uploading -> processing -> success/error. A failure
on one file is recorded on that file only; batch uploads carry on with the
next file.
"""
from __future__ import annotations
from functools import partial
from typing import Callable, Optional

from core.logger import get_logger
from models.intake import FileStatus, IngestedFile, IntakeSummary
from models.template import Template
from .errors import IntakeError
from .intake import IntakeQueue
from .poller import StatusPoller
from .transport import UploadTransport

log = get_logger("ingestion/orchestrator")


class IngestOrchestrator:
    def __init__(
        self,
        queue: IntakeQueue,
        transport: UploadTransport,
        poller: StatusPoller,
        active_template: Callable[[], Optional[Template]],
    ):
        self.queue = queue
        self.transport = transport
        self.poller = poller
        self._active_template = active_template

    async def upload_one(self, index: int) -> Optional[IngestedFile]:
        """
        Upload the file at `index` and wait for its parse result.

        Does nothing unless the file is idle and a template is selected.

        Returns:
            The entry in its terminal state, or None when nothing was done
        """
        entry = self.queue.get(index)
        template = self._active_template()
        if entry is None or entry.status != FileStatus.IDLE or template is None:
            return None
        await self._run(entry, template)
        return entry

    async def upload_all(self) -> IntakeSummary:
        """
        Upload every idle file one after another, in queue order.

        The next file starts only after the previous one reached a terminal
        state, including its full polling window.
        """
        pending = [e for e in self.queue if e.status == FileStatus.IDLE]
        log.info(f"Starting batch upload of {len(pending)} file(s)")
        for entry in pending:
            template = self._active_template()
            if template is None:
                log.warning("Batch upload stopped: no template selected")
                break
            # Skip entries removed or already started since the snapshot
            if self.queue.index_of(entry) is None or entry.status != FileStatus.IDLE:
                continue
            await self._run(entry, template)

        summary = self.summary()
        log.info(
            f"Batch upload finished: {summary.success_count} succeeded, "
            f"{summary.failed_count} failed, {summary.total_results} transaction(s)"
        )
        return summary

    def summary(self) -> IntakeSummary:
        return self.queue.summary()

    async def _run(self, entry: IngestedFile, template: Template) -> None:
        self.queue.start_upload(entry)
        try:
            job_id = await self.transport.upload(
                entry.source,
                template.id,
                on_progress=partial(self.queue.record_progress, entry),
            )
        except IntakeError as e:
            self.queue.fail(entry, e.message)
            return
        except Exception as e:
            log.exception(f"Unexpected upload error for {entry.name}: {e!r}")
            self.queue.fail(entry, "Upload failed")
            return

        self.queue.mark_processing(entry, job_id)
        try:
            outcome = await self.poller.poll(job_id)
        except IntakeError as e:
            self.queue.fail(entry, e.message)
            return
        except Exception as e:
            log.exception(f"Unexpected polling error for {entry.name}: {e!r}")
            self.queue.fail(entry, "Parsing failed")
            return

        self.queue.complete(entry, outcome)
