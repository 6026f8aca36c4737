import pytest

from ingestion import IngestOrchestrator, IntakeQueue, StatusPoller, UploadTransport
from models.intake import FileStatus

from conftest import make_file, no_sleep


def build(catalog, client, queue=None, template_id=1, transport=None):
    queue = queue if queue is not None else IntakeQueue()
    template = catalog.get(template_id) if template_id else None
    return IngestOrchestrator(
        queue=queue,
        transport=transport or UploadTransport(client),
        poller=StatusPoller(client, sleep=no_sleep),
        active_template=lambda: template,
    )


def track_statuses(queue):
    history = {}

    def on_event(event):
        if event.file_id is None:
            return
        for entry in queue:
            if entry.id == event.file_id:
                seen = history.setdefault(entry.name, [])
                if not seen or seen[-1] != entry.status:
                    seen.append(entry.status)

    queue.subscribe(on_event)
    return history


@pytest.mark.asyncio
async def test_upload_one_parsed_after_single_poll(api, client, catalog):
    api.uploads["data.csv"] = (201, {"id": 42, "status": "pending"})
    api.statuses["42"] = [{"status": "parsed", "transaction_count": 17}]
    orchestrator = build(catalog, client)
    orchestrator.queue.add_files([make_file("data.csv")], catalog.get(1))

    entry = await orchestrator.upload_one(0)

    assert entry.status == FileStatus.SUCCESS
    assert entry.result_count == 17
    assert entry.job_id == "42"
    assert entry.progress == 100
    assert api.status_calls["42"] == 1


@pytest.mark.asyncio
async def test_upload_all_isolates_failures(api, client, catalog):
    api.uploads["a.csv"] = (201, {"id": 1})
    api.uploads["b.csv"] = (500, {"error": "too large"})
    api.uploads["c.csv"] = (201, {"id": 3})
    api.statuses["1"] = [{"status": "parsed", "transaction_count": 5}]
    api.statuses["3"] = [{"status": "pending"}, {"status": "parsed", "transaction_count": 7}]
    orchestrator = build(catalog, client)
    queue = orchestrator.queue
    queue.add_files([make_file("a.csv"), make_file("b.csv"), make_file("c.csv")], catalog.get(1))
    history = track_statuses(queue)

    summary = await orchestrator.upload_all()

    a, b, c = queue.entries
    assert (a.status, a.result_count) == (FileStatus.SUCCESS, 5)
    assert (b.status, b.error, b.job_id) == (FileStatus.ERROR, "too large", None)
    assert (c.status, c.result_count) == (FileStatus.SUCCESS, 7)
    assert summary.success_count == 2
    assert summary.failed_count == 1
    assert summary.total_results == 12
    assert summary.is_busy is False

    # strictly one file at a time
    assert api.events == ["upload:a.csv", "status:1", "upload:b.csv", "upload:c.csv", "status:3", "status:3"]
    assert history["a.csv"] == [FileStatus.UPLOADING, FileStatus.PROCESSING, FileStatus.SUCCESS]
    assert history["b.csv"] == [FileStatus.UPLOADING, FileStatus.ERROR]


@pytest.mark.asyncio
async def test_poll_timeout_and_parse_failure_are_recorded(api, client, catalog):
    api.uploads["slow.csv"] = (201, {"id": 8})
    api.uploads["bad.csv"] = (201, {"id": 9})
    api.statuses["8"] = [{"status": "processing"}]
    api.statuses["9"] = [{"status": "failed", "error_message": "Unknown columns"}]
    orchestrator = build(catalog, client)
    orchestrator.queue.add_files([make_file("slow.csv"), make_file("bad.csv")], catalog.get(1))

    await orchestrator.upload_all()

    slow, bad = orchestrator.queue.entries
    assert (slow.status, slow.error, slow.job_id) == (FileStatus.ERROR, "Parsing timed out", "8")
    assert api.status_calls["8"] == 60
    assert (bad.status, bad.error) == (FileStatus.ERROR, "Unknown columns")


@pytest.mark.asyncio
async def test_retry_then_upload_again(api, client, catalog):
    api.uploads["a.csv"] = (500, {"error": "try later"})
    orchestrator = build(catalog, client)
    queue = orchestrator.queue
    queue.add_files([make_file("a.csv")], catalog.get(1))

    await orchestrator.upload_one(0)
    assert queue.get(0).error == "try later"

    api.uploads["a.csv"] = (201, {"id": 11})
    api.statuses["11"] = [{"status": "parsed", "transaction_count": 2}]
    assert queue.retry(0)
    entry = await orchestrator.upload_one(0)
    assert entry.status == FileStatus.SUCCESS
    assert entry.error is None


@pytest.mark.asyncio
async def test_upload_one_noops(api, client, catalog):
    orchestrator = build(catalog, client)
    assert await orchestrator.upload_one(0) is None

    orchestrator.queue.add_files([make_file("a.csv")], catalog.get(1))
    no_template = build(catalog, client, queue=orchestrator.queue, template_id=None)
    assert await no_template.upload_one(0) is None
    assert orchestrator.queue.get(0).status == FileStatus.IDLE

    api.statuses["1"] = [{"status": "parsed", "transaction_count": 1}]
    await orchestrator.upload_one(0)
    assert await orchestrator.upload_one(0) is None
    assert len(api.upload_requests) == 1


@pytest.mark.asyncio
async def test_file_removed_during_batch_is_skipped(api, client, catalog):
    api.uploads["a.csv"] = (201, {"id": 1})
    api.statuses["1"] = [{"status": "parsed", "transaction_count": 1}]
    orchestrator = build(catalog, client)
    queue = orchestrator.queue
    queue.add_files([make_file("a.csv"), make_file("b.csv")], catalog.get(1))

    def remove_b(event):
        if event.kind == "updated" and queue.get(0).status == FileStatus.UPLOADING and len(queue) == 2:
            queue.remove_file(1)

    queue.subscribe(remove_b)
    await orchestrator.upload_all()

    assert [e.name for e in queue] == ["a.csv"]
    assert api.events == ["upload:a.csv", "status:1"]


class ExplodingTransport:
    async def upload(self, file, template_id, on_progress=None):
        raise RuntimeError("boom")


@pytest.mark.asyncio
async def test_unexpected_errors_become_file_errors(client, catalog):
    orchestrator = build(catalog, client, transport=ExplodingTransport())
    orchestrator.queue.add_files([make_file("a.csv"), make_file("b.csv")], catalog.get(1))

    summary = await orchestrator.upload_all()

    assert summary.failed_count == 2
    assert all(e.error == "Upload failed" for e in orchestrator.queue)
