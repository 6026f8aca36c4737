"""Multipart upload of one statement file to the ingestion service."""
from __future__ import annotations
from typing import AsyncIterator, Callable, Optional

import httpx

from core.config import config
from core.logger import get_logger
from core.utils import human_size, percent
from models.intake import SourceFile
from .errors import TransportError
from .events import ProgressEvent

log = get_logger("ingestion/transport")

ProgressListener = Callable[[ProgressEvent], None]


class UploadTransport:
    """
    Sends a file and its template id as one multipart POST.

    The multipart body is encoded up front so its size is known, then
    streamed in chunks; a progress event is emitted after each chunk.
    No retries happen here.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        path: str | None = None,
        chunk_size: int | None = None,
        csrf_token: str | None = None,
    ):
        self._client = client
        self._path = path or config.statements_path
        self._chunk_size = chunk_size or config.upload_chunk_size
        self._csrf_token = csrf_token if csrf_token is not None else config.csrf_token

    async def upload(
        self,
        file: SourceFile,
        template_id: int,
        on_progress: Optional[ProgressListener] = None,
    ) -> str:
        """
        Upload a file against a template.

        Args:
            file: Payload to send
            template_id: Template the server should parse the file with
            on_progress: Called with a ProgressEvent as bytes are sent

        Returns:
            Job identifier assigned by the server (the statement id)

        Raises:
            TransportError: Network failure, non-2xx status, or a success
                response without a job identifier
        """
        encoded = self._client.build_request(
            "POST",
            self._path,
            files={"file": (file.name, file.content, file.content_type)},
            data={"template_id": str(template_id)},
        )
        body = encoded.read()
        headers = {
            "Content-Type": encoded.headers["Content-Type"],
            "Content-Length": str(len(body)),
            "Accept": "application/json",
        }
        if self._csrf_token:
            headers["X-CSRF-Token"] = self._csrf_token

        request = self._client.build_request(
            "POST",
            self._path,
            content=self._stream(body, file.name, on_progress),
            headers=headers,
        )

        log.info(f"Uploading {file.name} ({human_size(file.size)}) with template {template_id}")
        try:
            response = await self._client.send(request)
        except httpx.HTTPError as e:
            log.error(f"Upload of {file.name} failed: {e!r}")
            raise TransportError("Network error") from e

        if not response.is_success:
            message = _error_message(response)
            log.error(f"Upload of {file.name} rejected: status={response.status_code} error={message}")
            raise TransportError(message, status_code=response.status_code)

        job_id = _job_id(response)
        log.info(f"Uploaded {file.name}: job_id={job_id}")
        return job_id

    async def _stream(
        self,
        body: bytes,
        filename: str,
        on_progress: Optional[ProgressListener],
    ) -> AsyncIterator[bytes]:
        total = len(body)
        sent = 0
        if on_progress:
            on_progress(ProgressEvent(filename, 0, total, 0))
        for start in range(0, total, self._chunk_size):
            chunk = body[start:start + self._chunk_size]
            yield chunk
            sent += len(chunk)
            if on_progress:
                on_progress(ProgressEvent(filename, sent, total, percent(sent, total)))


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return "Upload failed"
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return "Upload failed"


def _job_id(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError as e:
        raise TransportError("Upload response was not valid JSON", status_code=response.status_code) from e
    job_id = payload.get("id") if isinstance(payload, dict) else None
    if job_id is None or job_id == "":
        raise TransportError("Upload response did not include a statement id", status_code=response.status_code)
    return str(job_id)
