"""Bounded status polling for a submitted statement."""
from __future__ import annotations
import asyncio
from typing import Awaitable, Callable

import httpx
from pydantic import ValidationError as PydanticValidationError

from core.config import config
from core.logger import get_logger
from models.intake import StatementStatus, TerminalOutcome
from .errors import PollTimeoutError

log = get_logger("ingestion/poller")

PARSED = "parsed"
FAILED = "failed"


class StatusPoller:
    """
    Polls the status endpoint at a fixed interval until the job is parsed
    or failed, or the attempt budget runs out.

    A failed status request (network error, non-2xx, unreadable body)
    uses up one attempt and polling continues. Control returns to the
    event loop during every wait between attempts.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        path: str | None = None,
        interval: float | None = None,
        max_attempts: int | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._client = client
        self._path = (path or config.statements_path).rstrip("/")
        self.interval = config.poll_interval_seconds if interval is None else interval
        self.max_attempts = config.poll_max_attempts if max_attempts is None else max_attempts
        self._sleep = sleep

    async def fetch_status(self, job_id: str) -> StatementStatus:
        response = await self._client.get(f"{self._path}/{job_id}", headers={"Accept": "application/json"})
        response.raise_for_status()
        return StatementStatus.model_validate(response.json())

    async def poll(self, job_id: str) -> TerminalOutcome:
        """
        Wait for a job to reach a terminal status.

        Returns:
            TerminalOutcome: success with the transaction count, or error
            with the server's message

        Raises:
            PollTimeoutError: No terminal status within max_attempts
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                status = await self.fetch_status(job_id)
            except (httpx.HTTPError, ValueError, PydanticValidationError) as e:
                log.warning(f"Status check {attempt}/{self.max_attempts} for job {job_id} failed: {e!r}")
            else:
                if status.status is None:
                    log.warning(f"Status check {attempt}/{self.max_attempts} for job {job_id} had no readable status")
                elif status.status == PARSED:
                    log.info(f"Job {job_id} parsed after {attempt} check(s)")
                    return TerminalOutcome.parsed(status.transaction_count)
                elif status.status == FAILED:
                    log.warning(f"Job {job_id} failed: {status.error_message}")
                    return TerminalOutcome.failed(status.error_message or "Parsing failed")
                else:
                    log.debug(f"Job {job_id} still {status.status!r} ({attempt}/{self.max_attempts})")

            if attempt < self.max_attempts:
                await self._sleep(self.interval)

        log.error(f"Job {job_id} did not finish within {self.max_attempts} checks")
        raise PollTimeoutError(job_id, self.max_attempts)

    def schedule(self, job_id: str) -> asyncio.Task:
        """Run poll() as a task on the running loop."""
        return asyncio.get_running_loop().create_task(self.poll(job_id), name=f"poll-{job_id}")
