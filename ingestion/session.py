"""Per-screen intake state: catalog, selection and queue, plus the actions on them."""
from __future__ import annotations
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Iterable, Optional

import httpx

from core.config import config
from core.logger import get_logger
from models.intake import IngestedFile, IntakeSummary, SourceFile
from models.template import Template
from .catalog import TemplateCatalog, fetch_catalog, load_catalog_dir
from .intake import AddFilesResult, IntakeQueue
from .orchestrator import IngestOrchestrator
from .poller import StatusPoller
from .selection import SelectionCascade, SelectionState
from .transport import UploadTransport

log = get_logger("ingestion/session")


def create_client(base_url: str | None = None, **kwargs) -> httpx.AsyncClient:
    """Async HTTP client for the ingestion service."""
    return httpx.AsyncClient(
        base_url=base_url or config.api_base_url,
        timeout=kwargs.pop("timeout", config.request_timeout_seconds),
        **kwargs,
    )


@asynccontextmanager
async def _client_scope(client: Optional[httpx.AsyncClient]) -> AsyncIterator[httpx.AsyncClient]:
    if client is not None:
        yield client
        return
    async with create_client() as owned:
        yield owned


async def load_catalog(client: Optional[httpx.AsyncClient] = None) -> TemplateCatalog:
    """Local YAML templates when TEMPLATES_DIR is set, else the service listing."""
    if config.templates_dir is not None:
        return load_catalog_dir(config.templates_dir)
    async with _client_scope(client) as http:
        return await fetch_catalog(http)


class IntakeSession:
    """
    Owns everything one upload screen needs.

    The session holds plain state only. HTTP clients are supplied per
    action, or opened and closed around it, so a session can outlive any
    single event loop.
    """

    def __init__(
        self,
        catalog: TemplateCatalog,
        queue: IntakeQueue | None = None,
        selection_state: SelectionState | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.catalog = catalog
        self.selection = SelectionCascade(catalog, selection_state)
        self.queue = queue if queue is not None else IntakeQueue()
        self._sleep = sleep
        self.selection.subscribe(self._on_selection_change)

    @classmethod
    async def open(cls, client: Optional[httpx.AsyncClient] = None) -> "IntakeSession":
        return cls(await load_catalog(client))

    def active_template(self) -> Optional[Template]:
        return self.selection.active_template()

    def add_files(self, files: Iterable[SourceFile]) -> AddFilesResult:
        return self.queue.add_files(files, self.active_template())

    def remove_file(self, index: int) -> bool:
        return self.queue.remove_file(index)

    def retry(self, index: int) -> bool:
        return self.queue.retry(index)

    def summary(self) -> IntakeSummary:
        return self.queue.summary()

    def orchestrator(self, client: httpx.AsyncClient) -> IngestOrchestrator:
        return IngestOrchestrator(
            queue=self.queue,
            transport=UploadTransport(client),
            poller=StatusPoller(client, sleep=self._sleep),
            active_template=self.active_template,
        )

    async def upload_one(self, index: int, client: Optional[httpx.AsyncClient] = None) -> Optional[IngestedFile]:
        async with _client_scope(client) as http:
            return await self.orchestrator(http).upload_one(index)

    async def upload_all(self, client: Optional[httpx.AsyncClient] = None) -> IntakeSummary:
        async with _client_scope(client) as http:
            return await self.orchestrator(http).upload_all()

    def _on_selection_change(self, state: SelectionState) -> None:
        log.debug(f"Selection changed: {state.model_dump(mode='json')}")
        self.queue.revalidate(self.active_template())
