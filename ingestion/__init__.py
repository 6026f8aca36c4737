"""Statement intake: template selection, upload and status tracking."""
from .catalog import TemplateCatalog, fetch_catalog, load_catalog_dir
from .errors import (
    CatalogError,
    IntakeError,
    InvalidTransitionError,
    ParseFailure,
    PollTimeoutError,
    TransportError,
    ValidationError,
)
from .events import EventChannel, ProgressEvent, QueueEvent
from .intake import AddFilesResult, IntakeQueue
from .orchestrator import IngestOrchestrator
from .poller import StatusPoller
from .selection import SelectionCascade, SelectionState
from .session import IntakeSession, create_client, load_catalog
from .transport import UploadTransport

__all__ = [
    "AddFilesResult",
    "CatalogError",
    "EventChannel",
    "IngestOrchestrator",
    "IntakeError",
    "IntakeQueue",
    "IntakeSession",
    "InvalidTransitionError",
    "ParseFailure",
    "PollTimeoutError",
    "ProgressEvent",
    "QueueEvent",
    "SelectionCascade",
    "SelectionState",
    "StatusPoller",
    "TemplateCatalog",
    "TransportError",
    "UploadTransport",
    "ValidationError",
    "create_client",
    "fetch_catalog",
    "load_catalog",
    "load_catalog_dir",
]
