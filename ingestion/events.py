"""Observer channel for upload progress and queue changes."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from core.logger import get_logger

log = get_logger("ingestion/events")

E = TypeVar("E")


@dataclass(frozen=True)
class ProgressEvent:
    filename: str
    sent_bytes: int
    total_bytes: int
    percent: int


@dataclass(frozen=True)
class QueueEvent:
    kind: str  # added | removed | updated | revalidated
    file_id: str | None = None


class EventChannel(Generic[E]):
    """
    Synchronous fan-out to subscribed listeners.

    A listener that raises is logged and skipped so one faulty observer
    cannot break the producer.
    """

    def __init__(self) -> None:
        self._listeners: list[Callable[[E], None]] = []

    def subscribe(self, listener: Callable[[E], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: E) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                log.error(f"Event listener failed for {event!r}: {e!r}")

    def __len__(self) -> int:
        return len(self._listeners)
