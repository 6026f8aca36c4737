"""Three-step template selection: institution -> record type -> file format."""
from __future__ import annotations
from typing import Callable, Optional

from pydantic import BaseModel

from core.logger import get_logger
from models.template import FileFormat, Institution, RecordType, Template
from .catalog import TemplateCatalog
from .events import EventChannel

log = get_logger("ingestion/selection")


class SelectionState(BaseModel):
    institution_code: Optional[str] = None
    record_type: Optional[RecordType] = None
    file_format: Optional[FileFormat] = None

    @property
    def is_complete(self) -> bool:
        return None not in (self.institution_code, self.record_type, self.file_format)


def _coerce(enum_cls, value):
    if value is None:
        return None
    try:
        return enum_cls(str(value.value if isinstance(value, enum_cls) else value).strip().lower())
    except ValueError:
        return None


class SelectionCascade:
    """
    Narrows a catalog down to a single active template.

    Changing an earlier step clears every later step. Selections that are
    not offered under the current earlier steps are ignored. Each effective
    change is announced to subscribers with the resulting state.
    """

    def __init__(self, catalog: TemplateCatalog, state: SelectionState | None = None):
        self.catalog = catalog
        self.state = state or SelectionState()
        self._changes: EventChannel[SelectionState] = EventChannel()

    def subscribe(self, listener: Callable[[SelectionState], None]) -> Callable[[], None]:
        return self._changes.subscribe(listener)

    def available_institutions(self) -> list[Institution]:
        return self.catalog.institutions()

    def available_record_types(self) -> list[RecordType]:
        if self.state.institution_code is None:
            return []
        return self.catalog.record_types(self.state.institution_code)

    def available_formats(self) -> list[FileFormat]:
        if self.state.institution_code is None or self.state.record_type is None:
            return []
        return self.catalog.formats(self.state.institution_code, self.state.record_type)

    def select_institution(self, code: str) -> None:
        code = (code or "").strip().lower()
        if self.catalog.institution(code) is None:
            log.warning(f"Ignoring unknown institution: {code!r}")
            return
        self.state.institution_code = code
        self.state.record_type = None
        self.state.file_format = None
        self._changed()

    def select_record_type(self, record_type: RecordType | str) -> None:
        chosen = _coerce(RecordType, record_type)
        if chosen is None or chosen not in self.available_record_types():
            log.debug(f"Record type {record_type!r} not offered for {self.state.institution_code!r}")
            return
        self.state.record_type = chosen
        self.state.file_format = None

        formats = self.available_formats()
        if len(formats) == 1:
            self.state.file_format = formats[0]
        self._changed()

    def select_format(self, file_format: FileFormat | str) -> None:
        chosen = _coerce(FileFormat, file_format)
        if chosen is None or chosen not in self.available_formats():
            log.debug(f"Format {file_format!r} not offered for the current selection")
            return
        self.state.file_format = chosen
        self._changed()

    def reset(self) -> None:
        self.state.institution_code = None
        self.state.record_type = None
        self.state.file_format = None
        self._changed()

    @property
    def is_complete(self) -> bool:
        return self.state.is_complete

    def active_template(self) -> Optional[Template]:
        if not self.state.is_complete:
            return None
        return self.catalog.find(
            self.state.institution_code,
            self.state.record_type,
            self.state.file_format,
        )

    def _changed(self) -> None:
        self._changes.emit(self.state.model_copy())
