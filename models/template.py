from __future__ import annotations
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecordType(str, Enum):
    SAVINGS = "savings"
    CURRENT = "current"
    CREDIT_CARD = "credit_card"
    SALARY = "salary"
    FD_RD = "fd_rd"
    LOAN = "loan"

    @property
    def label(self) -> str:
        return RECORD_TYPE_LABELS[self]


class FileFormat(str, Enum):
    CSV = "csv"
    XLS = "xls"
    XLSX = "xlsx"
    PDF = "pdf"

    @property
    def label(self) -> str:
        return FILE_FORMAT_LABELS[self]


RECORD_TYPE_LABELS: dict[RecordType, str] = {
    RecordType.SAVINGS: "Savings Account",
    RecordType.CURRENT: "Current Account",
    RecordType.CREDIT_CARD: "Credit Card",
    RecordType.SALARY: "Salary Account",
    RecordType.FD_RD: "FD/RD Account",
    RecordType.LOAN: "Loan Account",
}

FILE_FORMAT_LABELS: dict[FileFormat, str] = {
    FileFormat.XLS: "Excel (.xls)",
    FileFormat.XLSX: "Excel (.xlsx)",
    FileFormat.CSV: "CSV",
    FileFormat.PDF: "PDF",
}


def _normalize_code(value) -> str:
    if value is None:
        raise ValueError("value is required")
    if isinstance(value, Enum):
        return value.value
    s = str(value).strip().lower()
    if not s:
        raise ValueError("value must not be blank")
    return s


class Template(BaseModel):
    """One (institution, record type, file format) combination the parsing service accepts."""

    id: int
    institution_code: str
    institution_name: str
    record_type: RecordType
    file_format: FileFormat
    label: str = Field(default="")
    description: str | None = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("institution_code", "record_type", "file_format", mode="before")
    @classmethod
    def _normalize_codes(cls, value):
        return _normalize_code(value)

    @field_validator("description", mode="before")
    @classmethod
    def _strip_description(cls, value):
        if value is None:
            return None
        s = str(value).strip()
        return s or None

    @property
    def key(self) -> tuple[str, RecordType, FileFormat]:
        return (self.institution_code, self.record_type, self.file_format)


class Institution(BaseModel):
    code: str
    name: str
    logo_url: str | None = None

    model_config = ConfigDict(frozen=True)


class TemplatePayload(BaseModel):
    """A template entry as served inside an institution group."""

    id: int
    account_type: RecordType
    file_format: FileFormat
    description: str | None = None
    display_name: str | None = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("account_type", "file_format", mode="before")
    @classmethod
    def _normalize_codes(cls, value):
        return _normalize_code(value)

    @property
    def label(self) -> str:
        if self.display_name:
            return self.display_name
        return f"{self.account_type.value.replace('_', ' ').title()} ({self.file_format.value.upper()})"


class InstitutionGroup(BaseModel):
    """Catalog fetch payload: one issuing institution with its templates."""

    institution_code: str = Field(alias="bank_code")
    institution_name: str = Field(alias="bank_name")
    logo_url: str | None = None
    templates: list[TemplatePayload] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("institution_code", mode="before")
    @classmethod
    def _normalize_institution_code(cls, value):
        return _normalize_code(value)

    @field_validator("institution_name", mode="before")
    @classmethod
    def _strip_name(cls, value):
        s = str(value).strip() if value is not None else ""
        if not s:
            raise ValueError("bank_name is required")
        return s

    @field_validator("templates", mode="before")
    @classmethod
    def _ensure_list(cls, value):
        if value is None:
            return []
        return value

    def to_templates(self) -> list[Template]:
        return [
            Template(
                id=t.id,
                institution_code=self.institution_code,
                institution_name=self.institution_name,
                record_type=t.account_type,
                file_format=t.file_format,
                label=t.label,
                description=t.description,
            )
            for t in self.templates
        ]
