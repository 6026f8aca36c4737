"""
Template catalog: the registry of (institution, record type, file format)
combinations the parsing service accepts.

The catalog is built either from the service's template listing or from a
directory of local YAML definitions, one file per institution.
"""
from __future__ import annotations
from pathlib import Path
from typing import Iterable, Iterator, Optional

import httpx
import yaml
from pydantic import ValidationError as PydanticValidationError

from core.config import config
from core.logger import get_logger
from models.template import FileFormat, Institution, InstitutionGroup, RecordType, Template
from .errors import CatalogError

log = get_logger("ingestion/catalog")


class TemplateCatalog:
    """Immutable lookup over a set of templates with unique (institution, type, format) keys."""

    def __init__(self, templates: Iterable[Template], institutions: Iterable[Institution] = ()):
        self._templates: list[Template] = []
        self._by_key: dict[tuple[str, RecordType, FileFormat], Template] = {}
        self._by_id: dict[int, Template] = {}
        self._institutions: dict[str, Institution] = {i.code: i for i in institutions}

        for template in templates:
            if template.key in self._by_key:
                raise CatalogError(
                    f"Duplicate template for {template.institution_code}/"
                    f"{template.record_type.value}/{template.file_format.value}"
                )
            if template.id in self._by_id:
                raise CatalogError(f"Duplicate template id: {template.id}")
            self._templates.append(template)
            self._by_key[template.key] = template
            self._by_id[template.id] = template
            self._institutions.setdefault(
                template.institution_code,
                Institution(code=template.institution_code, name=template.institution_name),
            )

    @classmethod
    def from_groups(cls, groups: Iterable[InstitutionGroup]) -> "TemplateCatalog":
        groups = list(groups)
        templates = [t for group in groups for t in group.to_templates()]
        institutions = [
            Institution(code=g.institution_code, name=g.institution_name, logo_url=g.logo_url)
            for g in groups
        ]
        return cls(templates, institutions)

    @classmethod
    def from_payload(cls, payload) -> "TemplateCatalog":
        if not isinstance(payload, list):
            raise CatalogError("Template listing must be a list of institution groups")
        try:
            groups = [InstitutionGroup.model_validate(item) for item in payload]
        except PydanticValidationError as e:
            raise CatalogError(f"Invalid template listing: {e.error_count()} error(s)") from e
        return cls.from_groups(groups)

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[Template]:
        return iter(self._templates)

    def institutions(self) -> list[Institution]:
        return list(self._institutions.values())

    def institution(self, code: str) -> Optional[Institution]:
        return self._institutions.get(code)

    def record_types(self, institution_code: str) -> list[RecordType]:
        seen: list[RecordType] = []
        for t in self._templates:
            if t.institution_code == institution_code and t.record_type not in seen:
                seen.append(t.record_type)
        return seen

    def formats(self, institution_code: str, record_type: RecordType) -> list[FileFormat]:
        return [
            t.file_format
            for t in self._templates
            if t.institution_code == institution_code and t.record_type == record_type
        ]

    def find(
        self,
        institution_code: str,
        record_type: RecordType,
        file_format: FileFormat,
    ) -> Optional[Template]:
        return self._by_key.get((institution_code, record_type, file_format))

    def get(self, template_id: int) -> Optional[Template]:
        return self._by_id.get(template_id)


async def fetch_catalog(client: httpx.AsyncClient, path: str | None = None) -> TemplateCatalog:
    """
    Fetch the template listing from the ingestion service.

    Args:
        client: Shared async HTTP client (base URL already configured)
        path: Listing path, defaults to the configured templates path

    Returns:
        TemplateCatalog built from the institution groups

    Raises:
        CatalogError: On network failure, non-2xx status, or an invalid payload
    """
    path = path or config.templates_path
    try:
        response = await client.get(path)
        response.raise_for_status()
        payload = response.json()
    except httpx.HTTPStatusError as e:
        log.error(f"Template listing failed: status={e.response.status_code}")
        raise CatalogError(f"Failed to load bank templates (HTTP {e.response.status_code})") from e
    except httpx.HTTPError as e:
        log.error(f"Template listing request failed: {e!r}")
        raise CatalogError() from e
    except ValueError as e:
        log.error(f"Template listing is not valid JSON: {e}")
        raise CatalogError("Template listing is not valid JSON") from e

    catalog = TemplateCatalog.from_payload(payload)
    log.info(f"Loaded {len(catalog)} template(s) for {len(catalog.institutions())} institution(s)")
    return catalog


def load_catalog_dir(directory: Path | str) -> TemplateCatalog:
    """
    Load templates from every *.yml file in a directory.

    Each file describes one institution:

        bank_name: HDFC Bank
        bank_code: hdfc
        logo: https://...
        templates:
          - account_type: savings
            file_format: csv
            description: ...
            display_order: 1

    Template ids are assigned sequentially in (file name, display_order) order.
    A missing directory yields an empty catalog.
    """
    directory = Path(directory)
    if not directory.exists():
        log.warning(f"Bank templates directory not found: {directory}")
        return TemplateCatalog([])

    groups: list[InstitutionGroup] = []
    next_id = 1
    for file_path in sorted(directory.glob("*.yml")):
        try:
            data = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise CatalogError(f"Invalid YAML in {file_path.name}: {e}") from e

        entries = data.get("templates") or []
        if not entries:
            log.warning(f"No templates defined in {file_path.name}")
            continue

        entries = sorted(entries, key=lambda entry: entry.get("display_order") or 0)
        payload = {
            "bank_code": data.get("bank_code"),
            "bank_name": data.get("bank_name"),
            "logo_url": data.get("logo"),
            "templates": [],
        }
        for entry in entries:
            payload["templates"].append({
                "id": next_id,
                "account_type": entry.get("account_type"),
                "file_format": entry.get("file_format"),
                "description": entry.get("description"),
            })
            next_id += 1

        try:
            groups.append(InstitutionGroup.model_validate(payload))
        except PydanticValidationError as e:
            raise CatalogError(f"Invalid template definition in {file_path.name}: {e.error_count()} error(s)") from e

    catalog = TemplateCatalog.from_groups(groups)
    log.info(f"Seeded {len(catalog)} bank templates from {directory}")
    return catalog
