import json
import os
import sys
import tempfile
from pathlib import Path

# Configure the app for tests before any project module reads its settings.
_TMP = Path(tempfile.mkdtemp(prefix="finsync-intake-tests-"))
os.environ["ENVIRONMENT"] = "test"
os.environ["DATA_DIR"] = str(_TMP / "data")
os.environ["LOGS_DIR"] = str(_TMP / "logs")
os.environ.pop("TEMPLATES_DIR", None)
os.environ.pop("CSRF_TOKEN", None)

# Bootstrap to ensure tests can import project modules without installing them.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import httpx
import pytest
import pytest_asyncio

from ingestion import TemplateCatalog
from models.intake import SourceFile

BASE_URL = "http://intake.test"

CATALOG_PAYLOAD = [
    {
        "bank_code": "abc",
        "bank_name": "ABC Bank",
        "logo_url": None,
        "templates": [
            {"id": 1, "account_type": "savings", "file_format": "csv", "description": "ABC savings CSV",
             "display_name": "Savings (CSV)"},
            {"id": 2, "account_type": "savings", "file_format": "xlsx", "description": None,
             "display_name": "Savings (XLSX)"},
            {"id": 3, "account_type": "credit_card", "file_format": "pdf", "description": None,
             "display_name": "Credit Card (PDF)"},
        ],
    },
    {
        "bank_code": "hdfc",
        "bank_name": "HDFC Bank",
        "logo_url": "https://example.com/hdfc.png",
        "templates": [
            {"id": 10, "account_type": "current", "file_format": "xls", "description": None,
             "display_name": "Current (XLS)"},
        ],
    },
]


async def no_sleep(_seconds: float) -> None:
    return None


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeStatementsApi:
    """
    In-memory stand-in for the ingestion service, served via httpx.MockTransport.

    `uploads` maps a file name to the (status_code, json_body) the upload
    endpoint returns for it. `statuses` maps a job id to the list of status
    responses returned on successive checks; the last one repeats. A status
    response may be an Exception instance, raised as a transport failure.
    """

    def __init__(self) -> None:
        self.uploads: dict[str, tuple[int, object]] = {}
        self.statuses: dict[str, list] = {}
        self.upload_requests: list[httpx.Request] = []
        self.status_calls: dict[str, int] = {}
        self.events: list[str] = []
        self.catalog = CATALOG_PAYLOAD

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "GET" and path == "/api/v1/bank_templates":
            return httpx.Response(200, json=self.catalog)

        if request.method == "POST" and path == "/api/v1/statements":
            self.upload_requests.append(request)
            name = _multipart_filename(request.content)
            self.events.append(f"upload:{name}")
            status_code, body = self.uploads.get(name, (201, {"id": 1, "status": "pending"}))
            if isinstance(body, (bytes, str)):
                return httpx.Response(status_code, content=body)
            return httpx.Response(status_code, json=body)

        if request.method == "GET" and path.startswith("/api/v1/statements/"):
            job_id = path.rsplit("/", 1)[-1]
            count = self.status_calls.get(job_id, 0)
            self.status_calls[job_id] = count + 1
            self.events.append(f"status:{job_id}")
            responses = self.statuses.get(job_id, [{"status": "pending"}])
            response = responses[min(count, len(responses) - 1)]
            if isinstance(response, Exception):
                raise response
            if isinstance(response, httpx.Response):
                return response
            return httpx.Response(200, json=response)

        return httpx.Response(404, json={"error": "Not found"})


def _multipart_filename(body: bytes) -> str:
    marker = b'filename="'
    start = body.find(marker)
    if start < 0:
        return ""
    start += len(marker)
    end = body.find(b'"', start)
    return body[start:end].decode("utf-8")


@pytest.fixture
def catalog() -> TemplateCatalog:
    return TemplateCatalog.from_payload(json.loads(json.dumps(CATALOG_PAYLOAD)))


@pytest.fixture
def api() -> FakeStatementsApi:
    return FakeStatementsApi()


@pytest_asyncio.fixture
async def client(api: FakeStatementsApi):
    async with httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(api.handler)) as http:
        yield http


def make_file(name: str, content: bytes = b"date,amount\n2024-01-01,10\n") -> SourceFile:
    return SourceFile(name=name, content=content, content_type="text/csv")
