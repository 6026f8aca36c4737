import httpx
import pytest

from ingestion import TransportError, UploadTransport

from conftest import BASE_URL, make_file


@pytest.mark.asyncio
async def test_upload_returns_job_id_and_reports_progress(api, client):
    api.uploads["data.csv"] = (201, {"id": 42, "status": "pending"})
    transport = UploadTransport(client, chunk_size=1024)
    events = []

    job_id = await transport.upload(make_file("data.csv", b"x" * 5000), 7, on_progress=events.append)

    assert job_id == "42"
    percents = [e.percent for e in events]
    assert percents[0] == 0
    assert percents[-1] == 100
    assert percents == sorted(percents)
    assert len(events) > 2
    assert events[-1].sent_bytes == events[-1].total_bytes

    request = api.upload_requests[0]
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    assert int(request.headers["Content-Length"]) == len(request.content)
    assert b'name="template_id"' in request.content
    assert b"\r\n\r\n7\r\n" in request.content


@pytest.mark.asyncio
async def test_csrf_token_header(api, client):
    await UploadTransport(client, csrf_token="secret").upload(make_file("a.csv"), 1)
    assert api.upload_requests[0].headers["X-CSRF-Token"] == "secret"


@pytest.mark.asyncio
async def test_error_message_comes_from_response_body(api, client):
    api.uploads["big.csv"] = (500, {"error": "too large"})
    with pytest.raises(TransportError) as exc:
        await UploadTransport(client).upload(make_file("big.csv"), 1)
    assert exc.value.message == "too large"
    assert exc.value.status_code == 500


@pytest.mark.asyncio
async def test_unstructured_error_body_gets_generic_message(api, client):
    api.uploads["a.csv"] = (502, b"Bad Gateway")
    with pytest.raises(TransportError) as exc:
        await UploadTransport(client).upload(make_file("a.csv"), 1)
    assert exc.value.message == "Upload failed"


@pytest.mark.asyncio
async def test_success_without_id_is_an_error(api, client):
    api.uploads["a.csv"] = (201, {"status": "pending"})
    with pytest.raises(TransportError):
        await UploadTransport(client).upload(make_file("a.csv"), 1)


@pytest.mark.asyncio
async def test_network_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(TransportError) as exc:
            await UploadTransport(http).upload(make_file("a.csv"), 1)
    assert exc.value.message == "Network error"
