import asyncio
import json

import httpx
import pytest

from tinyshrink.core.client import ShrinkClient
from tinyshrink.domain.errors import (
    Cancelled, ClientError, ClientErrorKind, InvalidCredentials, InvalidOptions,
)
from tinyshrink.domain.events.api_events import ApiCallInitiated, ApiCallSucceeded
from tinyshrink.domain.models.options import ResizeMethod, ResizeOptions
from tinyshrink.domain.models.outcome import FatalFailure
from tinyshrink.infrastructure.auth.credentials import CredentialHolder
from tinyshrink.infrastructure.config.settings import ClientConfig
from tinyshrink.infrastructure.http.transport import HttpxTransport

from conftest import LOCATOR, TEST_API_KEY, upload_success


@pytest.mark.asyncio
async def test_source_from_buffer_posts_raw_bytes(make_client, client_config):
    client, transport = make_client([upload_success()])

    await client.source_from_buffer(b"raw-image")

    request = transport.requests[0]
    assert request.method == "POST"
    assert request.url == client_config.endpoint
    assert request.content == b"raw-image"
    assert request.endpoint == "shrink"


@pytest.mark.asyncio
async def test_empty_buffer_is_rejected(make_client):
    client, transport = make_client([])
    with pytest.raises(InvalidOptions):
        await client.source_from_buffer(b"")
    assert transport.call_count == 0


@pytest.mark.asyncio
async def test_oversized_buffer_is_rejected_locally(make_client, client_config):
    config = client_config.with_overrides(max_upload_bytes=8)
    client, transport = make_client([], config=config)

    with pytest.raises(ClientError) as excinfo:
        await client.source_from_buffer(b"123456789")
    assert excinfo.value.sub_kind is ClientErrorKind.PAYLOAD_TOO_LARGE
    assert transport.call_count == 0


@pytest.mark.asyncio
async def test_source_from_url_sends_json(make_client):
    client, transport = make_client([upload_success()])

    source = await client.source_from_url("https://example.com/cat.png")

    assert source.locator == LOCATOR
    assert transport.requests[0].json == {"source": {"url": "https://example.com/cat.png"}}


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["ftp://example.com/a.png", "example.com/a.png", "https://"])
async def test_source_from_url_rejects_bad_urls(make_client, url):
    client, transport = make_client([])
    with pytest.raises(InvalidOptions):
        await client.source_from_url(url)
    assert transport.call_count == 0


@pytest.mark.asyncio
async def test_source_from_file(make_client, image_file):
    client, transport = make_client([upload_success()])

    await client.source_from_file(str(image_file))

    assert transport.requests[0].content == image_file.read_bytes()


@pytest.mark.asyncio
async def test_source_from_missing_file(make_client, tmp_path):
    client, _ = make_client([])
    with pytest.raises(ClientError) as excinfo:
        await client.source_from_file(str(tmp_path / "nope.png"))
    assert excinfo.value.sub_kind is ClientErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_source_from_unsupported_file(make_client, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello")
    client, _ = make_client([])
    with pytest.raises(ClientError) as excinfo:
        await client.source_from_file(str(path))
    assert excinfo.value.sub_kind is ClientErrorKind.UNSUPPORTED_MEDIA


@pytest.mark.asyncio
async def test_validate_key_accepts_input_missing(make_client):
    client, transport = make_client([
        FatalFailure(ClientError("Input missing", sub_kind=ClientErrorKind.BAD_REQUEST, status=400, error_type="InputMissing")),
    ])

    assert await client.validate_key() is True
    assert transport.requests[0].content is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        ClientError("Method not allowed", sub_kind=ClientErrorKind.BAD_REQUEST, status=405),
        ClientError("Bad JSON", sub_kind=ClientErrorKind.BAD_REQUEST, status=400, error_type="BadRequest"),
        ClientError("No input", sub_kind=ClientErrorKind.BAD_REQUEST, status=400),
    ],
)
async def test_validate_key_rejects_other_bad_requests(make_client, error):
    """Only a 400 classified as input missing proves the key is valid."""
    client, _ = make_client([FatalFailure(error)])
    with pytest.raises(ClientError) as excinfo:
        await client.validate_key()
    assert excinfo.value is error


@pytest.mark.asyncio
async def test_validate_key_raises_when_rejected(make_client):
    client, _ = make_client([
        FatalFailure(ClientError("Credentials are invalid", sub_kind=ClientErrorKind.UNAUTHORIZED, status=401)),
    ])
    with pytest.raises(ClientError) as excinfo:
        await client.validate_key()
    assert excinfo.value.sub_kind is ClientErrorKind.UNAUTHORIZED


@pytest.mark.asyncio
async def test_cancelled_upload(make_client):
    client, transport = make_client([upload_success()])
    cancel = asyncio.Event()
    cancel.set()

    with pytest.raises(Cancelled):
        await client.source_from_buffer(b"raw-image", cancel_event=cancel)
    assert transport.call_count == 0


@pytest.mark.asyncio
async def test_events_are_forwarded(make_client):
    events = []
    client, _ = make_client([upload_success(count=4)], event_listener=events.append)

    await client.source_from_buffer(b"raw-image")

    assert [type(e) for e in events] == [ApiCallInitiated, ApiCallSucceeded]
    assert client.usage_counter == 4


@pytest.mark.asyncio
async def test_context_manager_closes_transport(make_client):
    client, transport = make_client([])
    async with client:
        pass
    assert transport.closed


def test_invalid_api_key_fails_at_construction():
    with pytest.raises(InvalidCredentials):
        ShrinkClient(ClientConfig(api_key="has space"))


@pytest.mark.asyncio
async def test_full_stack_over_mock_http(client_config, roomy_rate_limiter, recorded_sleeps):
    """Upload and resize through the real httpx transport, with one 503 retried."""
    responses = [
        httpx.Response(201, headers={"Location": LOCATOR, "Compression-Count": "12"}),
        httpx.Response(503, json={"error": "ServiceUnavailable", "message": "Try again"}),
        httpx.Response(
            200,
            content=b"resized",
            headers={"Content-Type": "image/png", "Compression-Count": "13", "Image-Width": "300", "Image-Height": "150"},
        ),
    ]
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return responses.pop(0)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    transport = HttpxTransport(CredentialHolder(TEST_API_KEY), http_client=http_client)
    async with ShrinkClient(client_config, transport=transport, rate_limiter=roomy_rate_limiter, sleep=recorded_sleeps) as client:
        source = await client.source_from_buffer(b"raw-image")
        result = await source.resize(ResizeOptions(ResizeMethod.SCALE, width=300))

    assert result.data == b"resized"
    assert result.dimensions == (300, 150)
    assert client.usage_counter == 13
    assert recorded_sleeps.delays == pytest.approx([client_config.retry.base_delay])
    assert [str(r.url) for r in seen] == [client_config.endpoint, LOCATOR, LOCATOR]
    assert json.loads(seen[2].content) == {"resize": {"method": "scale", "width": 300}}
    await http_client.aclose()
