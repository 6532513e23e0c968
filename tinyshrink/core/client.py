"""The public client: entry operations that upload an image and return a Source.

Acts as the composition point for the credential holder, transport,
rate limiter, backoff policy and retry service. Everything is built from
the explicitly passed ClientConfig; there is no module-level state.
"""

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional
from urllib.parse import urlparse

from tinyshrink.core.source import Source
from tinyshrink.domain.errors import ClientError, ClientErrorKind, InvalidOptions
from tinyshrink.domain.events.api_events import ApiCallSucceeded, DomainEvent
from tinyshrink.domain.interfaces.filesystem import FileSystem
from tinyshrink.domain.interfaces.transport import Transport
from tinyshrink.domain.models.common import EndpointName, FilePath, UsageCount
from tinyshrink.domain.models.outcome import FatalFailure
from tinyshrink.domain.models.request import ApiRequest
from tinyshrink.infrastructure.auth.credentials import CredentialHolder
from tinyshrink.infrastructure.config.settings import ClientConfig
from tinyshrink.infrastructure.filesystem.local_fs import LocalFileSystem
from tinyshrink.infrastructure.http.transport import HttpxTransport
from tinyshrink.infrastructure.resilience.api_retry import ApiRetryService, EventListener
from tinyshrink.infrastructure.resilience.backoff import BackoffPolicy
from tinyshrink.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ("png", "jpg", "jpeg", "webp", "avif")


class ShrinkClient:
    """Async client for the image compression service.

    Usage:
        async with ShrinkClient(ClientConfig(api_key="...")) as client:
            source = await client.source_from_file("input.png")
            result = await source.resize(ResizeOptions(ResizeMethod.FIT, 300, 200))
            await result.to_file("output.png")
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[Transport] = None,
        file_system: Optional[FileSystem] = None,
        event_listener: Optional[EventListener] = None,
        rate_limiter: Optional[RateLimiter] = None,
        backoff: Optional[BackoffPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initializes the client and its collaborators.

        Args:
            config: Owned configuration; see `load_configuration`.
            transport: Override for the httpx transport (tests).
            file_system: Override for the local file system adapter.
            event_listener: Receives domain events for every attempt.
            rate_limiter: Override for the token bucket built from config.
            backoff: Override for the backoff policy built from config.
            sleep: Async sleep used between retries.

        Raises:
            InvalidCredentials: If the API key is empty or malformed.
        """
        self.config = config
        credentials = CredentialHolder(config.api_key)
        self._transport = transport or HttpxTransport(
            credentials,
            timeout_seconds=config.timeout_seconds,
            app_identifier=config.app_identifier,
        )
        self._file_system = file_system or LocalFileSystem()
        self._event_listener = event_listener
        self.rate_limiter = rate_limiter or RateLimiter.per_minute(
            config.rate_limit.requests_per_minute, config.rate_limit.burst_capacity,
        )
        self.retry_service = ApiRetryService(
            transport=self._transport,
            rate_limiter=self.rate_limiter,
            backoff=backoff or BackoffPolicy.from_config(config.retry),
            max_attempts=config.retry.max_attempts,
            event_listener=self._on_event,
            sleep=sleep,
        )
        self.usage_counter: Optional[UsageCount] = None
        logger.info(f"ShrinkClient initialized for endpoint: {config.endpoint}")

    @classmethod
    def from_api_key(cls, api_key: str, **kwargs) -> "ShrinkClient":
        return cls(ClientConfig(api_key=api_key), **kwargs)

    async def __aenter__(self) -> "ShrinkClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._transport.aclose()

    def _on_event(self, event: DomainEvent) -> None:
        if isinstance(event, ApiCallSucceeded) and event.usage_counter is not None:
            self.usage_counter = UsageCount(event.usage_counter)
        if self._event_listener is not None:
            self._event_listener(event)

    async def _shrink(self, build_request: Callable[[], ApiRequest], cancel_event: Optional[asyncio.Event]) -> Source:
        outcome = await self.retry_service.run(build_request, cancel_event=cancel_event)
        if isinstance(outcome, FatalFailure):
            raise outcome.error
        source = Source.from_success(outcome, self.retry_service, file_system=self._file_system)
        logger.info(f"Upload accepted, locator: {source.locator}")
        return source

    async def source_from_buffer(self, data: bytes, cancel_event: Optional[asyncio.Event] = None) -> Source:
        """Uploads raw image bytes.

        Raises:
            InvalidOptions: If `data` is empty.
            ClientError: PAYLOAD_TOO_LARGE if `data` exceeds the upload limit.
            MissingLocator: If the service accepts the upload without a locator.
        """
        if not data:
            raise InvalidOptions("Image data is empty.")
        if len(data) > self.config.max_upload_bytes:
            raise ClientError(
                f"File too large: {len(data)} bytes (max: {self.config.max_upload_bytes} bytes)",
                sub_kind=ClientErrorKind.PAYLOAD_TOO_LARGE,
            )
        logger.info(f"Creating source from buffer of {len(data)} bytes")
        payload = bytes(data)
        endpoint = self.config.endpoint
        return await self._shrink(
            lambda: ApiRequest(method="POST", url=endpoint, content=payload, endpoint=EndpointName("shrink")),
            cancel_event,
        )

    async def source_from_url(self, url: str, cancel_event: Optional[asyncio.Event] = None) -> Source:
        """Asks the service to fetch and compress an image from a public URL."""
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidOptions(f"Not an absolute http(s) URL: {url!r}")
        logger.info(f"Creating source from URL: {url}")
        endpoint = self.config.endpoint
        body = {"source": {"url": url}}
        return await self._shrink(
            lambda: ApiRequest(method="POST", url=endpoint, json=body, endpoint=EndpointName("shrink")),
            cancel_event,
        )

    async def source_from_file(self, path: FilePath, cancel_event: Optional[asyncio.Event] = None) -> Source:
        """Reads a local image, validates it, and uploads it."""
        file_path = FilePath(str(path))
        logger.info(f"Creating source from file: {file_path}")
        if not await self._file_system.file_exists(file_path):
            raise ClientError(f"File not found: {file_path}", sub_kind=ClientErrorKind.NOT_FOUND)

        extension = Path(file_path).suffix.lstrip(".").lower()
        if extension not in SUPPORTED_EXTENSIONS:
            raise ClientError(
                f"Unsupported file format: {extension or 'unknown'}",
                sub_kind=ClientErrorKind.UNSUPPORTED_MEDIA,
            )

        size = await self._file_system.file_size(file_path)
        if size > self.config.max_upload_bytes:
            raise ClientError(
                f"File too large: {size} bytes (max: {self.config.max_upload_bytes} bytes)",
                sub_kind=ClientErrorKind.PAYLOAD_TOO_LARGE,
            )
        data = await self._file_system.read_bytes(file_path)
        return await self.source_from_buffer(data, cancel_event=cancel_event)

    async def validate_key(self) -> bool:
        """Checks the API key with an empty upload.

        The service answers an empty upload from a valid key with a 400
        classified as input missing; a rejected key yields 401. Any other
        failure, including other 4xx responses, is raised.

        Raises:
            ClientError: UNAUTHORIZED if the key is rejected.
            ShrinkError: Any other terminal failure.
        """
        endpoint = self.config.endpoint
        outcome = await self.retry_service.run(
            lambda: ApiRequest(method="POST", url=endpoint, endpoint=EndpointName("validate")),
        )
        if isinstance(outcome, FatalFailure):
            error = outcome.error
            if (
                isinstance(error, ClientError)
                and error.status == 400
                and (error.error_type or "").replace(" ", "").lower() == "inputmissing"
            ):
                logger.info("API key accepted.")
                return True
            raise error
        return True
