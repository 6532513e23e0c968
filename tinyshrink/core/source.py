"""Resource handle for an image held by the remote service.

A Source is created from a successful upload and remembers the locator the
service returned. Every chained operation is a request against that
locator, executed through the shared ApiRetryService.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from tinyshrink.core.result import Result
from tinyshrink.domain.interfaces.filesystem import FileSystem
from tinyshrink.domain.models.common import EndpointName, FilePath, Locator, UsageCount
from tinyshrink.domain.models.options import (
    ConvertOptions, PreserveOptions, ResizeOptions, StoreOptions,
)
from tinyshrink.domain.models.outcome import FatalFailure, Success
from tinyshrink.domain.models.request import ApiRequest
from tinyshrink.infrastructure.resilience.api_retry import ApiRetryService

logger = logging.getLogger(__name__)


class Source:
    """Handle on a server-side chained resource.

    The locator never changes after construction, so one Source may be
    used by several concurrent tasks. Only `usage_counter` is refreshed,
    after each successful call. No ordering is promised between concurrent
    calls; the service owns consistency of the resource itself.
    """

    def __init__(
        self,
        locator: Locator,
        retry_service: ApiRetryService,
        usage_counter: Optional[UsageCount] = None,
        file_system: Optional[FileSystem] = None,
    ):
        self._locator = Locator(locator)
        self._retry_service = retry_service
        self._file_system = file_system
        self.usage_counter = usage_counter

    @classmethod
    def from_success(
        cls,
        outcome: Success,
        retry_service: ApiRetryService,
        file_system: Optional[FileSystem] = None,
    ) -> "Source":
        """Builds a Source from an upload response.

        Raises:
            MissingLocator: If the response carries no Location header.
        """
        return cls(
            locator=outcome.locator(),
            retry_service=retry_service,
            usage_counter=outcome.usage_counter,
            file_system=file_system,
        )

    @property
    def locator(self) -> Locator:
        return self._locator

    async def _request(
        self,
        endpoint: str,
        method: str = "POST",
        payload: Optional[Dict[str, Any]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Result:
        locator = self._locator
        outcome = await self._retry_service.run(
            lambda: ApiRequest(method=method, url=locator, json=payload, endpoint=EndpointName(endpoint)),
            cancel_event=cancel_event,
        )
        if isinstance(outcome, FatalFailure):
            raise outcome.error
        if outcome.usage_counter is not None:
            self.usage_counter = outcome.usage_counter
        return Result.from_success(outcome, file_system=self._file_system)

    async def resize(self, options: ResizeOptions, cancel_event: Optional[asyncio.Event] = None) -> Result:
        """Resizes the image.

        Raises:
            InvalidOptions: If the dimensions fail validation (no request is sent).
            ShrinkError: Any terminal failure of the request.
        """
        payload = options.to_payload()
        logger.info(f"Resizing image at location: {self._locator}")
        return await self._request("resize", payload=payload, cancel_event=cancel_event)

    async def convert(self, options: ConvertOptions, cancel_event: Optional[asyncio.Event] = None) -> Result:
        payload = options.to_payload()
        logger.info(f"Converting image format at location: {self._locator}")
        return await self._request("convert", payload=payload, cancel_event=cancel_event)

    async def preserve(self, options: PreserveOptions, cancel_event: Optional[asyncio.Event] = None) -> Result:
        """Compresses while keeping the selected metadata."""
        payload = options.to_payload()
        logger.info(f"Preserving metadata for image at location: {self._locator}")
        return await self._request("preserve", payload=payload, cancel_event=cancel_event)

    async def store(self, options: StoreOptions, cancel_event: Optional[asyncio.Event] = None) -> Result:
        """Asks the service to write the image to cloud storage.

        The returned Result's `location` is the stored object's URL.
        """
        payload = options.to_payload()
        logger.info(f"Storing image to cloud storage from location: {self._locator}")
        return await self._request("store", payload=payload, cancel_event=cancel_event)

    async def fetch(self, cancel_event: Optional[asyncio.Event] = None) -> Result:
        """Downloads the compressed image."""
        logger.info(f"Downloading image data from location: {self._locator}")
        return await self._request("fetch", method="GET", cancel_event=cancel_event)

    async def to_buffer(self) -> bytes:
        return (await self.fetch()).data

    async def to_file(self, path: FilePath) -> Result:
        result = await self.fetch()
        await result.to_file(path)
        return result

    def __repr__(self) -> str:
        return f"Source(locator={self._locator!r}, usage_counter={self.usage_counter!r})"
