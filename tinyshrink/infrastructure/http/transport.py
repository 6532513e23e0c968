"""Concrete Transport implementation using httpx.

Sends exactly one request per `execute` call, attaches the Basic
Authorization header, and maps the HTTP status or transport exception
onto Success / RetryableFailure / FatalFailure. No retry logic here.
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

from tinyshrink.domain.errors import (
    ClientError, ClientErrorKind, InsecureTransport, InvalidOptions, RateLimited,
    ServerError, ShrinkError, TransportError,
)
from tinyshrink.domain.interfaces.transport import Transport
from tinyshrink.domain.models.common import RETRY_AFTER_HEADER
from tinyshrink.domain.models.outcome import (
    FatalFailure, RequestOutcome, RetryableFailure, Success,
)
from tinyshrink.domain.models.request import ApiRequest
from tinyshrink.infrastructure.auth.credentials import CredentialHolder

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = "tinyshrink/0.3"

# Status codes with a fixed client-error sub-kind
STATUS_SUB_KINDS: Dict[int, ClientErrorKind] = {
    400: ClientErrorKind.BAD_REQUEST,
    401: ClientErrorKind.UNAUTHORIZED,
    403: ClientErrorKind.UNAUTHORIZED,
    404: ClientErrorKind.NOT_FOUND,
    413: ClientErrorKind.PAYLOAD_TOO_LARGE,
    415: ClientErrorKind.UNSUPPORTED_MEDIA,
}

# Error classification strings the service puts in the body
ERROR_TYPE_SUB_KINDS: Dict[str, ClientErrorKind] = {
    "unauthorized": ClientErrorKind.UNAUTHORIZED,
    "badsignature": ClientErrorKind.UNAUTHORIZED,
    "forbidden": ClientErrorKind.UNAUTHORIZED,
    "unsupportedmediatype": ClientErrorKind.UNSUPPORTED_MEDIA,
    "unsupportedmedia": ClientErrorKind.UNSUPPORTED_MEDIA,
    "inputtoolarge": ClientErrorKind.PAYLOAD_TOO_LARGE,
    "payloadtoolarge": ClientErrorKind.PAYLOAD_TOO_LARGE,
    "notfound": ClientErrorKind.NOT_FOUND,
    "inputmissing": ClientErrorKind.BAD_REQUEST,
    "badrequest": ClientErrorKind.BAD_REQUEST,
}

QUOTA_MARKERS = ("quota", "monthly limit", "limit has been exceeded")


def parse_error_body(response: httpx.Response) -> Tuple[str, Optional[str]]:
    """Extracts (message, error_type) from a non-2xx response body."""
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
        body = None
    if isinstance(body, dict):
        message = body.get("message")
        error_type = body.get("error")
        return (
            str(message) if message else (response.reason_phrase or "Unknown error"),
            str(error_type) if error_type else None,
        )
    text = response.text.strip() if response.content else ""
    return (text or response.reason_phrase or "Unknown error", None)


def parse_retry_after(headers: Mapping[str, str]) -> Optional[float]:
    value = headers.get(RETRY_AFTER_HEADER)
    if value is None:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def classify_response(response: httpx.Response) -> RequestOutcome:
    """Maps one HTTP response onto an outcome variant."""
    status = response.status_code
    if 200 <= status < 300:
        return Success(payload=response.content, headers=dict(response.headers), status=status)

    message, error_type = parse_error_body(response)
    logger.debug(f"API error response: status={status}, error={error_type}, message={message}")

    if status == 429:
        lowered = f"{error_type or ''} {message}".lower()
        if any(marker in lowered for marker in QUOTA_MARKERS):
            return FatalFailure(ClientError(message, sub_kind=ClientErrorKind.QUOTA_EXCEEDED, status=status, error_type=error_type))
        return RetryableFailure(RateLimited(
            message, retry_after=parse_retry_after(response.headers), status=status, error_type=error_type,
        ))
    if 500 <= status < 600:
        return RetryableFailure(ServerError(message, status=status, error_type=error_type))
    if 400 <= status < 500:
        sub_kind = STATUS_SUB_KINDS.get(status)
        if sub_kind is None and error_type:
            sub_kind = ERROR_TYPE_SUB_KINDS.get(error_type.replace(" ", "").lower())
        return FatalFailure(ClientError(
            message, sub_kind=sub_kind or ClientErrorKind.BAD_REQUEST, status=status, error_type=error_type,
        ))
    # 1xx/3xx reaching here means redirects were not followed; not retryable
    return FatalFailure(ShrinkError(f"Unexpected status {status}: {message}", status=status, error_type=error_type))


class HttpxTransport(Transport):
    """Transport executor backed by an `httpx.AsyncClient`."""

    def __init__(
        self,
        credentials: CredentialHolder,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        app_identifier: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initializes the transport.

        Args:
            credentials: Source of the Authorization header.
            timeout_seconds: Per-attempt timeout (connect, read, write, pool).
            app_identifier: Optional User-Agent suffix identifying the caller.
            http_client: Pre-built client (tests pass one with a MockTransport).
        """
        self._credentials = credentials
        user_agent = DEFAULT_USER_AGENT if not app_identifier else f"{DEFAULT_USER_AGENT} {app_identifier}"
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=False,
        )
        self._base_headers = {"User-Agent": user_agent}
        logger.info(f"HttpxTransport initialized: timeout={timeout_seconds}s, user_agent='{user_agent}'")

    def _build_headers(self, request: ApiRequest) -> Dict[str, str]:
        headers = dict(self._base_headers)
        headers["Authorization"] = self._credentials.authorization_header()
        if request.content_type:
            headers["Content-Type"] = request.content_type
        elif request.json is not None:
            headers["Content-Type"] = "application/json"
        return headers

    async def execute(self, request: ApiRequest) -> RequestOutcome:
        try:
            url = httpx.URL(request.url)
        except httpx.InvalidURL as e:
            return FatalFailure(InvalidOptions(f"Malformed request URL: {e}"))
        if url.scheme != "https":
            return FatalFailure(InsecureTransport(f"Refusing to send credentials over {url.scheme or 'unknown'}: {request.url}"))

        kwargs: Dict[str, Any] = {"headers": self._build_headers(request)}
        if request.json is not None:
            kwargs["content"] = json.dumps(request.json).encode("utf-8")
        elif request.content is not None:
            kwargs["content"] = request.content

        logger.debug(f"Sending {request!r}")
        try:
            response = await self._client.request(request.method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout calling {request.endpoint}: {type(e).__name__}")
            return RetryableFailure(TransportError(f"Request timed out: {type(e).__name__}"))
        except httpx.TransportError as e:
            # Connection reset, DNS failure, protocol errors
            logger.warning(f"Transport error calling {request.endpoint}: {type(e).__name__}: {e}")
            return RetryableFailure(TransportError(f"Connection error: {e}"))
        except httpx.RequestError as e:
            # Decoding and other request-level failures outside TransportError
            logger.warning(f"Request error calling {request.endpoint}: {type(e).__name__}: {e}")
            return RetryableFailure(TransportError(f"Request failed: {type(e).__name__}: {e}"))
        return classify_response(response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
