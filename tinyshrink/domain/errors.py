"""Error taxonomy for the image compression client.

Every failure a caller can observe is a `ShrinkError` subclass. Transient
kinds (`RateLimited`, `TransportError`, `ServerError`) only ever reach the
caller wrapped in `RetriesExhausted`.
"""

import enum
from typing import Optional


class ErrorKind(str, enum.Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_OPTIONS = "invalid_options"
    INSECURE_TRANSPORT = "insecure_transport"
    RATE_LIMITED = "rate_limited"
    TRANSPORT_ERROR = "transport_error"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"
    RETRIES_EXHAUSTED = "retries_exhausted"
    MISSING_LOCATOR = "missing_locator"
    CANCELLED = "cancelled"


class ClientErrorKind(str, enum.Enum):
    """Sub-kinds of 4xx responses, surfaced from the status and response body."""
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    UNSUPPORTED_MEDIA = "unsupported_media"
    NOT_FOUND = "not_found"
    QUOTA_EXCEEDED = "quota_exceeded"


class ShrinkError(Exception):
    """Base class for all client errors."""

    kind: ErrorKind = ErrorKind.CLIENT_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        error_type: Optional[str] = None,
    ):
        self.message = message
        self.status = status
        self.error_type = error_type  # classification string from the response body
        super().__init__(message)

    @property
    def is_retry_later(self) -> bool:
        """True when the account quota or request rate is spent; waiting may help."""
        return False

    @property
    def is_request_error(self) -> bool:
        """True when the request itself must be fixed before trying again."""
        return False

    @property
    def is_give_up(self) -> bool:
        """True when the operation was abandoned (exhausted, cancelled, broken contract)."""
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, status={self.status!r}, error_type={self.error_type!r})"


class InvalidCredentials(ShrinkError):
    """The API key is empty or malformed. Raised at construction time only."""
    kind = ErrorKind.INVALID_CREDENTIALS

    @property
    def is_request_error(self) -> bool:
        return True


class InvalidOptions(ShrinkError):
    """Options failed local validation; no request was sent."""
    kind = ErrorKind.INVALID_OPTIONS

    @property
    def is_request_error(self) -> bool:
        return True


class InsecureTransport(ShrinkError):
    """A request targeted a non-HTTPS URL."""
    kind = ErrorKind.INSECURE_TRANSPORT

    @property
    def is_request_error(self) -> bool:
        return True


class RateLimited(ShrinkError):
    """Burst rate exceeded (HTTP 429 without a quota message). Transient."""
    kind = ErrorKind.RATE_LIMITED
    retryable = True

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after

    @property
    def is_retry_later(self) -> bool:
        return True


class TransportError(ShrinkError):
    """Connection reset, timeout, DNS failure and similar. Transient."""
    kind = ErrorKind.TRANSPORT_ERROR
    retryable = True


class ServerError(ShrinkError):
    """HTTP 5xx. Transient."""
    kind = ErrorKind.SERVER_ERROR
    retryable = True


class ClientError(ShrinkError):
    """HTTP 4xx (other than burst rate limiting). Never retried."""
    kind = ErrorKind.CLIENT_ERROR

    def __init__(self, message: str, sub_kind: ClientErrorKind = ClientErrorKind.BAD_REQUEST, **kwargs):
        super().__init__(message, **kwargs)
        self.sub_kind = sub_kind

    @property
    def is_retry_later(self) -> bool:
        return self.sub_kind is ClientErrorKind.QUOTA_EXCEEDED

    @property
    def is_request_error(self) -> bool:
        return self.sub_kind is not ClientErrorKind.QUOTA_EXCEEDED

    def __repr__(self) -> str:
        return f"ClientError(sub_kind={self.sub_kind.value}, message={self.message!r}, status={self.status!r})"


class RetriesExhausted(ShrinkError):
    """Every attempt failed transiently; wraps the last retryable reason."""
    kind = ErrorKind.RETRIES_EXHAUSTED

    def __init__(self, last_reason: ShrinkError, attempts: int):
        super().__init__(
            f"Max attempts ({attempts}) exceeded. Last error: {last_reason.message}",
            status=last_reason.status,
            error_type=last_reason.error_type,
        )
        self.last_reason = last_reason
        self.attempts = attempts

    @property
    def is_give_up(self) -> bool:
        return True


class MissingLocator(ShrinkError):
    """A successful entry response carried no Location header."""
    kind = ErrorKind.MISSING_LOCATOR

    @property
    def is_give_up(self) -> bool:
        return True


class Cancelled(ShrinkError):
    """The caller's cancellation signal fired before the operation finished."""
    kind = ErrorKind.CANCELLED

    @property
    def is_give_up(self) -> bool:
        return True
