"""tinyshrink: resilient async client for the Tinify image compression API.

The public surface lives in `tinyshrink.core`; everything else is wiring.
"""

from tinyshrink.core.client import ShrinkClient
from tinyshrink.core.source import Source
from tinyshrink.core.result import Result
from tinyshrink.domain.errors import (
    ShrinkError, InvalidCredentials, InvalidOptions, InsecureTransport,
    RateLimited, TransportError, ServerError, ClientError,
    RetriesExhausted, MissingLocator, Cancelled,
)
from tinyshrink.domain.models.options import (
    ResizeMethod, ResizeOptions, ImageFormat, ConvertOptions,
    PreserveMetadata, PreserveOptions, S3Options, GCSOptions,
)
from tinyshrink.infrastructure.config.settings import (
    ClientConfig, RetryConfig, RateLimitConfig, load_configuration,
)

__version__ = "0.3.0"

__all__ = [
    "ShrinkClient", "Source", "Result",
    "ShrinkError", "InvalidCredentials", "InvalidOptions", "InsecureTransport",
    "RateLimited", "TransportError", "ServerError", "ClientError",
    "RetriesExhausted", "MissingLocator", "Cancelled",
    "ResizeMethod", "ResizeOptions", "ImageFormat", "ConvertOptions",
    "PreserveMetadata", "PreserveOptions", "S3Options", "GCSOptions",
    "ClientConfig", "RetryConfig", "RateLimitConfig", "load_configuration",
]
