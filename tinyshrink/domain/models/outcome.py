"""Request outcome variants.

A single transport attempt ends in exactly one of `Success`,
`RetryableFailure` or `FatalFailure`. Only the first and last ever leave
the retry orchestrator.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from tinyshrink.domain.errors import ShrinkError, MissingLocator
from tinyshrink.domain.models.common import (
    Locator, UsageCount, Dimensions, LOCATION_HEADER, USAGE_COUNT_HEADER,
    IMAGE_WIDTH_HEADER, IMAGE_HEIGHT_HEADER, parse_int_header,
)


@dataclass(frozen=True)
class Success:
    """2xx response: raw body plus headers."""
    payload: bytes
    headers: Mapping[str, str] = field(default_factory=dict)
    status: int = 200

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def usage_counter(self) -> Optional[UsageCount]:
        count = parse_int_header(self.header(USAGE_COUNT_HEADER))
        return UsageCount(count) if count is not None else None

    @property
    def dimensions(self) -> Optional[Dimensions]:
        width = parse_int_header(self.header(IMAGE_WIDTH_HEADER))
        height = parse_int_header(self.header(IMAGE_HEIGHT_HEADER))
        if width is None or height is None:
            return None
        return (width, height)

    def locator(self) -> Locator:
        """Returns the chained resource locator or raises MissingLocator."""
        value = self.header(LOCATION_HEADER)
        if not value or not value.strip():
            raise MissingLocator("Missing Location header in server response", status=self.status)
        return Locator(value.strip())

    def json(self) -> Any:
        return json.loads(self.payload.decode("utf-8")) if self.payload else None


@dataclass(frozen=True)
class RetryableFailure:
    """Transient failure of a single attempt."""
    reason: ShrinkError


@dataclass(frozen=True)
class FatalFailure:
    """Terminal failure; retrying cannot help."""
    error: ShrinkError


RequestOutcome = Union[Success, RetryableFailure, FatalFailure]
