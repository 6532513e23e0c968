"""Outcome handle for a finished chained operation."""

import logging
from typing import Mapping, Optional

from tinyshrink.domain.interfaces.filesystem import FileSystem
from tinyshrink.domain.models.common import (
    Dimensions, FilePath, UsageCount, CONTENT_LENGTH_HEADER,
    CONTENT_TYPE_HEADER, LOCATION_HEADER, parse_int_header,
)
from tinyshrink.domain.models.options import ImageFormat
from tinyshrink.domain.models.outcome import Success

logger = logging.getLogger(__name__)


class Result:
    """Immutable view of a terminal Success: payload bytes plus metadata.

    Offers no further chaining; use the Source for that.
    """

    __slots__ = ("_data", "_content_type", "_content_length", "_dimensions", "_usage_counter", "_location", "_file_system")

    def __init__(
        self,
        data: bytes,
        content_type: Optional[str] = None,
        dimensions: Optional[Dimensions] = None,
        usage_counter: Optional[UsageCount] = None,
        content_length: Optional[int] = None,
        location: Optional[str] = None,
        file_system: Optional[FileSystem] = None,
    ):
        object.__setattr__(self, "_data", bytes(data))
        object.__setattr__(self, "_content_type", content_type)
        object.__setattr__(self, "_dimensions", dimensions)
        object.__setattr__(self, "_usage_counter", usage_counter)
        object.__setattr__(self, "_content_length", content_length)
        object.__setattr__(self, "_location", location)
        object.__setattr__(self, "_file_system", file_system)

    def __setattr__(self, name, value):
        raise AttributeError("Result is immutable.")

    @classmethod
    def from_success(cls, outcome: Success, file_system: Optional[FileSystem] = None) -> "Result":
        content_type = outcome.header(CONTENT_TYPE_HEADER)
        if content_type:
            content_type = content_type.split(";", 1)[0].strip()
        return cls(
            data=outcome.payload,
            content_type=content_type,
            dimensions=outcome.dimensions,
            usage_counter=outcome.usage_counter,
            content_length=parse_int_header(outcome.header(CONTENT_LENGTH_HEADER)),
            location=outcome.header(LOCATION_HEADER),
            file_system=file_system,
        )

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def content_type(self) -> Optional[str]:
        return self._content_type

    @property
    def content_length(self) -> Optional[int]:
        """Length reported by the server, falling back to the payload size."""
        return self._content_length if self._content_length is not None else len(self._data)

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def dimensions(self) -> Optional[Dimensions]:
        return self._dimensions

    @property
    def width(self) -> Optional[int]:
        return self._dimensions[0] if self._dimensions else None

    @property
    def height(self) -> Optional[int]:
        return self._dimensions[1] if self._dimensions else None

    @property
    def usage_counter(self) -> Optional[UsageCount]:
        return self._usage_counter

    @property
    def location(self) -> Optional[str]:
        """URL of the stored object, for store operations."""
        return self._location

    @property
    def extension(self) -> Optional[str]:
        if not self._content_type:
            return None
        try:
            return ImageFormat(self._content_type).extension
        except ValueError:
            return None

    def summary(self) -> Mapping[str, object]:
        """Ordered metadata, used by the CLI result table."""
        return {
            "content type": self._content_type or "-",
            "size (bytes)": self.size,
            "dimensions": f"{self.width}x{self.height}" if self._dimensions else "-",
            "usage counter": self._usage_counter if self._usage_counter is not None else "-",
            "location": self._location or "-",
        }

    async def to_file(self, path: FilePath) -> None:
        if self._file_system is None:
            raise RuntimeError("Result was created without a file system adapter.")
        await self._file_system.write_bytes(path, self._data)
        logger.info(f"Saved {self.size} bytes to {path}")

    def __repr__(self) -> str:
        return (
            f"Result(content_type={self._content_type!r}, size={self.size}, "
            f"dimensions={self._dimensions!r}, usage_counter={self._usage_counter!r})"
        )
