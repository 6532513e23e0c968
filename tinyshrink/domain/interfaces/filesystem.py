"""Interface for interacting with the file system.

Defines the contract for reading and writing image files, allowing the
client to be independent of the specific file system implementation.
"""

import abc

# Import relevant domain models
from ..models.common import FilePath, ImageData

class FileSystem(abc.ABC):
    """Abstract Base Class for file system operations."""

    @abc.abstractmethod
    async def read_bytes(self, file_path: FilePath) -> ImageData:
        """Reads the entire content of a file asynchronously.

        Raises:
            FileNotFoundError: If the file does not exist.
            PermissionError: If read permissions are denied.
        """
        pass

    @abc.abstractmethod
    async def write_bytes(self, file_path: FilePath, data: bytes) -> None:
        """Writes bytes to a file asynchronously, overwriting if it exists."""
        pass

    @abc.abstractmethod
    async def file_exists(self, file_path: FilePath) -> bool:
        pass

    @abc.abstractmethod
    async def file_size(self, file_path: FilePath) -> int:
        """Returns the size of the file in bytes."""
        pass
