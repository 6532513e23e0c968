"""Concrete implementation of the FileSystem interface for the local disk.

Uses `pathlib` for path handling and `aiofiles` for async I/O, so the
event loop is never blocked by disk access.
"""

import logging
from pathlib import Path

import aiofiles
import aiofiles.os

# Domain Layer Imports
from tinyshrink.domain.interfaces.filesystem import FileSystem
from tinyshrink.domain.models.common import FilePath, ImageData

logger = logging.getLogger(__name__)

class LocalFileSystem(FileSystem):
    """Implementation of FileSystem for the local disk."""

    async def read_bytes(self, file_path: FilePath) -> ImageData:
        path = Path(file_path)
        logger.debug(f"Attempting to read file: {path}")
        if not await aiofiles.os.path.isfile(path):
            raise FileNotFoundError(f"File not found: {file_path}")
        try:
            async with aiofiles.open(path, mode='rb') as f:
                data = await f.read()
        except PermissionError as e:
            logger.error(f"Permission denied reading file: {path}")
            raise PermissionError(f"Permission denied: {file_path}") from e
        logger.debug(f"Successfully read {len(data)} bytes from {path}")
        return ImageData(data)

    async def write_bytes(self, file_path: FilePath, data: bytes) -> None:
        """Writes bytes, creating parent directories as needed."""
        path = Path(file_path)
        logger.debug(f"Attempting to write {len(data)} bytes to file: {path}")
        try:
            # Ensure parent directory exists
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(path, mode='wb') as f:
                await f.write(data)
        except PermissionError as e:
            logger.error(f"Permission denied writing file: {path}")
            raise PermissionError(f"Permission denied: {file_path}") from e
        logger.debug(f"Successfully wrote to {path}")

    async def file_exists(self, file_path: FilePath) -> bool:
        exists = await aiofiles.os.path.isfile(file_path)
        logger.debug(f"Checked existence for {file_path}: {exists}")
        return exists

    async def file_size(self, file_path: FilePath) -> int:
        stat = await aiofiles.os.stat(file_path)
        return stat.st_size
