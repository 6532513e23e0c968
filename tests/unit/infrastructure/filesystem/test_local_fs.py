import aiofiles
import pytest

from tinyshrink.infrastructure.filesystem.local_fs import LocalFileSystem


@pytest.fixture
def fs() -> LocalFileSystem:
    return LocalFileSystem()


@pytest.mark.asyncio
async def test_read_bytes(fs: LocalFileSystem, image_file, mocker):
    """Test that read_bytes returns the file contents through aiofiles."""
    spy = mocker.spy(aiofiles, "open")

    data = await fs.read_bytes(str(image_file))

    assert data == image_file.read_bytes()
    assert spy.call_args.kwargs["mode"] == "rb"


@pytest.mark.asyncio
async def test_read_missing_file(fs: LocalFileSystem, tmp_path):
    with pytest.raises(FileNotFoundError):
        await fs.read_bytes(str(tmp_path / "missing.png"))


@pytest.mark.asyncio
async def test_write_bytes_creates_parents(fs: LocalFileSystem, tmp_path, mocker):
    """Test that write_bytes creates missing directories and writes through aiofiles."""
    spy = mocker.spy(aiofiles, "open")
    target = tmp_path / "a" / "b" / "out.png"

    await fs.write_bytes(str(target), b"\x89PNG")

    assert target.read_bytes() == b"\x89PNG"
    assert spy.call_args.kwargs["mode"] == "wb"


@pytest.mark.asyncio
async def test_exists_and_size(fs: LocalFileSystem, image_file, tmp_path):
    assert await fs.file_exists(str(image_file)) is True
    assert await fs.file_exists(str(tmp_path)) is False
    assert await fs.file_size(str(image_file)) == image_file.stat().st_size
