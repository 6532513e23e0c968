import pytest

from tinyshrink.core.result import Result
from tinyshrink.domain.models.outcome import Success
from tinyshrink.infrastructure.filesystem.local_fs import LocalFileSystem


@pytest.fixture
def success() -> Success:
    return Success(
        payload=b"\x89PNG-data",
        headers={
            "Content-Type": "image/jpeg; charset=binary",
            "Content-Length": "9",
            "Image-Width": "640",
            "Image-Height": "480",
            "Compression-Count": "33",
        },
    )


def test_metadata_from_headers(success):
    result = Result.from_success(success)

    assert result.content_type == "image/jpeg"
    assert result.extension == "jpg"
    assert result.dimensions == (640, 480)
    assert (result.width, result.height) == (640, 480)
    assert result.usage_counter == 33
    assert result.content_length == 9
    assert result.location is None


def test_missing_metadata_is_none():
    result = Result.from_success(Success(payload=b"abc"))

    assert result.dimensions is None
    assert result.width is None
    assert result.extension is None
    assert result.content_length == 3


def test_result_is_immutable(success):
    result = Result.from_success(success)
    with pytest.raises(AttributeError):
        result.data = b"other"


def test_summary_is_ordered(success):
    summary = Result.from_success(success).summary()
    assert list(summary) == ["content type", "size (bytes)", "dimensions", "usage counter", "location"]
    assert summary["dimensions"] == "640x480"


@pytest.mark.asyncio
async def test_to_file(success, tmp_path):
    result = Result.from_success(success, file_system=LocalFileSystem())
    target = tmp_path / "nested" / "out.jpg"

    await result.to_file(str(target))

    assert target.read_bytes() == success.payload


@pytest.mark.asyncio
async def test_to_file_without_file_system(success, tmp_path):
    with pytest.raises(RuntimeError):
        await Result.from_success(success).to_file(str(tmp_path / "x.jpg"))
