"""Domain models for chained operation options.

Each options object validates itself and renders the JSON body the remote
API expects for that transform.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from tinyshrink.domain.errors import InvalidOptions

MAX_DIMENSION = 10000


class ResizeMethod(str, enum.Enum):
    SCALE = "scale"
    FIT = "fit"
    COVER = "cover"
    THUMB = "thumb"


class ImageFormat(str, enum.Enum):
    AVIF = "image/avif"
    WEBP = "image/webp"
    JPEG = "image/jpeg"
    PNG = "image/png"

    @property
    def extension(self) -> str:
        return "jpg" if self is ImageFormat.JPEG else self.value.split("/", 1)[1]


class PreserveMetadata(str, enum.Enum):
    COPYRIGHT = "copyright"
    CREATION = "creation"
    LOCATION = "location"


@dataclass(frozen=True)
class ResizeOptions:
    """Resize request. `scale` takes exactly one dimension, the others take both."""
    method: ResizeMethod = ResizeMethod.FIT
    width: Optional[int] = None
    height: Optional[int] = None

    def validate(self) -> None:
        width, height = self.width, self.height
        if width is None and height is None:
            raise InvalidOptions(f"Invalid resize dimensions: width={width}, height={height}")
        for value in (width, height):
            if value is not None and (value <= 0 or value > MAX_DIMENSION):
                raise InvalidOptions(f"Invalid resize dimensions: width={width}, height={height}")
        method = ResizeMethod(self.method)
        if method is ResizeMethod.SCALE and width is not None and height is not None:
            raise InvalidOptions("Resize method 'scale' accepts either width or height, not both.")
        if method is not ResizeMethod.SCALE and (width is None or height is None):
            raise InvalidOptions(f"Resize method '{method.value}' requires both width and height.")

    def to_payload(self) -> Dict[str, Any]:
        self.validate()
        resize: Dict[str, Any] = {"method": ResizeMethod(self.method).value}
        if self.width is not None:
            resize["width"] = self.width
        if self.height is not None:
            resize["height"] = self.height
        return {"resize": resize}


@dataclass(frozen=True)
class ConvertOptions:
    """Format conversion. Several formats let the service pick the smallest."""
    formats: Union[ImageFormat, Sequence[ImageFormat]]
    background: Optional[str] = None  # e.g. "white", "black" or "#RRGGBB"

    def _format_list(self) -> List[ImageFormat]:
        if isinstance(self.formats, (str, ImageFormat)):
            return [ImageFormat(self.formats)]
        return [ImageFormat(f) for f in self.formats]

    def to_payload(self) -> Dict[str, Any]:
        try:
            formats = self._format_list()
        except ValueError as e:
            raise InvalidOptions(f"Unsupported target format: {e}") from e
        if not formats:
            raise InvalidOptions("At least one target format is required.")
        target: Union[str, List[str]] = formats[0].value if len(formats) == 1 else [f.value for f in formats]
        payload: Dict[str, Any] = {"convert": {"type": target}}
        if self.background:
            payload["transform"] = {"background": self.background}
        return payload


@dataclass(frozen=True)
class PreserveOptions:
    keys: Sequence[PreserveMetadata] = field(default_factory=tuple)

    def to_payload(self) -> Dict[str, Any]:
        if not self.keys:
            raise InvalidOptions("At least one metadata key must be preserved.")
        try:
            return {"preserve": [PreserveMetadata(k).value for k in self.keys]}
        except ValueError as e:
            raise InvalidOptions(f"Unknown metadata key: {e}") from e


@dataclass(frozen=True)
class S3Options:
    """Amazon S3 (or S3-compatible) target. Credentials are passed through untouched."""
    aws_access_key_id: str
    aws_secret_access_key: str
    region: str
    path: str
    headers: Optional[Dict[str, str]] = None
    acl: Optional[str] = None
    endpoint: Optional[str] = None  # S3-compatible storage only

    def to_payload(self) -> Dict[str, Any]:
        if not self.path:
            raise InvalidOptions("Storage path is required.")
        store: Dict[str, Any] = {
            "service": "s3",
            "aws_access_key_id": self.aws_access_key_id,
            "aws_secret_access_key": self.aws_secret_access_key,
            "region": self.region,
            "path": self.path,
        }
        if self.headers:
            store["headers"] = dict(self.headers)
        if self.acl:
            store["acl"] = self.acl
        if self.endpoint:
            store["endpoint"] = self.endpoint
        return {"store": store}

    def __repr__(self) -> str:
        return f"S3Options(region={self.region!r}, path={self.path!r}, acl={self.acl!r})"


@dataclass(frozen=True)
class GCSOptions:
    """Google Cloud Storage target."""
    gcp_access_token: str
    path: str
    headers: Optional[Dict[str, str]] = None

    def to_payload(self) -> Dict[str, Any]:
        if not self.path:
            raise InvalidOptions("Storage path is required.")
        store: Dict[str, Any] = {
            "service": "gcs",
            "gcp_access_token": self.gcp_access_token,
            "path": self.path,
        }
        if self.headers:
            store["headers"] = dict(self.headers)
        return {"store": store}

    def __repr__(self) -> str:
        return f"GCSOptions(path={self.path!r})"


StoreOptions = Union[S3Options, GCSOptions]
