"""The request value object handed to a Transport for one attempt."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from tinyshrink.domain.models.common import EndpointName


@dataclass(frozen=True)
class ApiRequest:
    """One HTTP request against the remote service.

    Either `content` (raw bytes) or `json` (a JSON-serialisable body) may be
    set, never both.
    """
    method: str
    url: str
    content: Optional[bytes] = None
    json: Optional[Dict[str, Any]] = None
    content_type: Optional[str] = None
    endpoint: EndpointName = EndpointName("request")

    def __post_init__(self):
        if self.content is not None and self.json is not None:
            raise ValueError("ApiRequest accepts either raw content or a JSON body, not both.")

    def __repr__(self) -> str:
        size = len(self.content) if self.content is not None else 0
        return f"ApiRequest({self.method} {self.url}, endpoint={self.endpoint}, bytes={size}, json={self.json is not None})"
