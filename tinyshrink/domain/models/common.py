"""Defines common Value Objects used across the client.

These objects represent simple values like locators, usage counts and
file paths, plus the header names the remote service speaks.
"""

from typing import NewType, Optional, Tuple

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are plain values at runtime.
Locator = NewType("Locator", str)          # URL of a server-side chained resource
UsageCount = NewType("UsageCount", int)    # Billable operations in the current period
ImageData = NewType("ImageData", bytes)    # Raw image bytes
FilePath = NewType("FilePath", str)        # Path to a local image file
EndpointName = NewType("EndpointName", str)  # e.g. 'shrink', 'resize', 'fetch'

Dimensions = Tuple[int, int]

# === Wire Headers ===
LOCATION_HEADER = "Location"
USAGE_COUNT_HEADER = "Compression-Count"
IMAGE_WIDTH_HEADER = "Image-Width"
IMAGE_HEIGHT_HEADER = "Image-Height"
RETRY_AFTER_HEADER = "Retry-After"
CONTENT_TYPE_HEADER = "Content-Type"
CONTENT_LENGTH_HEADER = "Content-Length"


def parse_int_header(value: Optional[str]) -> Optional[int]:
    """Parses a numeric header value, returning None when absent or malformed."""
    if value is None:
        return None
    try:
        return int(value.strip())
    except (TypeError, ValueError):
        return None
