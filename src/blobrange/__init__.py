"""blobrange - resumable, range-bounded reads of object-store blobs."""

from .core.model import (                                             # re-export
    BlobLocator, ByteRange, FailureRecord, BlobRangeError, BlobNotFoundError,
    RetryBudgetExhaustedError, MisuseError, StreamClosedError, StreamStateError,
    TransportError, UnsupportedStreamOperation,
)
from .core.config import TransportConfig
from .io import RangeStream, open_range_stream, open_client


def read_range(source, start: int = 0, length: int | None = None, *,
               config: TransportConfig | None = None) -> bytes:
    """Read ``[start, start + length)`` of a URL or local path into memory."""
    client, locator = open_client(source, config)
    try:
        with open_range_stream(client, locator, start, length) as stream:
            return stream.read()
    finally:
        if hasattr(client, "close"):
            client.close()


__version__ = "0.1.0"

__all__ = [
    "read_range", "open_range_stream", "open_client", "RangeStream",
    "BlobLocator", "ByteRange", "FailureRecord", "TransportConfig",
    "BlobRangeError", "BlobNotFoundError", "RetryBudgetExhaustedError", "MisuseError",
    "StreamClosedError", "StreamStateError", "TransportError", "UnsupportedStreamOperation",
]
