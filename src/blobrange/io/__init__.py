"""I/O layer for blobrange - transports and the resuming range stream."""

# Re-export these for import convenience
from .base import (
    BlobStoreClient, RawChannel, PrivilegedExecutor, TransportError, RangeNotSupportedError,
    UnsupportedStreamOperation, direct_executor, DEFAULT_CHUNK_SIZE,
)
from .bounded import BoundedByteSource
from .stream import RangeStream, StreamState, open_range_stream
from .local import LocalBlobStoreClient, open_local_client
from .http_sync import HTTPBlobStoreClient, open_http_client


def open_client(source, config=None):
    """Factory: return ``(client, locator)`` for a URL or local path.

    ``http(s)://host/container/name`` maps to an HTTP client rooted at the
    host; anything else is a local file whose directory is the container.
    """
    from pathlib import Path
    from urllib.parse import unquote, urlparse

    from ..core.model import BlobLocator

    source_str = str(source)
    if source_str.startswith(('http://', 'https://')):
        parsed = urlparse(source_str)
        path = unquote(parsed.path).lstrip("/")
        container, _, name = path.rpartition("/")
        if not name:
            raise ValueError(f"URL has no object name: {source_str}")
        client = open_http_client(f"{parsed.scheme}://{parsed.netloc}", config)
        return client, BlobLocator(container, name)

    path = Path(source_str).resolve()
    return open_local_client(None, config), BlobLocator(str(path.parent), path.name)
