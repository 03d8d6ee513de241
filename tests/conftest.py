"""Shared fakes: an in-memory blob store whose channels fail on demand."""

import pytest

from blobrange.core.model import BlobLocator, MisuseError, TransportError
from blobrange.io.base import DEFAULT_CHUNK_SIZE


class FakeChannel:
    """Chunked channel over bytes, recording every call on its store."""

    def __init__(self, store, data: bytes):
        self.store = store
        self.data = data
        self.position = 0
        self.chunk_size = store.default_chunk
        self.open = True

    def seek(self, offset):
        self.store.seeks.append(offset)
        self.position = offset

    def set_chunk_size(self, size):
        self.store.chunk_sizes.append(size)
        self.chunk_size = size if size > 0 else self.store.default_chunk

    def default_chunk_size(self):
        return self.store.default_chunk

    def fetch(self, buffer):
        if not self.open:
            raise MisuseError("fetch on closed channel")
        view = memoryview(buffer).cast("B")
        requested = max(self.chunk_size, len(view))
        self.store.fetches.append((self.position, requested, len(view)))
        if self.store.missing:
            raise TransportError("No such object", status=404)

        n = max(0, min(len(view), len(self.data) - self.position))
        fail = self.store.take_failure(self.position, n)
        if fail is not None:
            # deliver part of the window into the buffer, then drop the connection
            partial = fail - self.position
            view[:partial] = self.data[self.position:fail]
            raise TransportError("Connection reset by peer", status=503)

        view[:n] = self.data[self.position:self.position + n]
        self.position += n
        return n

    def is_open(self):
        return self.open

    def close(self):
        self.open = False
        self.store.closes += 1
        if self.store.close_error:
            raise TransportError("error closing channel")


class FakeBlobStore:
    """In-memory BlobStoreClient.

    fail_at: absolute offsets at which one fetch fails (each used once)
    always_fail: every fetch fails with a transient error
    open_failures: number of opens that fail with a transient error
    missing: fetches report 404
    missing_on_open: opens report 404
    missing_after_opens: the object disappears once this many opens happened
    default_chunk: request size of channels when no chunk size is set
    """

    def __init__(self, blobs=None, max_attempts=3, default_chunk=DEFAULT_CHUNK_SIZE):
        self.blobs = dict(blobs or {})
        self.max_attempts = max_attempts
        self.default_chunk = default_chunk
        self.fail_at = []
        self.always_fail = False
        self.open_failures = 0
        self.missing = False
        self.missing_on_open = False
        self.missing_after_opens = None
        self.close_error = False
        self.opens = []
        self.seeks = []
        self.chunk_sizes = []
        self.fetches = []
        self.closes = 0

    def take_failure(self, position, n):
        if self.always_fail:
            return position
        for offset in sorted(self.fail_at):
            if position <= offset < position + n:
                self.fail_at.remove(offset)
                return offset
        return None

    def open_read_channel(self, locator):
        self.opens.append(locator)
        if self.missing_after_opens is not None and len(self.opens) > self.missing_after_opens:
            self.missing_on_open = True
        if self.missing_on_open or locator.name not in self.blobs:
            raise TransportError(f"No such object: {locator}", status=404)
        if self.open_failures > 0:
            self.open_failures -= 1
            raise TransportError("Service unavailable", status=503)
        return FakeChannel(self, self.blobs[locator.name])

    def max_transport_attempts(self):
        return self.max_attempts

    @property
    def reopens(self):
        return len(self.opens) - 1


@pytest.fixture
def blob_data():
    """1000 distinct-ish bytes."""
    return bytes(i % 251 for i in range(1000))


@pytest.fixture
def locator():
    return BlobLocator("bucket", "blobA")


@pytest.fixture
def store(blob_data):
    return FakeBlobStore({"blobA": blob_data})
