"""Forward-only stream over a blob range that resumes after transport failures."""

from __future__ import annotations

import io
import logging
from enum import Enum
from typing import Callable, Optional, TypeVar

from ..core.classifier import CLASSIFIER, FailureClassifier, FailureKind
from ..core.model import (
    BlobLocator, BlobNotFoundError, BlobRangeError, ByteRange, FailureRecord,
    RetryBudgetExhaustedError, StreamClosedError, StreamStateError,
)
from ..core.util import SuppressedFailures
from .base import (
    BlobStoreClient, PrivilegedExecutor, UnsupportedStreamOperation, direct_executor,
)
from .bounded import BoundedByteSource

T = TypeVar("T")

logger = logging.getLogger(__name__)


class StreamState(Enum):
    READING = "reading"
    REOPENING = "reopening"
    FAILED_NOT_FOUND = "failed_not_found"
    FAILED_EXHAUSTED = "failed_exhausted"
    CLOSED = "closed"


class RangeStream(io.RawIOBase):
    """Sequential reader of ``[start, start + length)`` of one blob.

    A transport failure part-way through closes the current channel and opens
    a new one at ``start + offset``, so every byte is delivered exactly once.
    The session allows ``client.max_transport_attempts() + 1`` attempts in
    total; opening counts against the same budget as reading. A missing blob
    ends the session at once.

    The stream only moves forward: skip, reset, seek, truncate and write
    always raise UnsupportedStreamOperation.
    """

    def __init__(self, client: BlobStoreClient, locator: BlobLocator,
                 byte_range: ByteRange = ByteRange(), *,
                 executor: PrivilegedExecutor = direct_executor,
                 classifier: FailureClassifier = CLASSIFIER):
        super().__init__()
        self._source: Optional[BoundedByteSource] = None
        self._client = client
        self._executor = executor
        self._classifier = classifier
        self.locator = locator
        self.byte_range = byte_range
        self.max_retries = client.max_transport_attempts() + 1
        self.attempt = 1
        self.offset = 0  # bytes handed to the caller, relative to byte_range.start
        self.suppressed_failures = SuppressedFailures()
        self.state = StreamState.REOPENING

        # open eagerly so a missing blob shows up before any byte is consumed
        self._with_retries(lambda source: None)

    # ------------------------------------------------------------------ #
    def _open_source(self) -> BoundedByteSource:
        return BoundedByteSource.open(self._client, self.locator, self.byte_range,
                                      self.offset, self._executor)

    def _with_retries(self, operation: Callable[[BoundedByteSource], T]) -> T:
        while True:
            try:
                if self._source is None:
                    self._source = self._open_source()
                    self.state = StreamState.READING
                return operation(self._source)
            except BlobRangeError as e:
                terminal = self._on_failure(e)
                if terminal is e:
                    raise
                if terminal is not None:
                    raise terminal from e

    def _on_failure(self, error: Exception) -> Optional[Exception]:
        """Return the error to raise, or None once a fresh source may be opened."""
        kind = self._classifier.classify(error)

        if kind is FailureKind.MISUSE:
            return error

        if kind is FailureKind.NOT_FOUND:
            self._discard_source()
            self.state = StreamState.FAILED_NOT_FOUND
            if isinstance(error, BlobNotFoundError):
                error.suppressed = error.suppressed + self.suppressed_failures.snapshot()
                return error
            return BlobNotFoundError(self.locator, str(error), self.suppressed_failures.snapshot())

        if self.attempt >= self.max_retries:
            self._discard_source()
            self.state = StreamState.FAILED_EXHAUSTED
            return RetryBudgetExhaustedError(self.locator, self.attempt,
                                             self.suppressed_failures.snapshot())

        logger.debug("failed reading [%s] at offset [%d], attempt [%d] of [%d], retrying",
                     self.locator, self.offset, self.attempt, self.max_retries, exc_info=error)
        self.suppressed_failures.offer(FailureRecord(error, self.offset, self.attempt))
        self.attempt += 1
        self.state = StreamState.REOPENING
        self._discard_source()
        return None

    def _discard_source(self) -> None:
        if self._source is not None:
            self._source.close_quietly()
            self._source = None

    def _ensure_open(self) -> None:
        if self.closed:
            raise StreamClosedError("using RangeStream after close")
        if self.state in (StreamState.FAILED_NOT_FOUND, StreamState.FAILED_EXHAUSTED):
            raise StreamStateError(f"using RangeStream after a terminal failure ({self.state.value})")

    # --------------------------- reading ------------------------------- #
    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        """Read up to len(buffer) bytes; 0 means end of stream (or an empty buffer)."""
        self._ensure_open()
        view = memoryview(buffer).cast("B")
        if len(view) == 0:
            return 0
        read = self._with_retries(lambda source: source.readinto(view))
        self.offset += read
        return read

    def read_byte(self) -> Optional[int]:
        """Return the next byte as an int, or None at end of stream."""
        one = bytearray(1)
        if self.readinto(one) == 0:
            return None
        return one[0]

    # ------------------------- unsupported ----------------------------- #
    def seekable(self) -> bool:
        return False

    def writable(self) -> bool:
        return False

    def skip(self, n: int) -> int:
        raise UnsupportedStreamOperation("RangeStream does not support seeking")

    def reset(self) -> None:
        raise UnsupportedStreamOperation("RangeStream does not support seeking")

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        raise UnsupportedStreamOperation("RangeStream does not support seeking")

    def truncate(self, size: Optional[int] = None) -> int:
        raise UnsupportedStreamOperation("RangeStream is read-only")

    def write(self, b) -> int:
        raise UnsupportedStreamOperation("RangeStream is read-only")

    # --------------------------- closing ------------------------------- #
    def close(self) -> None:
        if self.closed:
            return
        try:
            self._discard_source()
        finally:
            self.state = StreamState.CLOSED
            super().close()


def open_range_stream(client: BlobStoreClient, locator: BlobLocator, start: int = 0,
                      length: Optional[int] = None, *,
                      executor: PrivilegedExecutor = direct_executor) -> RangeStream:
    """Create a RangeStream over ``[start, start + length)``; length None reads to the end."""
    return RangeStream(client, locator, ByteRange(start, length), executor=executor)
