"""Sequential byte source clamped to the remaining bytes of a range."""

from __future__ import annotations

import logging
from contextlib import contextmanager

from ..core.model import BlobLocator, BlobNotFoundError, ByteRange
from .base import (
    HTTP_NOT_FOUND, BlobStoreClient, PrivilegedExecutor, RawChannel,
    TransportError, direct_executor,
)

logger = logging.getLogger(__name__)


@contextmanager
def _missing_as_not_found(locator: BlobLocator):
    """Turn a 404 from the transport into BlobNotFoundError; let anything else through."""
    try:
        yield
    except TransportError as e:
        if e.status == HTTP_NOT_FOUND:
            raise BlobNotFoundError(locator, str(e)) from e
        raise


class BoundedByteSource:
    """Reads one remote channel sequentially, never past the end of `byte_range`.

    The channel requests max(chunk size, destination size) bytes per fetch, so
    near the end of the range the chunk size is shrunk to what remains and the
    destination is clamped. The chunk size goes back to the channel default
    after every fetch. "Near" means closer than the channel's default chunk size.
    """

    def __init__(self, channel: RawChannel, locator: BlobLocator, byte_range: ByteRange,
                 executor: PrivilegedExecutor = direct_executor):
        self._channel = channel
        self.locator = locator
        self.byte_range = byte_range
        self._end = byte_range.end
        self._executor = executor
        self.position = 0  # absolute offset of the next byte

    @classmethod
    def open(cls, client: BlobStoreClient, locator: BlobLocator, byte_range: ByteRange,
             resume_offset: int = 0, executor: PrivilegedExecutor = direct_executor) -> BoundedByteSource:
        """Open a fresh channel positioned at ``byte_range.start + resume_offset``."""
        with _missing_as_not_found(locator):
            channel = executor(lambda: client.open_read_channel(locator))
        source = cls(channel, locator, byte_range, executor)
        target = byte_range.start + resume_offset
        if target > 0:
            try:
                source.seek(target)
            except BaseException:
                source.close_quietly()
                raise
        return source

    def seek(self, offset: int) -> None:
        with _missing_as_not_found(self.locator):
            self._executor(lambda: self._channel.seek(offset))
        self.position = offset

    @property
    def remaining(self) -> int:
        return max(self._end - self.position, 0)

    def readinto(self, buffer) -> int:
        """Fetch into `buffer`, return the byte count; 0 at the end of the range or object."""
        view = memoryview(buffer).cast("B")
        remaining = self._end - self.position
        if remaining <= 0 or len(view) == 0:
            return 0
        if remaining < self._channel.default_chunk_size():
            self._channel.set_chunk_size(remaining)
        if remaining < len(view):
            view = view[:remaining]
        try:
            with _missing_as_not_found(self.locator):
                read = self._executor(lambda: self._channel.fetch(view))
        finally:
            self._channel.set_chunk_size(0)  # back to default
        if read > 0:
            self.position += read
            return read
        return 0

    def is_open(self) -> bool:
        return self._channel.is_open()

    def close(self) -> None:
        self._executor(self._channel.close)

    def close_quietly(self) -> None:
        """Close, discarding any error. Used while another failure is being handled."""
        try:
            self.close()
        except Exception:
            logger.debug("ignoring failure closing channel for [%s]", self.locator, exc_info=True)
