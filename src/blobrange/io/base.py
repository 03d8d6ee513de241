"""Base protocols and shared types for the transport layer."""

from typing import Callable, Protocol, TypeVar, runtime_checkable

from ..core.config import DEFAULT_CHUNK_SIZE
from ..core.model import (
    BlobLocator, BlobRangeError, HTTP_NOT_FOUND, TransportError, UnsupportedStreamOperation,
)

T = TypeVar("T")


class RangeNotSupportedError(BlobRangeError):
    """Raised when the server ignores the Range header."""


@runtime_checkable
class RawChannel(Protocol):
    """A seekable, chunked read channel onto one remote object."""

    def seek(self, offset: int) -> None:
        """Position the next fetch at absolute `offset`."""
        ...

    def set_chunk_size(self, size: int) -> None:
        """Set the size of the next remote request; 0 restores the default."""
        ...

    def default_chunk_size(self) -> int:
        """Request size used when no chunk size has been set."""
        ...

    def fetch(self, buffer: memoryview) -> int:
        """Fill `buffer` from the current position, return the count, 0 at end of object.
        A missing object raises TransportError with status 404.
        """
        ...

    def is_open(self) -> bool:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class BlobStoreClient(Protocol):
    """Factory of read channels plus the transport's own retry budget."""

    def open_read_channel(self, locator: BlobLocator) -> RawChannel:
        ...

    def max_transport_attempts(self) -> int:
        ...


# run(operation) -> result, failures propagate unchanged
PrivilegedExecutor = Callable[[Callable[[], T]], T]


def direct_executor(operation: Callable[[], T]) -> T:
    """Pass-through executor: run the operation in the caller's context."""
    return operation()


__all__ = [
    "DEFAULT_CHUNK_SIZE", "HTTP_NOT_FOUND",
    "TransportError", "RangeNotSupportedError", "UnsupportedStreamOperation",
    "RawChannel", "BlobStoreClient", "PrivilegedExecutor", "direct_executor",
]
