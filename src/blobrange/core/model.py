from __future__ import annotations
import io
from dataclasses import dataclass
from typing import Sequence

MAX_OFFSET = 2**63 - 1   # sentinel end for unbounded ranges
HTTP_NOT_FOUND = 404


@dataclass(frozen=True, slots=True)
class BlobLocator:
    container: str
    name: str

    def __str__(self) -> str:
        return f"{self.container}/{self.name}"


@dataclass(frozen=True, slots=True)
class ByteRange:
    """Half-open window ``[start, start + length)`` over a blob.

    ``length`` of ``None`` (or any negative value) means the range runs to the
    natural end of the object.
    """
    start: int = 0
    length: int | None = None

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"start must be non-negative, got {self.start}")

    @property
    def bounded(self) -> bool:
        return self.end != MAX_OFFSET

    @property
    def end(self) -> int:
        if self.length is None or self.length < 0:
            return MAX_OFFSET
        end = self.start + self.length
        return end if end <= MAX_OFFSET else MAX_OFFSET


@dataclass(frozen=True, slots=True)
class FailureRecord:
    error: BaseException
    offset: int          # bytes delivered when the failure happened
    attempt: int

    def __str__(self) -> str:
        return f"attempt {self.attempt} at offset {self.offset}: {self.error!r}"


class BlobRangeError(Exception):
    """Base class for every error raised by blobrange."""
    pass


class BlobNotFoundError(BlobRangeError, FileNotFoundError):
    """Raised when the blob does not exist. Never retried."""

    def __init__(self, locator: BlobLocator, detail: str | None = None,
                 suppressed: Sequence[FailureRecord] = ()):
        message = f"Blob object [{locator.name}] not found"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.locator = locator
        self.suppressed: tuple[FailureRecord, ...] = tuple(suppressed)

    def __str__(self) -> str:
        return self.args[0]


class RetryBudgetExhaustedError(BlobRangeError, IOError):
    """Raised when every attempt of a read session failed.

    ``__cause__`` is the final failure; ``suppressed`` holds the earlier
    retried failures, oldest first. Failures beyond the capacity of the
    suppressed list are lost.
    """

    def __init__(self, locator: BlobLocator, attempts: int,
                 suppressed: Sequence[FailureRecord] = ()):
        super().__init__(f"Failed reading [{locator}] after {attempts} attempt(s)")
        self.locator = locator
        self.attempts = attempts
        self.suppressed: tuple[FailureRecord, ...] = tuple(suppressed)

    def __str__(self) -> str:
        return self.args[0]


class MisuseError(BlobRangeError, RuntimeError):
    """Raised on a caller programming error. Never retried."""
    pass


class StreamClosedError(MisuseError, ValueError):
    """Raised when a stream is used after close()."""
    pass


class StreamStateError(MisuseError):
    """Raised when a stream is used after a terminal failure."""
    pass


class UnsupportedStreamOperation(MisuseError, io.UnsupportedOperation):
    """Raised by any repositioning or write-style call on a forward-only stream."""
    pass


class TransportError(BlobRangeError, IOError):
    """A failure reported by the blob store transport.

    ``status`` is the remote status code when one is known. A status of 404
    means the object is missing; anything else is considered transient.
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.args[0]
        return f"{self.args[0]} (status {self.status})"
