from __future__ import annotations
from enum import Enum

from .model import BlobNotFoundError, HTTP_NOT_FOUND, TransportError


class FailureKind(Enum):
    NOT_FOUND = "not_found"     # terminal, never retried
    RETRYABLE = "retryable"     # transient transport failure
    MISUSE = "misuse"           # propagated unchanged


class FailureClassifier:
    """Decide whether a failure seen while reading a blob may be retried.

    The classifier only looks at the error. Whether budget remains is the
    stream's decision.
    """

    def classify(self, error: BaseException) -> FailureKind:
        if isinstance(error, BlobNotFoundError):
            return FailureKind.NOT_FOUND
        if isinstance(error, TransportError):
            if error.status == HTTP_NOT_FOUND:
                return FailureKind.NOT_FOUND
            return FailureKind.RETRYABLE
        return FailureKind.MISUSE


# default used project-wide
CLASSIFIER = FailureClassifier()
