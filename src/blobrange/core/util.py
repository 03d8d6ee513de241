from __future__ import annotations
from typing import Any, Dict, Iterator

from .model import FailureRecord

MAX_SUPPRESSED_FAILURES = 10


class SuppressedFailures:
    """Fixed-capacity, oldest-first list of retried failures.

    Records offered once the list is full are dropped silently; no count of
    dropped entries is kept.
    """

    def __init__(self, capacity: int = MAX_SUPPRESSED_FAILURES) -> None:
        self.capacity = capacity
        self._records: list[FailureRecord] = []

    def offer(self, record: FailureRecord) -> bool:
        if len(self._records) >= self.capacity:
            return False
        self._records.append(record)
        return True

    def snapshot(self) -> tuple[FailureRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[FailureRecord]:
        return iter(self._records)


def error_asdict(err: BaseException) -> Dict[str, Any]:
    """Return a JSON-serialisable summary of a terminal read error."""
    payload: Dict[str, Any] = {"error": str(err), "type": type(err).__name__}
    suppressed = getattr(err, "suppressed", ())
    if suppressed:
        payload["suppressed"] = [str(rec) for rec in suppressed]
    if err.__cause__ is not None:
        payload["cause"] = repr(err.__cause__)
    return payload
