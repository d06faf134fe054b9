"""Append-only collection of match records shared by all workers."""

from __future__ import annotations

from threading import Lock
from typing import Iterable, List

from .models import MatchRecord


class ResultAggregator:
    """Collects records in arrival order; one file's records land together."""

    def __init__(self) -> None:
        self._records: List[MatchRecord] = []
        self._lock = Lock()

    def extend(self, records: Iterable[MatchRecord]) -> int:
        """Append a file's complete record list atomically; return how many."""
        batch = list(records)
        with self._lock:
            self._records.extend(batch)
        return len(batch)

    def results(self) -> List[MatchRecord]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
