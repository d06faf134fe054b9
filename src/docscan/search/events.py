"""Progress and error reporting from a running search.

The engine writes to a `SearchListener`; clients pick an implementation:
`CollectingListener` keeps everything in memory, `QueueListener` is a channel
another task drains while the search runs.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, List, Optional, Protocol, Union

from .models import ErrorEvent, ProgressEvent

SearchEvent = Union[ProgressEvent, ErrorEvent]


class SearchListener(Protocol):
    """Observer for search progress and per-path errors."""

    def on_progress(self, event: ProgressEvent) -> None: ...

    def on_error(self, event: ErrorEvent) -> None: ...


class CollectingListener:
    """Keeps every event for inspection after the run."""

    def __init__(self) -> None:
        self.progress: List[ProgressEvent] = []
        self.errors: List[ErrorEvent] = []

    def on_progress(self, event: ProgressEvent) -> None:
        self.progress.append(event)

    def on_error(self, event: ErrorEvent) -> None:
        self.errors.append(event)

    @property
    def last_progress(self) -> Optional[ProgressEvent]:
        return self.progress[-1] if self.progress else None


class QueueListener:
    """Message channel for events; `close()` ends the `events()` stream."""

    _CLOSED = object()

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()

    def on_progress(self, event: ProgressEvent) -> None:
        self._queue.put_nowait(event)

    def on_error(self, event: ErrorEvent) -> None:
        self._queue.put_nowait(event)

    def close(self) -> None:
        self._queue.put_nowait(self._CLOSED)

    async def events(self) -> AsyncIterator[SearchEvent]:
        """Yield events in emission order until the channel is closed."""
        while True:
            item = await self._queue.get()
            if item is self._CLOSED:
                return
            yield item  # type: ignore[misc]
