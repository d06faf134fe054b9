"""Two-pass directory traversal feeding a bounded pool of search workers.

Pass 1 counts eligible files so progress can be reported as a percentage.
Pass 2 pushes directories and eligible files through an `asyncio.Queue`
consumed by a fixed number of worker tasks; blocking work (listing a
directory, reading and decoding a file) runs on worker threads, matching runs
on the event loop. `queue.join()` marks the end of the run.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import AbstractSet, List, Optional, Tuple

from docscan.cache.document_cache import Workbook
from docscan.exceptions import DirectoryReadError, ScanError
from docscan.extractors.base_extractor import FileType, classify, is_ignored
from docscan.extractors.excel_extractor import ExcelExtractor
from docscan.extractors.word_extractor import WordExtractor
from docscan.logging_setup import get_logger

from .aggregator import ResultAggregator
from .events import SearchListener
from .markup_filter import MarkupPolicy, keep_window
from .matcher import (
    DEFAULT_CONTEXT_CHARS,
    find_cell_matches,
    find_text_matches,
    order_by_position,
)
from .models import ErrorEvent, ExcelMatch, MatchRecord, ProgressEvent, SearchOptions, WordMatch

logger = get_logger(__name__)

DEFAULT_CONCURRENCY = 5

# (path, is_directory, file type for files)
_WorkItem = Tuple[Path, bool, Optional[FileType]]


def list_directory(directory: Path) -> List[os.DirEntry]:
    """List a directory sorted by name, raising `DirectoryReadError` on failure."""
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda e: e.name)
    except OSError as exc:
        raise DirectoryReadError(
            str(directory), f"Cannot read directory ({exc.strerror or exc})"
        ) from exc


def _is_dir(entry: os.DirEntry) -> bool:
    # Directory symlinks are not followed so link cycles cannot recurse forever
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def _eligible_type(entry: os.DirEntry, file_types: AbstractSet[FileType]) -> Optional[FileType]:
    try:
        if not entry.is_file():
            return None
    except OSError:
        return None
    file_type = classify(entry.name)
    return file_type if file_type in file_types else None


def count_eligible_files(
    root: Path, file_types: AbstractSet[FileType], errors: List[ScanError]
) -> int:
    """Depth-first count of eligible files below `root`.

    Unreadable directories are appended to `errors` and skipped.
    """
    if not file_types:
        return 0
    total = 0
    try:
        entries = list_directory(root)
    except DirectoryReadError as exc:
        errors.append(exc)
        return 0
    for entry in entries:
        if is_ignored(entry.name):
            continue
        if _is_dir(entry):
            total += count_eligible_files(Path(entry.path), file_types, errors)
        elif _eligible_type(entry, file_types) is not None:
            total += 1
    return total


class Traverser:
    """Runs one search over a directory tree."""

    def __init__(
        self,
        options: SearchOptions,
        *,
        excel: ExcelExtractor,
        word: WordExtractor,
        listener: Optional[SearchListener] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        context_chars: int = DEFAULT_CONTEXT_CHARS,
        markup_policy: Optional[MarkupPolicy] = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.options = options
        self._excel = excel
        self._word = word
        self._listener = listener
        self._concurrency = concurrency
        self._context_chars = context_chars
        self._markup_policy = markup_policy

        self.aggregator = ResultAggregator()
        self.errors: List[ErrorEvent] = []
        self.total = 0
        self.processed = 0
        self._progress_lock = asyncio.Lock()
        self._failure: Optional[BaseException] = None

    # ----- reporting -----

    def _report_error(self, exc: ScanError) -> None:
        event = ErrorEvent(path=exc.path, message=exc.message, kind=type(exc).__name__)
        self.errors.append(event)
        logger.warning("Search error", path=exc.path, kind=event.kind, error=exc.message)
        if self._listener is not None:
            self._listener.on_error(event)

    async def _tick(self) -> None:
        async with self._progress_lock:
            self.processed += 1
            event = ProgressEvent.compute(self.processed, self.total)
            if self._listener is not None:
                self._listener.on_progress(event)

    # ----- matching -----

    def _match_workbook(self, path: Path, workbook: Workbook) -> List[MatchRecord]:
        keywords = self.options.keywords
        case_sensitive = self.options.case_sensitive
        records: List[MatchRecord] = []
        for sheet, row, column, text in ExcelExtractor.iter_cells(workbook):
            for keyword in find_cell_matches(text, keywords, case_sensitive):
                records.append(
                    ExcelMatch(
                        file=str(path),
                        sheet=sheet,
                        row=row,
                        column=column,
                        content=text,
                        keyword=keyword,
                    )
                )
        return records

    def _match_text(self, path: Path, text: str) -> List[MatchRecord]:
        spans = find_text_matches(
            text,
            self.options.keywords,
            self.options.case_sensitive,
            context=self._context_chars,
        )
        policy = self._markup_policy if WordExtractor.is_legacy(path) else None
        return [
            WordMatch(file=str(path), content=s.content, keyword=s.keyword, position=s.position)
            for s in order_by_position(spans)
            if s.content and keep_window(s.content, policy)
        ]

    # ----- work items -----

    async def _process_file(self, path: Path, file_type: FileType) -> None:
        records: List[MatchRecord] = []
        try:
            if file_type is FileType.EXCEL:
                workbook = await asyncio.to_thread(self._excel.extract, path)
                records = self._match_workbook(path, workbook)
            else:
                text = await asyncio.to_thread(self._word.extract, path)
                records = self._match_text(path, text)
        except ScanError as exc:
            records = []
            self._report_error(exc)
        self.aggregator.extend(records)
        await self._tick()

    async def _process_directory(
        self, directory: Path, queue: "asyncio.Queue[_WorkItem]"
    ) -> None:
        try:
            entries = await asyncio.to_thread(list_directory, directory)
        except DirectoryReadError as exc:
            self._report_error(exc)
            return
        for entry in entries:
            if is_ignored(entry.name):
                continue
            if _is_dir(entry):
                queue.put_nowait((Path(entry.path), True, None))
                continue
            file_type = _eligible_type(entry, self.options.file_types)
            if file_type is not None:
                queue.put_nowait((Path(entry.path), False, file_type))

    async def _worker(self, queue: "asyncio.Queue[_WorkItem]") -> None:
        while True:
            path, is_dir, file_type = await queue.get()
            try:
                if is_dir:
                    await self._process_directory(path, queue)
                elif file_type is not None:
                    await self._process_file(path, file_type)
            except Exception as exc:
                # Unexpected failures end the run once the queue drains
                if self._failure is None:
                    self._failure = exc
            finally:
                queue.task_done()

    # ----- entry point -----

    async def run(self) -> List[MatchRecord]:
        """Count, then search; returns records in arrival order."""
        root = Path(self.options.root_directory)
        file_types = self.options.file_types
        if not self.options.keywords or not file_types:
            return []

        count_errors: List[ScanError] = []
        self.total = await asyncio.to_thread(count_eligible_files, root, file_types, count_errors)
        for exc in count_errors:
            self._report_error(exc)

        queue: asyncio.Queue[_WorkItem] = asyncio.Queue()
        queue.put_nowait((root, True, None))
        workers = [asyncio.create_task(self._worker(queue)) for _ in range(self._concurrency)]
        try:
            await queue.join()
        finally:
            for task in workers:
                task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        if self._failure is not None:
            raise self._failure
        return self.aggregator.results()
