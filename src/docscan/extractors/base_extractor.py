"""Abstract base classes for content extractors.

Extractors turn a file on disk into searchable content: spreadsheets become a
workbook grid, Word documents become one plain-text blob. Concrete
implementations should subclass `BaseExtractor` and implement
`can_extract()` and `decode()`; callers go through `extract()`, which rejects
unsupported files and serves repeat reads from the cache.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Generic, Optional, TypeVar

from docscan.cache.lru_cache import LRUCache
from docscan.exceptions import DecodeError, FileReadError

T = TypeVar("T")


class FileType(str, Enum):
    """File-type filter values accepted by a search."""

    EXCEL = "excel"
    WORD = "word"


EXTENSIONS = {
    FileType.EXCEL: frozenset({".xlsx", ".xls"}),
    FileType.WORD: frozenset({".docx", ".doc"}),
}

# Office lock files ("~$Report.docx") and hidden entries
IGNORED_PREFIXES = ("~$", ".")


def is_ignored(name: str) -> bool:
    """Return True for entries skipped silently regardless of the filter."""
    return name.startswith(IGNORED_PREFIXES)


def classify(name: str) -> Optional[FileType]:
    """Map a file name to its file type by lower-cased extension."""
    suffix = Path(name).suffix.lower()
    for file_type, suffixes in EXTENSIONS.items():
        if suffix in suffixes:
            return file_type
    return None


def read_bytes(path: Path) -> bytes:
    """Read a file fully, raising `FileReadError` on I/O failure."""
    try:
        return path.read_bytes()
    except OSError as exc:
        raise FileReadError(str(path), f"Cannot read file ({exc.strerror or exc})") from exc


class BaseExtractor(ABC, Generic[T]):
    """Abstract extractor interface with optional per-path caching."""

    def __init__(self, cache: Optional[LRUCache[T]] = None) -> None:
        # None disables both cache reads and writes
        self._cache = cache

    @abstractmethod
    def can_extract(self, path: Path) -> bool:
        """Return True if this extractor can handle the given file."""

    @abstractmethod
    def decode(self, path: Path) -> T:
        """Decode the file without consulting the cache.

        Implementations should raise `FileReadError` or `DecodeError` on failure.
        """
        raise NotImplementedError

    def extract(self, path: Path) -> T:
        """Return searchable content for `path`, served from cache when possible."""
        if not self.can_extract(path):
            raise DecodeError(str(path), f"Unsupported file extension {path.suffix!r}")
        key = str(path)
        if self._cache is not None:
            cached = self._cache.get(key)
            if cached is not None:
                return cached
        content = self.decode(path)
        if self._cache is not None:
            self._cache.set(key, content)
        return content
