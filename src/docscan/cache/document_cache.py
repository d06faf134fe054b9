"""The pair of caches shared by all workers of a search run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from docscan.cache.lru_cache import DEFAULT_MAX_ENTRIES, LRUCache

# sheet name -> rows -> cell text
Workbook = Dict[str, List[List[str]]]


@dataclass(frozen=True, slots=True)
class CacheInfo:
    """Entry counts per content kind."""

    word_entry_count: int
    excel_entry_count: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "word_entry_count": self.word_entry_count,
            "excel_entry_count": self.excel_entry_count,
        }


class DocumentCache:
    """Two independent LRU caches: parsed workbooks and extracted Word text."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self.excel: LRUCache[Workbook] = LRUCache(max_entries)
        self.word: LRUCache[str] = LRUCache(max_entries)

    def info(self) -> CacheInfo:
        return CacheInfo(word_entry_count=len(self.word), excel_entry_count=len(self.excel))

    def clear(self) -> CacheInfo:
        """Empty both caches and return the counts they held before."""
        return CacheInfo(
            word_entry_count=self.word.clear(),
            excel_entry_count=self.excel.clear(),
        )
