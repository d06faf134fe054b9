"""Core-facing search API.

`SearchEngine` owns the process-wide `DocumentCache` and builds a fresh
`Traverser` per run. Clients (the MCP tools, or any other front end) call
`select_root`, `search`, `clear_cache` and `get_cache_info`.
"""

from __future__ import annotations

import time
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

from docscan.cache.document_cache import CacheInfo, DocumentCache
from docscan.config import SearchConfig
from docscan.exceptions import InvalidRootError
from docscan.extractors.excel_extractor import ExcelDecoder, ExcelExtractor
from docscan.extractors.word_extractor import DocDecoder, DocxDecoder, WordExtractor
from docscan.logging_setup import get_logger

from .events import SearchListener
from .markup_filter import MarkupPolicy, looks_like_markup
from .models import MatchRecord, SearchOptions, SearchSummary
from .traverser import Traverser

logger = get_logger(__name__)


class _Default(Enum):
    """Marks "use the configured markup policy"; `None` disables filtering."""

    POLICY = "policy"


_DEFAULT = _Default.POLICY


def resolve_root(directory: Optional[str]) -> Path:
    """Return the absolute root directory or raise `InvalidRootError`."""
    if not directory or not str(directory).strip():
        raise InvalidRootError("A root directory is required")
    root = Path(str(directory).strip()).expanduser()
    if not root.is_dir():
        raise InvalidRootError(f"Not a directory: {root}")
    return root.resolve()


class SearchEngine:
    """Keyword search over Word and Excel documents below a root directory."""

    def __init__(
        self,
        config: Optional[SearchConfig] = None,
        *,
        cache: Optional[DocumentCache] = None,
        excel_decoders: Optional[Mapping[str, ExcelDecoder]] = None,
        docx_decoder: Optional[DocxDecoder] = None,
        doc_decoder: Optional[DocDecoder] = None,
        markup_policy: Union[Optional[MarkupPolicy], _Default] = _DEFAULT,
    ) -> None:
        self.config = config or SearchConfig()
        self.cache = cache or DocumentCache(self.config.cache_max_entries)
        self._excel_decoders = excel_decoders
        self._docx_decoder = docx_decoder
        self._doc_decoder = doc_decoder
        self._markup_policy: Optional[MarkupPolicy]
        if isinstance(markup_policy, _Default):
            self._markup_policy = looks_like_markup if self.config.filter_legacy_markup else None
        else:
            self._markup_policy = markup_policy
        self._running = 0
        self.last_summary: Optional[SearchSummary] = None

    def select_root(self, directory: Optional[str]) -> Optional[str]:
        """Start over on a new root: clears both caches.

        `None` means the user cancelled the picker; caches are still cleared.
        """
        before = self.cache.clear()
        logger.info("Caches cleared for new root", **before.to_dict())
        if directory is None:
            return None
        return str(resolve_root(directory))

    def clear_cache(self) -> CacheInfo:
        """Empty both caches and return the (now zero) entry counts."""
        stats: Dict[str, object] = {
            "excel": self.cache.excel.get_stats(),
            "word": self.cache.word.get_stats(),
        }
        before = self.cache.clear()
        logger.info("Caches cleared", **before.to_dict(), stats=stats)
        return self.cache.info()

    def get_cache_info(self) -> CacheInfo:
        return self.cache.info()

    def _extractors(self, cache_enabled: bool) -> Tuple[ExcelExtractor, WordExtractor]:
        excel = ExcelExtractor(
            self.cache.excel if cache_enabled else None, decoders=self._excel_decoders
        )
        word = WordExtractor(
            self.cache.word if cache_enabled else None,
            antiword_path=self.config.antiword_path,
            docx_decoder=self._docx_decoder,
            doc_decoder=self._doc_decoder,
        )
        return excel, word

    async def search(
        self, options: SearchOptions, listener: Optional[SearchListener] = None
    ) -> List[MatchRecord]:
        """Run one search and return every match in arrival order.

        Raises `InvalidRootError` before traversing when the root is not a
        directory; every other failure is reported through `listener`.
        """
        root = resolve_root(options.root_directory)
        if self._running:
            logger.warning("Search started while another run is in progress", root=str(root))

        excel, word = self._extractors(options.cache_enabled)
        traverser = Traverser(
            replace(options, root_directory=str(root)),
            excel=excel,
            word=word,
            listener=listener,
            concurrency=self.config.concurrency,
            context_chars=self.config.context_chars,
            markup_policy=self._markup_policy,
        )
        logger.info(
            "Search started",
            root=str(root),
            keywords=len(options.keywords),
            file_types=sorted(t.value for t in options.file_types),
            cache_enabled=options.cache_enabled,
        )
        started = time.perf_counter()
        self._running += 1
        try:
            results = await traverser.run()
        finally:
            self._running -= 1

        self.last_summary = SearchSummary(
            total_files=traverser.total,
            processed_files=traverser.processed,
            match_count=len(results),
            errors=list(traverser.errors),
        )
        logger.info(
            "Search finished",
            root=str(root),
            total_files=traverser.total,
            processed_files=traverser.processed,
            matches=len(results),
            errors=len(traverser.errors),
            elapsed_ms=int((time.perf_counter() - started) * 1000),
        )
        return results
