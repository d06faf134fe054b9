"""Document search tools for FastMCP.

These tools wrap `SearchEngine` so an agent (or any MCP client) can pick a
root directory, search its Word and Excel files and manage the content cache.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from fastmcp import FastMCP

from docscan.search.engine import SearchEngine
from docscan.search.events import CollectingListener
from docscan.search.models import SearchOptions, parse_file_types, parse_keywords


def _get_engine(get_state: Callable[[], Any]) -> SearchEngine:
    state = get_state()
    engine = getattr(state, "engine", None) if state is not None else None
    if engine is None:
        raise RuntimeError("Search engine is not initialized.")
    return engine


def register_search_tools(mcp: FastMCP, get_state: Callable[[], Any]) -> None:
    """Register search tools on the given FastMCP instance.

    The `get_state` callable should return an object with attributes `engine`
    (a `SearchEngine`) and `settings`.
    """

    @mcp.tool
    def select_root(path: Optional[str] = None) -> Dict[str, Any]:
        """Choose a new root directory; clears all cached document content.

        Parameters
        ----------
        path: str | None
            Directory to search. Omit to only reset the caches.
        """
        engine = _get_engine(get_state)
        root = engine.select_root(path)
        return {"root": root, "cache": engine.get_cache_info().to_dict()}

    @mcp.tool
    async def search_documents(
        directory: str,
        keywords: str,
        case_sensitive: bool = False,
        file_types: Optional[List[str]] = None,
        enable_cache: bool = True,
    ) -> Dict[str, Any]:
        """Search Word (.doc/.docx) and Excel (.xls/.xlsx) files under `directory`.

        Parameters
        ----------
        directory: str
            Root directory; searched recursively. Hidden files and Office lock
            files ("~$...") are skipped.
        keywords: str
            Comma-separated keywords, e.g. "invoice, 2024". Plain substrings.
        case_sensitive: bool
            Match case exactly (default False).
        file_types: list[str] | None
            Any of "excel", "word". Defaults to the configured file types.
        enable_cache: bool
            Reuse parsed content from earlier searches (default True).
        """
        engine = _get_engine(get_state)
        if not parse_keywords(keywords):
            raise ValueError("at least one keyword is required")
        if file_types is None:
            state = get_state()
            file_types = list(state.settings.search.default_file_types)
        try:
            parse_file_types(file_types)
        except ValueError as exc:
            raise ValueError(f"Unknown file type in {file_types!r}; use 'excel' or 'word'") from exc

        options = SearchOptions.from_input(
            directory,
            keywords,
            case_sensitive=case_sensitive,
            file_types=file_types,
            cache_enabled=enable_cache,
        )
        listener = CollectingListener()
        results = await engine.search(options, listener)
        last = listener.last_progress
        return {
            "results": [r.to_dict() for r in results],
            "errors": [e.to_dict() for e in listener.errors],
            "progress": last.to_dict() if last else {"current": 0, "total": 0, "percentage": 0},
        }

    @mcp.tool
    def clear_cache() -> Dict[str, int]:
        """Drop all cached workbooks and document text; returns the new counts."""
        return _get_engine(get_state).clear_cache().to_dict()

    @mcp.tool
    def get_cache_info() -> Dict[str, int]:
        """Return how many Word and Excel files are currently cached."""
        return _get_engine(get_state).get_cache_info().to_dict()
