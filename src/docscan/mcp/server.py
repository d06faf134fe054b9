"""docscan MCP server entrypoint using FastMCP.

Exposes keyword search over local Word and Excel documents as MCP tools.
Run with:
  - docscan-mcp
  - or: python -m docscan.mcp.server (ensure PYTHONPATH includes ./src)
"""
from __future__ import annotations

from typing import Optional

from fastmcp import FastMCP

from docscan.cache.document_cache import DocumentCache
from docscan.config import Settings, load_settings
from docscan.logging_setup import get_logger, setup_logging
from docscan.mcp.tools import register_search_tools
from docscan.search.engine import SearchEngine

logger = get_logger(__name__)


class AppState:
    """Application state shared by MCP tools."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.engine: Optional[SearchEngine] = None

    def init_engine(self) -> None:
        """Create the search engine and its process-wide cache from configuration."""
        cfg = self.settings.search
        self.engine = SearchEngine(cfg, cache=DocumentCache(cfg.cache_max_entries))


# Global state and server instance
_state: Optional[AppState] = None
mcp = FastMCP("docscan MCP Server")


# ----- Tools -----

@mcp.tool
def health() -> str:
    """Simple health check tool."""
    return "ok"


# ----- Entrypoint -----

def main() -> None:
    """Initialize state and run the MCP server."""
    global _state
    settings = load_settings()
    setup_logging(settings)
    _state = AppState(settings)
    _state.init_engine()
    register_search_tools(mcp, get_state=lambda: _state)
    # Choose transport based on configuration: stdio (default), http, or sse
    transport = settings.app.transport
    logger.info("Starting MCP server", transport=transport)
    if transport in ("http", "sse"):
        mcp.run(transport=transport, host=settings.app.host, port=settings.app.port)
    else:
        mcp.run()


if __name__ == "__main__":  # pragma: no cover
    main()
