"""MCP server exposing the search engine."""
