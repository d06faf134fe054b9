"""Keyword search engine: traversal, matching and reporting."""
