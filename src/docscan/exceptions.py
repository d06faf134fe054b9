"""Custom exception hierarchy for docscan.

These exceptions allow callers to discriminate error categories
and handle them appropriately while preserving the original context.
"""

from __future__ import annotations


class DocscanError(Exception):
    """Base class for all docscan exceptions."""


class ConfigError(DocscanError):
    """Raised when configuration loading or validation fails."""


class InvalidRootError(DocscanError):
    """Raised when the search root is missing or not a directory."""


class ScanError(DocscanError):
    """A per-path failure that is reported and skipped, never fatal to a run."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path
        self.message = message


class DirectoryReadError(ScanError):
    """Raised when a directory cannot be listed (missing, unreadable, etc.)."""


class FileReadError(ScanError):
    """Raised when a file's bytes cannot be read from disk."""


class DecodeError(ScanError):
    """Raised when a document fails to decode (corrupt or unsupported format)."""
