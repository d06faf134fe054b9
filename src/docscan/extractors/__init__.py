"""Content extractors turning Office files into searchable content."""

from .base_extractor import BaseExtractor, FileType, classify, is_ignored
from .excel_extractor import ExcelExtractor
from .word_extractor import WordExtractor

__all__ = [
    "BaseExtractor",
    "ExcelExtractor",
    "FileType",
    "WordExtractor",
    "classify",
    "is_ignored",
]
