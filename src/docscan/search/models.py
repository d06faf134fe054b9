"""Data structures for keyword searches and their results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

from docscan.extractors.base_extractor import FileType


def parse_keywords(search_text: str) -> List[str]:
    """Split comma-separated input into trimmed, non-empty keywords."""
    return [k.strip() for k in (search_text or "").split(",") if k.strip()]


def parse_file_types(values: Iterable[str]) -> FrozenSet[FileType]:
    """Convert filter names ("excel", "word") to `FileType` members.

    Raises ValueError on unknown names.
    """
    return frozenset(FileType(str(v).strip().lower()) for v in values)


@dataclass(frozen=True, slots=True)
class SearchOptions:
    """Parameters of one search run."""

    root_directory: str
    keywords: Tuple[str, ...]
    case_sensitive: bool = False
    file_types: FrozenSet[FileType] = frozenset({FileType.EXCEL, FileType.WORD})
    cache_enabled: bool = True

    def __post_init__(self) -> None:
        if any(not k for k in self.keywords):
            raise ValueError("keywords must not contain empty strings")

    @classmethod
    def from_input(
        cls,
        directory: str,
        search_text: str,
        *,
        case_sensitive: bool = False,
        file_types: Optional[Iterable[str]] = None,
        cache_enabled: bool = True,
    ) -> "SearchOptions":
        """Build options from raw client input ("foo, bar" style keywords)."""
        types = (
            parse_file_types(file_types)
            if file_types is not None
            else frozenset({FileType.EXCEL, FileType.WORD})
        )
        return cls(
            root_directory=directory,
            keywords=tuple(parse_keywords(search_text)),
            case_sensitive=case_sensitive,
            file_types=types,
            cache_enabled=cache_enabled,
        )


@dataclass(frozen=True, slots=True)
class ExcelMatch:
    """A keyword found in one spreadsheet cell."""

    file: str
    sheet: str
    row: int
    column: int
    content: str
    keyword: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "Excel",
            "file": self.file,
            "sheet": self.sheet,
            "row": self.row,
            "column": self.column,
            "content": self.content,
            "keyword": self.keyword,
        }


@dataclass(frozen=True, slots=True)
class WordMatch:
    """A keyword found in document text, with its surrounding window."""

    file: str
    content: str
    keyword: str
    position: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "Word",
            "file": self.file,
            "content": self.content,
            "keyword": self.keyword,
            "position": self.position,
        }


MatchRecord = Union[ExcelMatch, WordMatch]


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    current: int
    total: int
    percentage: int

    @classmethod
    def compute(cls, current: int, total: int) -> "ProgressEvent":
        """Build an event with floor(current/total*100) clamped to [0, 100]."""
        if total <= 0:
            percentage = 100 if current > 0 else 0
        else:
            percentage = max(0, min(100, (current * 100) // total))
        return cls(current=current, total=total, percentage=percentage)

    def to_dict(self) -> Dict[str, int]:
        return {"current": self.current, "total": self.total, "percentage": self.percentage}


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    """A non-fatal failure on one path."""

    path: str
    message: str
    kind: str = "ScanError"

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "message": self.message, "kind": self.kind}


@dataclass(slots=True)
class SearchSummary:
    """Totals of a finished run, used for logging and tool output."""

    total_files: int = 0
    processed_files: int = 0
    match_count: int = 0
    errors: List[ErrorEvent] = field(default_factory=list)
