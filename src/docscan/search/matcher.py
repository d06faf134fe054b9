"""Plain substring keyword matching (no regex, no fuzzy matching).

Case-insensitive matching lower-cases both needle and haystack with
`str.lower()`. Some characters grow when lowered ("İ" becomes two code
points); the haystack then carries an offset map so positions and windows
still index the original text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

DEFAULT_CONTEXT_CHARS = 50


@dataclass(frozen=True, slots=True)
class TextSpan:
    keyword: str
    position: int
    content: str


def find_cell_matches(text: str, keywords: Sequence[str], case_sensitive: bool) -> List[str]:
    """Return the keywords contained in a cell, in keyword order.

    The whole cell is the match unit: each keyword matches at most once.
    """
    if not text:
        return []
    haystack = text if case_sensitive else text.lower()
    return [k for k in keywords if (k if case_sensitive else k.lower()) in haystack]


def _fold(text: str, case_sensitive: bool) -> Tuple[str, Optional[List[int]]]:
    """Return the search haystack and, when lengths differ, its map to `text` offsets."""
    if case_sensitive:
        return text, None
    lowered = text.lower()
    if len(lowered) == len(text):
        return lowered, None
    parts: List[str] = []
    origin: List[int] = []
    for i, ch in enumerate(text):
        low = ch.lower()
        parts.append(low)
        origin.extend([i] * len(low))
    return "".join(parts), origin


def find_text_matches(
    text: str,
    keywords: Sequence[str],
    case_sensitive: bool,
    *,
    context: int = DEFAULT_CONTEXT_CHARS,
) -> List[TextSpan]:
    """Find every occurrence of every keyword in `text`.

    Scanning resumes one character after each hit, so overlapping occurrences
    of the same keyword are all reported. Spans come keyword by keyword, each
    keyword's spans in ascending position.
    """
    if not text:
        return []
    haystack, origin = _fold(text, case_sensitive)
    spans: List[TextSpan] = []
    for keyword in keywords:
        needle = keyword if case_sensitive else keyword.lower()
        if not needle:
            continue
        index = haystack.find(needle)
        while index != -1:
            last = index + len(needle) - 1
            if origin is None:
                position, match_end = index, last + 1
            else:
                position, match_end = origin[index], origin[last] + 1
            start = max(0, position - context)
            end = min(len(text), match_end + context)
            spans.append(TextSpan(keyword=keyword, position=position, content=text[start:end]))
            index = haystack.find(needle, index + 1)
    return spans


def order_by_position(spans: Sequence[TextSpan]) -> List[TextSpan]:
    """Stable sort by offset; same-offset spans keep keyword order."""
    return sorted(spans, key=lambda s: s.position)
