"""Heuristic policy that flags context windows which look like document markup.

Text pulled out of legacy `.doc` files occasionally carries fragments of the
document's own structure (field codes, embedded XML, link targets). A window
is flagged when any of these hold:

- it contains at least two characteristic markup tokens;
- it starts with a bare ``scheme://`` prefix;
- commas, slashes and colons make up more than 15% of a window of 20+ chars.

This is best-effort. Prose that discusses XML or lists paths can be dropped
(false positive) and markup without the listed tokens slips through (false
negative). Callers treat it as a swappable `Callable[[str], bool]`.
"""

from __future__ import annotations

import re
from typing import Callable, Optional

MarkupPolicy = Callable[[str], bool]

MARKUP_TOKENS = (
    "<w:",
    "</",
    "/>",
    "xmlns",
    "<?xml",
    "w:val",
    "w:rsid",
    "HYPERLINK",
    "MERGEFORMAT",
)
MIN_MARKUP_TOKENS = 2

_BARE_URL = re.compile(r"^\s*[A-Za-z][A-Za-z0-9+.\-]*://")

PUNCTUATION_DENSITY_THRESHOLD = 0.15
MIN_DENSITY_LENGTH = 20


def looks_like_markup(window: str) -> bool:
    if not window:
        return False
    if sum(1 for token in MARKUP_TOKENS if token in window) >= MIN_MARKUP_TOKENS:
        return True
    if _BARE_URL.match(window):
        return True
    stripped = window.strip()
    if len(stripped) >= MIN_DENSITY_LENGTH:
        density = sum(1 for ch in stripped if ch in ",/:") / len(stripped)
        if density > PUNCTUATION_DENSITY_THRESHOLD:
            return True
    return False


def keep_window(window: str, policy: Optional[MarkupPolicy]) -> bool:
    """True when `window` should be reported under `policy` (None keeps all)."""
    return policy is None or not policy(window)
