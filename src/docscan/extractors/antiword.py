"""Legacy `.doc` text extraction through the external `antiword` program.

antiword reads Word 97-2003 binary documents. Word 2-6 era files, some
fast-saved files and encrypted documents are not supported, and tables come
out as flattened text; all of these failures surface as `DecodeError`.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from docscan.exceptions import DecodeError

ANTIWORD_CANDIDATES = ("antiword", "antiword.exe")
ANTIWORD_TIMEOUT_SECONDS = 60.0


def find_antiword(explicit: Optional[str] = None) -> Optional[str]:
    """Return the antiword executable to use, or None when unavailable."""
    if explicit:
        return shutil.which(explicit) or (explicit if Path(explicit).is_file() else None)
    for candidate in ANTIWORD_CANDIDATES:
        found = shutil.which(candidate)
        if found:
            return found
    return None


def _clean_detail(detail: str) -> str:
    cleaned = " ".join(detail.split())
    if len(cleaned) > 300:
        cleaned = cleaned[:297] + "..."
    return cleaned


def _failure(path: Path, detail: str) -> DecodeError:
    return DecodeError(
        str(path),
        f"{path.name} could not be read; it may be a pre-97 Word file or corrupted ({detail})",
    )


def _run(path: Path, command: List[str]) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=ANTIWORD_TIMEOUT_SECONDS,
        )
    except subprocess.TimeoutExpired as exc:
        raise _failure(path, f"antiword timed out after {exc.timeout:.0f}s") from exc
    except OSError as exc:
        raise _failure(path, f"antiword could not be launched: {exc}") from exc


def extract_doc_text(path: Path, antiword: Optional[str] = None) -> str:
    """Run antiword on `path` and return its plain-text rendition.

    The UTF-8 output map is tried first so non-Latin text survives; the
    default map is the fallback for builds that lack it.
    """
    exe = find_antiword(antiword)
    if not exe:
        raise _failure(path, "antiword executable not found on PATH")

    completed = _run(path, [exe, "-m", "UTF-8.txt", str(path)])
    if completed.returncode != 0:
        completed = _run(path, [exe, str(path)])
    if completed.returncode == 0:
        return (completed.stdout or "").replace("\r\n", "\n")

    message = (completed.stderr or completed.stdout or "").strip()
    detail = f"antiword exit={completed.returncode}"
    if message:
        detail += f": {_clean_detail(message)}"
    raise _failure(path, detail)
