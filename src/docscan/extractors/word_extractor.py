"""Word extractor producing one plain-text blob per document.

`.docx` files are decoded in-process with python-docx; legacy `.doc` files go
through antiword (see `docscan.extractors.antiword`).
"""

from __future__ import annotations

from functools import partial
from io import BytesIO
from pathlib import Path
from typing import Callable, List, Optional

from docx import Document

from docscan.cache.lru_cache import LRUCache
from docscan.exceptions import DecodeError

from .antiword import extract_doc_text
from .base_extractor import EXTENSIONS, BaseExtractor, FileType, read_bytes

DocxDecoder = Callable[[bytes], str]
DocDecoder = Callable[[Path], str]

PARAGRAPH_SEPARATOR = "\n\n"


def decode_docx(data: bytes) -> str:
    """Raw text of a .docx: body paragraphs, then table rows (cells tab-joined)."""
    doc = Document(BytesIO(data))
    blocks: List[str] = [p.text for p in doc.paragraphs]
    for table in doc.tables:
        for row in table.rows:
            blocks.append("\t".join(cell.text for cell in row.cells))
    return PARAGRAPH_SEPARATOR.join(blocks)


class WordExtractor(BaseExtractor[str]):
    """Extractor for `.docx` and legacy `.doc` documents."""

    def __init__(
        self,
        cache: Optional[LRUCache[str]] = None,
        *,
        antiword_path: Optional[str] = None,
        docx_decoder: Optional[DocxDecoder] = None,
        doc_decoder: Optional[DocDecoder] = None,
    ) -> None:
        super().__init__(cache)
        self._docx_decoder = docx_decoder or decode_docx
        self._doc_decoder = doc_decoder or partial(extract_doc_text, antiword=antiword_path)

    def can_extract(self, path: Path) -> bool:
        return path.suffix.lower() in EXTENSIONS[FileType.WORD]

    def decode(self, path: Path) -> str:
        suffix = path.suffix.lower()
        if suffix == ".docx":
            data = read_bytes(path)
            try:
                return self._docx_decoder(data)
            except Exception as exc:
                raise DecodeError(str(path), f"Cannot extract Word text ({exc})") from exc
        if suffix == ".doc":
            # antiword failures already carry a descriptive DecodeError
            return self._doc_decoder(path)
        raise DecodeError(str(path), f"Unsupported document extension {path.suffix!r}")

    @staticmethod
    def is_legacy(path: Path) -> bool:
        return path.suffix.lower() == ".doc"
