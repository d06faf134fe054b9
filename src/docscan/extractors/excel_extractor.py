"""Spreadsheet extractor for `.xlsx` (openpyxl) and `.xls` (xlrd) workbooks.

Every sheet is materialised as a grid of strings. The header row is kept as
ordinary data, so row numbers match what a user sees in Excel.
"""

from __future__ import annotations

import datetime as dt
from io import BytesIO
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple

import openpyxl
import xlrd

from docscan.cache.document_cache import Workbook
from docscan.cache.lru_cache import LRUCache
from docscan.exceptions import DecodeError

from .base_extractor import EXTENSIONS, BaseExtractor, FileType, read_bytes

ExcelDecoder = Callable[[bytes], Workbook]


def cell_to_text(value: Any) -> str:
    """Coerce a decoded cell value to the text a user would see."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    return str(value)


def decode_xlsx(data: bytes) -> Workbook:
    wb = openpyxl.load_workbook(BytesIO(data), data_only=True)
    try:
        sheets: Workbook = {}
        for sheet in wb.worksheets:
            sheets[sheet.title] = [
                [cell_to_text(v) for v in row]
                for row in sheet.iter_rows(min_row=1, min_col=1, values_only=True)
            ]
        return sheets
    finally:
        wb.close()


def _xls_cell_text(book: "xlrd.book.Book", cell: "xlrd.sheet.Cell") -> str:
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate.xldate_as_datetime(cell.value, book.datemode).isoformat()
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return cell_to_text(bool(cell.value))
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return ""
    return cell_to_text(cell.value)


def decode_xls(data: bytes) -> Workbook:
    book = xlrd.open_workbook(file_contents=data, on_demand=True)
    try:
        sheets: Workbook = {}
        for sheet in book.sheets():
            sheets[sheet.name] = [
                [_xls_cell_text(book, cell) for cell in sheet.row(r)] for r in range(sheet.nrows)
            ]
        return sheets
    finally:
        book.release_resources()


DEFAULT_DECODERS: Dict[str, ExcelDecoder] = {
    ".xlsx": decode_xlsx,
    ".xls": decode_xls,
}


class ExcelExtractor(BaseExtractor[Workbook]):
    """Extractor for Excel workbooks."""

    def __init__(
        self,
        cache: Optional[LRUCache[Workbook]] = None,
        *,
        decoders: Optional[Mapping[str, ExcelDecoder]] = None,
    ) -> None:
        super().__init__(cache)
        self._decoders = dict(decoders or DEFAULT_DECODERS)

    def can_extract(self, path: Path) -> bool:
        return path.suffix.lower() in EXTENSIONS[FileType.EXCEL]

    def decode(self, path: Path) -> Workbook:
        decoder = self._decoders.get(path.suffix.lower())
        if decoder is None:
            raise DecodeError(str(path), f"Unsupported spreadsheet extension {path.suffix!r}")
        data = read_bytes(path)
        try:
            return decoder(data)
        except Exception as exc:
            raise DecodeError(str(path), f"Cannot decode Excel file ({exc})") from exc

    @staticmethod
    def iter_cells(workbook: Workbook) -> Iterator[Tuple[str, int, int, str]]:
        """Yield `(sheet, row, column, text)` for non-empty cells, 1-based."""
        for sheet_name, rows in workbook.items():
            for row_idx, row in enumerate(rows, 1):
                for col_idx, text in enumerate(row, 1):
                    if text:
                        yield sheet_name, row_idx, col_idx, text
