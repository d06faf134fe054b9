import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import openpyxl
import pytest
from docx import Document


def write_xlsx(path: Path, cells: Dict[str, Dict[tuple, Any]]) -> Path:
    """Create a workbook: {sheet: {(row, col): value}} with 1-based coordinates."""
    wb = openpyxl.Workbook()
    first = True
    for sheet_name, values in cells.items():
        if first:
            ws = wb.active
            ws.title = sheet_name
            first = False
        else:
            ws = wb.create_sheet(sheet_name)
        for (row, col), value in values.items():
            ws.cell(row=row, column=col, value=value)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


def write_docx(path: Path, paragraphs: List[str], table: Optional[List[List[str]]] = None) -> Path:
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    if table:
        t = doc.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                t.cell(r, c).text = value
    path.parent.mkdir(parents=True, exist_ok=True)
    doc.save(str(path))
    return path


def extract_json_payload(result: Any) -> Union[Dict[str, Any], List[Dict[str, Any]], str]:
    """Pull the JSON body out of a fastmcp `call_tool` result."""
    if isinstance(result, (dict, list, str)):
        return result
    content = getattr(result, "content", None)
    if isinstance(content, list) and content:
        for item in content:
            text = getattr(item, "text", None)
            if isinstance(text, str):
                try:
                    return json.loads(text)
                except json.JSONDecodeError:
                    return text
    raise AssertionError("Unable to extract JSON payload from tool result")


class CountingDecoder:
    """Wraps a decoder and counts calls per argument."""

    def __init__(self, func: Callable[[Any], Any]) -> None:
        self.func = func
        self.calls: List[Any] = []

    def __call__(self, arg: Any) -> Any:
        self.calls.append(arg)
        return self.func(arg)


@pytest.fixture
def xlsx_factory(tmp_path: Path) -> Callable[..., Path]:
    def make(relpath: str, cells: Dict[str, Dict[tuple, Any]]) -> Path:
        return write_xlsx(tmp_path / relpath, cells)

    return make


@pytest.fixture
def docx_factory(tmp_path: Path) -> Callable[..., Path]:
    def make(relpath: str, paragraphs: List[str], table: Optional[List[List[str]]] = None) -> Path:
        return write_docx(tmp_path / relpath, paragraphs, table)

    return make
