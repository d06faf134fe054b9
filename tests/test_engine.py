import asyncio
import threading
import time
from pathlib import Path
from typing import List

import pytest

from docscan.cache.document_cache import CacheInfo
from docscan.config import SearchConfig
from docscan.exceptions import DecodeError, DirectoryReadError, InvalidRootError
from docscan.extractors.base_extractor import FileType
from docscan.extractors.excel_extractor import decode_xlsx
from docscan.extractors.word_extractor import decode_docx
from docscan.search import traverser as traverser_mod
from docscan.search.engine import SearchEngine
from docscan.search.events import CollectingListener, QueueListener
from docscan.search.models import ErrorEvent, ExcelMatch, ProgressEvent, SearchOptions, WordMatch

from conftest import CountingDecoder, write_docx, write_xlsx


def options(root: Path, keywords: str, **kwargs) -> SearchOptions:
    return SearchOptions.from_input(str(root), keywords, **kwargs)


# ---------- options ----------


def test_keywords_are_split_trimmed_and_empties_dropped(tmp_path: Path) -> None:
    opts = options(tmp_path, " foo, ,bar ,,  baz")
    assert opts.keywords == ("foo", "bar", "baz")
    assert opts.file_types == {FileType.EXCEL, FileType.WORD}


def test_options_reject_empty_keyword() -> None:
    with pytest.raises(ValueError):
        SearchOptions(root_directory="/", keywords=("ok", ""))


def test_unknown_file_type_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        options(tmp_path, "a", file_types=["pdf"])


@pytest.mark.parametrize(
    "current,total,expected",
    [(0, 0, 0), (1, 0, 100), (1, 3, 33), (2, 3, 66), (3, 3, 100), (5, 3, 100)],
)
def test_progress_percentage_is_floored_and_clamped(current: int, total: int, expected: int) -> None:
    assert ProgressEvent.compute(current, total).percentage == expected


# ---------- scenarios ----------


@pytest.mark.asyncio
async def test_excel_cell_match(tmp_path: Path) -> None:
    write_xlsx(tmp_path / "book.xlsx", {"Sheet1": {(1, 1): "Name", (3, 2): "Invoice 2024"}})
    engine = SearchEngine()

    results = await engine.search(options(tmp_path, "2024", case_sensitive=False))

    assert results == [
        ExcelMatch(
            file=str((tmp_path / "book.xlsx").resolve()),
            sheet="Sheet1",
            row=3,
            column=2,
            content="Invoice 2024",
            keyword="2024",
        )
    ]


@pytest.mark.asyncio
async def test_word_match_window_and_position(tmp_path: Path) -> None:
    path = write_docx(tmp_path / "story.docx", ["the quick brown fox jumps over the lazy dog"])
    text = decode_docx(path.read_bytes())
    pos = text.index("fox")
    engine = SearchEngine()

    results = await engine.search(options(tmp_path, "fox"))

    assert results == [
        WordMatch(
            file=str(path.resolve()),
            content=text[max(0, pos - 50) : min(len(text), pos + 3 + 50)],
            keyword="fox",
            position=pos,
        )
    ]


@pytest.mark.asyncio
async def test_lock_files_are_skipped_silently(tmp_path: Path) -> None:
    (tmp_path / "~$lock.xlsx").write_bytes(b"not a workbook")
    (tmp_path / ".hidden.docx").write_bytes(b"not a document")
    listener = CollectingListener()
    engine = SearchEngine()

    results = await engine.search(options(tmp_path, "anything"), listener)

    assert results == []
    assert listener.progress == []
    assert listener.errors == []


@pytest.mark.asyncio
async def test_two_keywords_in_one_document_follow_offset_order(tmp_path: Path) -> None:
    path = write_docx(tmp_path / "memo.docx", ["bar comes before foo here"])
    text = decode_docx(path.read_bytes())
    engine = SearchEngine()

    results = await engine.search(options(tmp_path, "foo,bar"))

    assert [(r.keyword, r.position) for r in results] == [
        ("bar", text.index("bar")),
        ("foo", text.index("foo")),
    ]
    assert all(r.file == str(path.resolve()) for r in results)


@pytest.mark.asyncio
async def test_cell_matching_two_keywords_yields_two_records(tmp_path: Path) -> None:
    write_xlsx(tmp_path / "book.xlsx", {"Sheet1": {(1, 1): "Invoice 2024"}})
    engine = SearchEngine()

    results = await engine.search(options(tmp_path, "invoice, 2024"))

    assert [r.keyword for r in results] == ["invoice", "2024"]


@pytest.mark.asyncio
async def test_case_sensitive_search(tmp_path: Path) -> None:
    path = write_docx(tmp_path / "memo.docx", ["Budget and budget"])
    start = decode_docx(path.read_bytes()).index("Budget")
    engine = SearchEngine()

    sensitive = await engine.search(options(tmp_path, "Budget", case_sensitive=True))
    insensitive = await engine.search(options(tmp_path, "Budget", case_sensitive=False))

    assert [r.position for r in sensitive] == [start]
    assert [r.position for r in insensitive] == [start, start + 11]


# ---------- boundaries ----------


@pytest.mark.asyncio
async def test_empty_directory_completes_without_progress(tmp_path: Path) -> None:
    (tmp_path / "notes.txt").write_text("keyword")
    listener = CollectingListener()
    engine = SearchEngine()

    results = await engine.search(options(tmp_path, "keyword"), listener)

    assert results == []
    assert listener.progress == []
    assert engine.last_summary is not None
    assert engine.last_summary.total_files == 0


@pytest.mark.asyncio
async def test_empty_file_type_filter_yields_nothing(tmp_path: Path) -> None:
    write_docx(tmp_path / "memo.docx", ["keyword"])
    engine = SearchEngine()

    results = await engine.search(options(tmp_path, "keyword", file_types=[]))

    assert results == []


@pytest.mark.asyncio
async def test_file_type_filter_limits_extractors(tmp_path: Path) -> None:
    write_docx(tmp_path / "memo.docx", ["keyword"])
    write_xlsx(tmp_path / "book.xlsx", {"Sheet1": {(1, 1): "keyword"}})
    engine = SearchEngine()

    excel_only = await engine.search(options(tmp_path, "keyword", file_types=["excel"]))
    word_only = await engine.search(options(tmp_path, "keyword", file_types=["word"]))

    assert [type(r) for r in excel_only] == [ExcelMatch]
    assert [type(r) for r in word_only] == [WordMatch]


@pytest.mark.asyncio
async def test_invalid_root_fails_before_traversal(tmp_path: Path) -> None:
    engine = SearchEngine()
    with pytest.raises(InvalidRootError):
        await engine.search(options(tmp_path / "missing", "x"))
    not_a_dir = tmp_path / "file.txt"
    not_a_dir.write_text("x")
    with pytest.raises(InvalidRootError):
        await engine.search(options(not_a_dir, "x"))


# ---------- recursion, progress, concurrency ----------


@pytest.mark.asyncio
async def test_nested_directories_are_searched_and_progress_is_monotonic(tmp_path: Path) -> None:
    for i in range(4):
        write_docx(tmp_path / f"level{i}" / "deeper" / f"doc{i}.docx", [f"needle {i}"])
    write_xlsx(tmp_path / "top.xlsx", {"Sheet1": {(2, 2): "needle in a cell"}})
    (tmp_path / ".git").mkdir()
    write_docx(tmp_path / ".git" / "ignored.docx", ["needle"])
    listener = CollectingListener()
    engine = SearchEngine(SearchConfig(concurrency=2))

    results = await engine.search(options(tmp_path, "needle"), listener)

    assert len(results) == 5
    assert [p.current for p in listener.progress] == [1, 2, 3, 4, 5]
    assert all(p.total == 5 for p in listener.progress)
    assert listener.progress[-1].percentage == 100


@pytest.mark.asyncio
async def test_concurrent_decodes_never_exceed_limit(tmp_path: Path) -> None:
    for i in range(10):
        write_docx(tmp_path / f"doc{i}.docx", ["needle"])
    lock = threading.Lock()
    in_flight = 0
    peak = 0

    def slow_decode(data: bytes) -> str:
        nonlocal in_flight, peak
        with lock:
            in_flight += 1
            peak = max(peak, in_flight)
        time.sleep(0.02)
        with lock:
            in_flight -= 1
        return decode_docx(data)

    engine = SearchEngine(SearchConfig(concurrency=3), docx_decoder=slow_decode)

    results = await engine.search(options(tmp_path, "needle"))

    assert len(results) == 10
    assert 1 <= peak <= 3


@pytest.mark.asyncio
async def test_queue_listener_streams_events_while_running(tmp_path: Path) -> None:
    for i in range(3):
        write_docx(tmp_path / f"doc{i}.docx", ["needle"])
    (tmp_path / "broken.xlsx").write_bytes(b"garbage")
    listener = QueueListener()
    engine = SearchEngine()

    async def drain() -> List[object]:
        return [event async for event in listener.events()]

    consumer = asyncio.create_task(drain())
    results = await engine.search(options(tmp_path, "needle"), listener)
    listener.close()
    events = await consumer

    progress = [e for e in events if isinstance(e, ProgressEvent)]
    errors = [e for e in events if isinstance(e, ErrorEvent)]
    assert len(results) == 3
    assert [p.current for p in progress] == [1, 2, 3, 4]
    assert len(errors) == 1 and errors[0].kind == "DecodeError"


# ---------- errors ----------


@pytest.mark.asyncio
async def test_corrupt_file_reports_error_and_counts_as_processed(tmp_path: Path) -> None:
    (tmp_path / "a_broken.xlsx").write_bytes(b"garbage")
    write_docx(tmp_path / "b_good.docx", ["needle"])
    listener = CollectingListener()
    engine = SearchEngine()

    results = await engine.search(options(tmp_path, "needle"), listener)

    assert len(results) == 1
    assert [e.path for e in listener.errors] == [str((tmp_path / "a_broken.xlsx").resolve())]
    assert listener.errors[0].kind == "DecodeError"
    assert listener.progress[-1].current == 2
    assert listener.progress[-1].percentage == 100


@pytest.mark.asyncio
async def test_legacy_doc_decode_failure_is_reported_not_raised(tmp_path: Path) -> None:
    (tmp_path / "old.doc").write_bytes(b"\xd0\xcf\x11\xe0")

    def failing_doc(path: Path) -> str:
        raise DecodeError(str(path), f"{path.name} could not be read; it may be a pre-97 Word file")

    listener = CollectingListener()
    engine = SearchEngine(doc_decoder=failing_doc)

    results = await engine.search(options(tmp_path, "anything"), listener)

    assert results == []
    assert len(listener.errors) == 1
    assert "pre-97" in listener.errors[0].message


@pytest.mark.asyncio
async def test_legacy_doc_markup_windows_are_dropped(tmp_path: Path) -> None:
    (tmp_path / "old.doc").write_bytes(b"\xd0\xcf\x11\xe0")
    prose = "The annual budget was approved by the board."
    markup = "x" * 60 + '<w:p w:rsidR="1"><w:t>budget</w:t></w:p>' + "y" * 60
    engine = SearchEngine(doc_decoder=lambda p: prose + markup)

    results = await engine.search(options(tmp_path, "budget"))

    assert len(results) == 1
    assert results[0].position == prose.index("budget")


@pytest.mark.asyncio
async def test_markup_filter_can_be_disabled(tmp_path: Path) -> None:
    (tmp_path / "old.doc").write_bytes(b"\xd0\xcf\x11\xe0")
    markup = '<w:p w:rsidR="1"><w:t>budget</w:t></w:p>'
    engine = SearchEngine(SearchConfig(filter_legacy_markup=False), doc_decoder=lambda p: markup)

    results = await engine.search(options(tmp_path, "budget"))

    assert len(results) == 1


@pytest.mark.asyncio
async def test_explicit_markup_policy_overrides_configuration(tmp_path: Path) -> None:
    (tmp_path / "old.doc").write_bytes(b"\xd0\xcf\x11\xe0")
    text = '<w:p w:rsidR="1"><w:t>budget</w:t></w:p> and a budget line'

    unfiltered = SearchEngine(markup_policy=None, doc_decoder=lambda p: text)
    assert len(await unfiltered.search(options(tmp_path, "budget"))) == 2

    seen = []

    def drop_everything(window: str) -> bool:
        seen.append(window)
        return True

    custom = SearchEngine(
        SearchConfig(filter_legacy_markup=False),
        markup_policy=drop_everything,
        doc_decoder=lambda p: text,
    )
    assert await custom.search(options(tmp_path, "budget")) == []
    assert len(seen) == 2


@pytest.mark.asyncio
async def test_directory_vanishing_between_passes_is_reported(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    sub = tmp_path / "sub"
    write_docx(sub / "inner.docx", ["needle"])
    write_docx(tmp_path / "outer.docx", ["needle"])
    real_list = traverser_mod.list_directory
    seen = {"sub": 0}

    def flaky_list(directory: Path):
        if Path(directory).name == "sub":
            seen["sub"] += 1
            if seen["sub"] > 1:
                raise DirectoryReadError(str(directory), "Cannot read directory (gone)")
        return real_list(directory)

    monkeypatch.setattr(traverser_mod, "list_directory", flaky_list)
    listener = CollectingListener()
    engine = SearchEngine()

    results = await engine.search(options(tmp_path, "needle"), listener)

    assert [Path(r.file).name for r in results] == ["outer.docx"]
    assert [e.kind for e in listener.errors] == ["DirectoryReadError"]
    assert listener.progress[-1].total == 2
    assert listener.progress[-1].current == 1


# ---------- cache ----------


@pytest.mark.asyncio
async def test_cached_rerun_is_identical_and_decodes_nothing_new(tmp_path: Path) -> None:
    write_xlsx(tmp_path / "book.xlsx", {"Sheet1": {(1, 1): "needle"}})
    write_docx(tmp_path / "memo.docx", ["a needle and another needle"])
    xlsx = CountingDecoder(decode_xlsx)
    docx = CountingDecoder(decode_docx)
    engine = SearchEngine(excel_decoders={".xlsx": xlsx}, docx_decoder=docx)
    opts = options(tmp_path, "needle", cache_enabled=True)

    first = await engine.search(opts)
    second = await engine.search(opts)

    assert set(first) == set(second)
    assert len(xlsx.calls) == 1
    assert len(docx.calls) == 1
    assert engine.get_cache_info() == CacheInfo(word_entry_count=1, excel_entry_count=1)


@pytest.mark.asyncio
async def test_cache_disabled_neither_reads_nor_writes(tmp_path: Path) -> None:
    write_docx(tmp_path / "memo.docx", ["needle"])
    docx = CountingDecoder(decode_docx)
    engine = SearchEngine(docx_decoder=docx)
    opts = options(tmp_path, "needle", cache_enabled=False)

    await engine.search(opts)
    await engine.search(opts)

    assert len(docx.calls) == 2
    assert engine.get_cache_info() == CacheInfo(word_entry_count=0, excel_entry_count=0)


@pytest.mark.asyncio
async def test_clear_cache_then_info_is_zero(tmp_path: Path) -> None:
    write_docx(tmp_path / "memo.docx", ["needle"])
    write_xlsx(tmp_path / "book.xlsx", {"Sheet1": {(1, 1): "needle"}})
    engine = SearchEngine()
    await engine.search(options(tmp_path, "needle"))
    assert engine.get_cache_info() == CacheInfo(word_entry_count=1, excel_entry_count=1)

    assert engine.clear_cache() == CacheInfo(word_entry_count=0, excel_entry_count=0)
    assert engine.get_cache_info() == CacheInfo(word_entry_count=0, excel_entry_count=0)


@pytest.mark.asyncio
async def test_select_root_clears_caches_and_resolves_path(tmp_path: Path) -> None:
    write_docx(tmp_path / "memo.docx", ["needle"])
    engine = SearchEngine()
    await engine.search(options(tmp_path, "needle"))
    assert engine.get_cache_info().word_entry_count == 1

    assert engine.select_root(str(tmp_path)) == str(tmp_path.resolve())
    assert engine.get_cache_info() == CacheInfo(word_entry_count=0, excel_entry_count=0)
    assert engine.select_root(None) is None
    with pytest.raises(InvalidRootError):
        engine.select_root(str(tmp_path / "nope"))
