# tests/test_persistence.py

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import pytest

from calendar_todo.store import (
    InvalidRange,
    StorageIOError,
    TodoItem,
    TodoStore,
    escape_title,
    format_line,
    parse_line,
    parse_lines,
    unescape_title,
)


def test_missing_file_loads_as_empty_store(store: TodoStore, data_file: Path) -> None:
    report = store.load()
    assert report.loaded == 0
    assert report.skipped == 0
    assert len(store) == 0
    assert not data_file.exists()


def test_save_creates_parent_directory_and_writes_current_format(store: TodoStore, data_file: Path) -> None:
    store.add(TodoItem.single_day("x1", date(2024, 6, 1), "Buy milk"))
    store.add(TodoItem("t1", date(2024, 6, 10), date(2024, 6, 12), "Trip", True))
    store.save()

    assert data_file.read_text("utf-8").splitlines() == [
        "x1|2024-06-01|2024-06-01|Buy milk|false",
        "t1|2024-06-10|2024-06-12|Trip|true",
    ]


def test_round_trip_preserves_every_record(store: TodoStore, data_file: Path) -> None:
    store.add(TodoItem.single_day("x1", date(2024, 6, 1), "Buy milk"))
    store.add(TodoItem("t1", date(2024, 6, 10), date(2024, 6, 12), "Trip", True))
    store.add(TodoItem.single_day("p1", date(2024, 1, 5), "Pay rent | utilities", True))
    store.add(TodoItem.single_day("e1", date(2024, 2, 29), ""))
    store.save()

    reloaded = TodoStore(data_file)
    report = reloaded.load()
    assert report.loaded == 4
    assert report.skipped == 0
    assert reloaded.all_items() == store.all_items()


def test_legacy_and_current_lines_load_together(data_file: Path) -> None:
    data_file.parent.mkdir(parents=True)
    data_file.write_text(
        "abc123|2024-01-05|Pay rent|true\n"
        "def456|2024-01-06|2024-01-08|Conference|FALSE\n",
        encoding="utf-8",
    )
    store = TodoStore(data_file)
    store.load()

    legacy = store.get_by_id("abc123")
    assert legacy == TodoItem.single_day("abc123", date(2024, 1, 5), "Pay rent", True)
    assert not legacy.is_multi_day

    current = store.get_by_id("def456")
    assert current == TodoItem("def456", date(2024, 1, 6), date(2024, 1, 8), "Conference", False)


def test_legacy_file_is_rewritten_in_current_format(data_file: Path) -> None:
    data_file.parent.mkdir(parents=True)
    data_file.write_text("abc123|2024-01-05|Pay rent|true\n", encoding="utf-8")
    store = TodoStore(data_file)
    store.load()
    store.save()

    assert data_file.read_text("utf-8") == "abc123|2024-01-05|2024-01-05|Pay rent|true\n"
    again = TodoStore(data_file)
    again.load()
    assert again.all_items() == store.all_items()


def test_bad_lines_are_skipped_and_the_rest_survives(data_file: Path, caplog: pytest.LogCaptureFixture) -> None:
    data_file.parent.mkdir(parents=True)
    data_file.write_text(
        "\n".join(
            [
                "good1|2024-06-01|Buy milk|false",
                "no separators at all",
                "bad-date|2024-13-01|Broken|false",
                "|2024-06-01|No id|false",
                "backwards|2024-06-05|2024-06-01|Reversed|false",
                "flag|2024-06-01|Odd flag|maybe",
                "too|many|fields|here|and|there",
                "   ",
                "good2|2024-06-02|2024-06-03|Trip|true",
                "good1|2024-06-09|Same id again|false",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    store = TodoStore(data_file)
    with caplog.at_level(logging.WARNING, logger="calendar_todo.store"):
        report = store.load()

    assert [i.id for i in store.all_items()] == ["good1", "flag", "good2"]
    assert report.loaded == 3
    assert report.skipped == 6
    skipped_messages = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert len(skipped_messages) == 7
    assert any("Unknown completed flag 'maybe'" in m for m in skipped_messages)
    assert any("line 2 " in m for m in skipped_messages)
    assert any("duplicate id good1" in m for m in skipped_messages)


def test_unknown_completed_flag_keeps_record_as_open(data_file: Path, caplog: pytest.LogCaptureFixture) -> None:
    data_file.parent.mkdir(parents=True)
    data_file.write_text("a1|2024-01-05|Pay rent|yes\nb2|2024-01-06|2024-01-07|Trip|TRUE\n", encoding="utf-8")
    store = TodoStore(data_file)
    with caplog.at_level(logging.WARNING, logger="calendar_todo.store"):
        report = store.load()

    assert report.loaded == 2
    assert report.skipped == 0
    assert store.get_by_id("a1").completed is False  # type: ignore[union-attr]
    assert store.get_by_id("b2").completed is True  # type: ignore[union-attr]
    assert [r.getMessage() for r in caplog.records] == ["Unknown completed flag 'yes', reading it as false"]


def test_titles_with_unicode_line_breaks_survive_reload(store: TodoStore, data_file: Path) -> None:
    titles = [
        "pasted\u2028title",
        "pasted\u2029title",
        "pasted\x85title",
        "pasted\x0ctitle",
        "pasted\x0btitle",
        "pasted\x1etitle",
    ]
    for n, title in enumerate(titles):
        store.add(TodoItem.single_day(f"x{n}", date(2024, 6, 1), title))
    store.save()

    reloaded = TodoStore(data_file)
    report = reloaded.load()

    assert report.skipped == 0
    assert reloaded.all_items() == store.all_items()


def test_byte_order_mark_is_not_part_of_first_id(data_file: Path) -> None:
    data_file.parent.mkdir(parents=True)
    data_file.write_bytes(b"\xef\xbb\xbfabc123|2024-01-05|Pay rent|true\r\nd4|2024-01-06|Call|false\r\n")
    store = TodoStore(data_file)
    report = store.load()

    assert report.loaded == 2
    assert [i.id for i in store.all_items()] == ["abc123", "d4"]


def test_unpadded_dates_are_rejected(data_file: Path) -> None:
    data_file.parent.mkdir(parents=True)
    data_file.write_text(
        "short|2024-6-1|Unpadded|false\n"
        "shortend|2024-06-01|2024-6-3|Unpadded end|false\n"
        "ok|2024-06-01|Padded|false\n",
        encoding="utf-8",
    )
    store = TodoStore(data_file)
    report = store.load()

    assert [i.id for i in store.all_items()] == ["ok"]
    assert report.skipped == 2
    with pytest.raises(ValueError, match="bad date"):
        parse_line("x|2024-6-01|Title|false")


def test_load_replaces_previous_contents(store: TodoStore, data_file: Path) -> None:
    store.add(TodoItem.single_day("x1", date(2024, 6, 1), "Saved"))
    store.save()
    store.add(TodoItem.single_day("x2", date(2024, 6, 1), "Never saved"))

    store.load()
    assert [i.id for i in store.all_items()] == ["x1"]


def test_mutations_are_not_persisted_until_save(store: TodoStore, data_file: Path) -> None:
    store.add(TodoItem.single_day("x1", date(2024, 6, 1), "Buy milk"))
    assert not data_file.exists()
    store.save()
    store.set_completed("x1", True)

    reloaded = TodoStore(data_file)
    reloaded.load()
    assert reloaded.get_by_id("x1").completed is False  # type: ignore[union-attr]


def test_save_rewrites_instead_of_appending(store: TodoStore, data_file: Path) -> None:
    store.add(TodoItem.single_day("x1", date(2024, 6, 1), "Buy milk"))
    store.save()
    store.remove_by_id("x1")
    store.add(TodoItem.single_day("x2", date(2024, 6, 2), "Bake bread"))
    store.save()

    assert data_file.read_text("utf-8") == "x2|2024-06-02|2024-06-02|Bake bread|false\n"


def test_read_failure_raises_storage_error_and_empties_store(tmp_path: Path) -> None:
    directory = tmp_path / "todos.txt"
    directory.mkdir()
    store = TodoStore(directory)
    store.add(TodoItem.single_day("x1", date(2024, 6, 1), "Stale"))

    with pytest.raises(StorageIOError) as exc_info:
        store.load()
    assert exc_info.value.path == directory
    assert isinstance(exc_info.value.__cause__, OSError)
    assert len(store) == 0


def test_undecodable_file_raises_storage_error(data_file: Path) -> None:
    data_file.parent.mkdir(parents=True)
    data_file.write_bytes(b"x1|2024-06-01|\xff\xfe|false\n")
    with pytest.raises(StorageIOError):
        TodoStore(data_file).load()


def test_write_failure_raises_storage_error_and_keeps_memory(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = TodoStore(blocker / "todos.txt")
    store.add(TodoItem.single_day("x1", date(2024, 6, 1), "Buy milk"))

    with pytest.raises(StorageIOError) as exc_info:
        store.save()
    assert exc_info.value.action == "write"
    assert [i.id for i in store.all_items()] == ["x1"]


# -------------------------------
# Line codec
# -------------------------------
def test_title_escaping() -> None:
    assert escape_title("a|b") == "a‖b"
    assert escape_title("line one\nline two\r\nthree") == "line one line two three"
    assert escape_title(None) == ""
    assert unescape_title("a‖b") == "a|b"


def test_newlines_in_titles_are_flattened_on_save(store: TodoStore, data_file: Path) -> None:
    store.add(TodoItem.single_day("x1", date(2024, 6, 1), "first\nsecond"))
    store.save()
    reloaded = TodoStore(data_file)
    reloaded.load()
    assert reloaded.get_by_id("x1").title == "first second"  # type: ignore[union-attr]


def test_format_line_escapes_separator() -> None:
    item = TodoItem.single_day("x1", date(2024, 6, 1), "Tea | coffee")
    assert format_line(item) == "x1|2024-06-01|2024-06-01|Tea ‖ coffee|false"
    assert parse_line(format_line(item)) == item


def test_parse_line_legacy_scenario() -> None:
    item = parse_line("abc123|2024-01-05|Pay rent|true")
    assert item.id == "abc123"
    assert item.start_date == item.end_date == date(2024, 1, 5)
    assert item.title == "Pay rent"
    assert item.completed is True


def test_parse_line_rejects_reversed_range() -> None:
    with pytest.raises(InvalidRange):
        parse_line("x|2024-06-05|2024-06-01|Reversed|false")


def test_parse_lines_reports_per_line_outcomes() -> None:
    outcomes = list(parse_lines(["ok|2024-06-01|Fine|true", "", "broken"]))
    assert [o.line_no for o in outcomes] == [1, 3]
    assert outcomes[0].ok and outcomes[0].item is not None
    assert not outcomes[1].ok and outcomes[1].error
