# calendar_todo/store.py

"""
Task records and the file-backed task store.

File format, one record per line:

    id|start|end|title|completed

Older files use the 4-field form ``id|date|title|completed`` (single-day
records). The layout is picked by counting ``|`` separators, so titles have
``|`` replaced by U+2016 on write and restored on read.
"""

from __future__ import annotations

import logging
import re
import threading
import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from pathlib import Path

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
FIELD_SEPARATOR = "|"
ESCAPED_SEPARATOR = "‖"

LEGACY_SEPARATORS = 3
CURRENT_SEPARATORS = 4


# -------------------------------
# Errors
# -------------------------------
class TodoStoreError(Exception):
    """Base class for store errors."""


class InvalidRange(TodoStoreError, ValueError):
    def __init__(self, start_date: date, end_date: date) -> None:
        super().__init__(f"end date {end_date} is before start date {start_date}")
        self.start_date = start_date
        self.end_date = end_date


class DuplicateTaskId(TodoStoreError, ValueError):
    def __init__(self, item_id: str) -> None:
        super().__init__(f"task id {item_id!r} already exists")
        self.item_id = item_id


class StorageIOError(TodoStoreError):
    """Reading or writing the backing file failed. The OSError is chained."""

    def __init__(self, action: str, path: Path, reason: str) -> None:
        super().__init__(f"Could not {action} {path}: {reason}")
        self.action = action
        self.path = path


# -------------------------------
# Records
# -------------------------------
class TodoItem:
    """
    One todo entry covering the inclusive range start_date..end_date.

    A multi-day item is a single unit: completing it completes every day
    it spans. id and dates are fixed at construction.
    """

    __slots__ = ("_id", "_start_date", "_end_date", "_title", "completed")

    def __init__(
        self,
        item_id: str,
        start_date: date,
        end_date: date | None = None,
        title: str | None = "",
        completed: bool = False,
    ) -> None:
        if not item_id:
            raise ValueError("item id is required")
        if end_date is None:
            end_date = start_date
        if end_date < start_date:
            raise InvalidRange(start_date, end_date)
        self._id = item_id
        self._start_date = start_date
        self._end_date = end_date
        self._title = title or ""
        self.completed = bool(completed)

    @classmethod
    def single_day(cls, item_id: str, day: date, title: str | None = "", completed: bool = False) -> TodoItem:
        return cls(item_id, day, day, title, completed)

    @property
    def id(self) -> str:
        return self._id

    @property
    def start_date(self) -> date:
        return self._start_date

    @property
    def end_date(self) -> date:
        return self._end_date

    @property
    def title(self) -> str:
        return self._title

    @title.setter
    def title(self, value: str | None) -> None:
        self._title = value or ""

    @property
    def is_multi_day(self) -> bool:
        return self._end_date != self._start_date

    def covers(self, day: date) -> bool:
        return self._start_date <= day <= self._end_date

    def overlaps(self, first: date, last: date) -> bool:
        return self._end_date >= first and self._start_date <= last

    def days(self) -> Iterator[date]:
        day = self._start_date
        while day <= self._end_date:
            yield day
            day += timedelta(days=1)

    def copy(self) -> TodoItem:
        return TodoItem(self._id, self._start_date, self._end_date, self._title, self.completed)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TodoItem):
            return NotImplemented
        return (
            self._id == other._id
            and self._start_date == other._start_date
            and self._end_date == other._end_date
            and self._title == other._title
            and self.completed == other.completed
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        span = str(self._start_date)
        if self.is_multi_day:
            span += f"..{self._end_date}"
        return f"TodoItem(id={self._id!r}, {span}, title={self._title!r}, completed={self.completed})"


def generate_id() -> str:
    """Short random id (12 hex chars of a UUID4)."""
    return uuid.uuid4().hex[:12]


# -------------------------------
# Line codec
# -------------------------------
def escape_title(title: str | None) -> str:
    if not title:
        return ""
    text = title.replace(FIELD_SEPARATOR, ESCAPED_SEPARATOR)
    return text.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")


def unescape_title(text: str | None) -> str:
    if not text:
        return ""
    return text.replace(ESCAPED_SEPARATOR, FIELD_SEPARATOR)


def format_line(item: TodoItem) -> str:
    return FIELD_SEPARATOR.join(
        (
            item.id,
            item.start_date.strftime(DATE_FORMAT),
            item.end_date.strftime(DATE_FORMAT),
            escape_title(item.title),
            "true" if item.completed else "false",
        )
    )


def _parse_date(raw: str) -> date:
    value = raw.strip()
    if not DATE_PATTERN.fullmatch(value):
        raise ValueError(f"bad date {raw!r}")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise ValueError(f"bad date {raw!r}") from None


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value not in ("true", "false"):
        logger.warning("Unknown completed flag %r, reading it as false", raw)
    return value == "true"


def parse_line(line: str) -> TodoItem:
    """
    Parse one stored line (current or legacy layout).

    Raises ValueError (InvalidRange included) when the line is malformed.
    """
    separators = line.count(FIELD_SEPARATOR)
    fields = line.split(FIELD_SEPARATOR)
    if separators == CURRENT_SEPARATORS:
        item_id, start_raw, end_raw, title_raw, completed_raw = fields
    elif separators == LEGACY_SEPARATORS:
        item_id, start_raw, title_raw, completed_raw = fields
        end_raw = None
    else:
        raise ValueError(f"expected 4 or 5 fields, got {separators + 1}")

    item_id = item_id.strip()
    if not item_id:
        raise ValueError("empty id")
    start_date = _parse_date(start_raw)
    end_date = _parse_date(end_raw) if end_raw is not None else start_date
    item = TodoItem(item_id, start_date, end_date, unescape_title(title_raw))
    item.completed = _parse_bool(completed_raw)
    return item


@dataclass(frozen=True, slots=True)
class LineOutcome:
    """Result of parsing one line: either an item or an error message."""

    line_no: int
    item: TodoItem | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.item is not None


@dataclass(frozen=True, slots=True)
class LoadReport:
    path: Path
    loaded: int
    skipped: int


def parse_lines(lines: Iterable[str]) -> Iterator[LineOutcome]:
    """Parse every non-blank line independently; malformed lines become errors."""
    for line_no, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line:
            continue
        try:
            yield LineOutcome(line_no, item=parse_line(line))
        except ValueError as exc:
            yield LineOutcome(line_no, error=str(exc))


# -------------------------------
# Storage
# -------------------------------
class TodoStore:
    """
    In-memory todo collection backed by a single text file.

    Mutations never write to disk; call save() after a user action completes.
    Queries return copies, so views must go through the store (by id) to
    change a record.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._items: list[TodoItem] = []
        self._lock = threading.RLock()

    generate_id = staticmethod(generate_id)

    # --- persistence ---
    def load(self) -> LoadReport:
        if not self.path.exists():
            with self._lock:
                self._items = []
            logger.info("No todo file at %s, starting empty", self.path)
            return LoadReport(self.path, 0, 0)

        try:
            # utf-8-sig drops a BOM left by some editors; only CR/LF end a record
            with open(self.path, "r", encoding="utf-8-sig") as f:
                lines = f.read().split("\n")
        except (OSError, UnicodeDecodeError) as exc:
            with self._lock:
                self._items = []
            logger.error("Failed to read todos from %s: %s", self.path, exc)
            raise StorageIOError("read", self.path, str(exc)) from exc

        items: list[TodoItem] = []
        seen: set[str] = set()
        skipped = 0
        for outcome in parse_lines(lines):
            item = outcome.item
            if item is None:
                skipped += 1
                logger.warning("Skipping line %d of %s: %s", outcome.line_no, self.path, outcome.error)
                continue
            if item.id in seen:
                skipped += 1
                logger.warning("Skipping line %d of %s: duplicate id %s", outcome.line_no, self.path, item.id)
                continue
            seen.add(item.id)
            items.append(item)

        with self._lock:
            self._items = items
        logger.info("Loaded %d todos from %s (%d skipped)", len(items), self.path, skipped)
        return LoadReport(self.path, len(items), skipped)

    def save(self) -> None:
        with self._lock:
            lines = [format_line(item) for item in self._items]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8", newline="\n") as f:
                for line in lines:
                    f.write(line + "\n")
        except OSError as exc:
            logger.error("Failed to write todos to %s: %s", self.path, exc)
            raise StorageIOError("write", self.path, str(exc)) from exc
        logger.debug("Saved %d todos to %s", len(lines), self.path)

    # --- mutation ---
    def add(self, item: TodoItem) -> TodoItem:
        with self._lock:
            if self._find(item.id) is not None:
                raise DuplicateTaskId(item.id)
            self._items.append(item.copy())
        return item

    def create(self, title: str, start_date: date, end_date: date | None = None) -> TodoItem:
        """Add a new (single or multi-day) open item. Raises InvalidRange."""
        item = TodoItem(generate_id(), start_date, end_date, title)
        with self._lock:
            while self._find(item.id) is not None:
                item = TodoItem(generate_id(), start_date, end_date, title)
            self._items.append(item)
        return item.copy()

    def create_each_day(self, title: str, first: date, last: date) -> list[TodoItem]:
        """Add one single-day item with the same title on every day of first..last."""
        span = TodoItem("span", first, last)
        return [self.create(title, day) for day in span.days()]

    def remove(self, item: TodoItem) -> bool:
        return self.remove_by_id(item.id)

    def remove_by_id(self, item_id: str) -> bool:
        with self._lock:
            before = len(self._items)
            self._items = [i for i in self._items if i.id != item_id]
            return len(self._items) != before

    def set_completed(self, item_id: str, completed: bool) -> TodoItem | None:
        with self._lock:
            item = self._find(item_id)
            if item is None:
                return None
            item.completed = bool(completed)
            return item.copy()

    def toggle_completed(self, item_id: str) -> TodoItem | None:
        with self._lock:
            item = self._find(item_id)
            if item is None:
                return None
            item.completed = not item.completed
            return item.copy()

    def rename(self, item_id: str, title: str | None) -> TodoItem | None:
        with self._lock:
            item = self._find(item_id)
            if item is None:
                return None
            item.title = title
            return item.copy()

    # --- queries ---
    def _find(self, item_id: str) -> TodoItem | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def get_by_id(self, item_id: str) -> TodoItem | None:
        with self._lock:
            item = self._find(item_id)
            return item.copy() if item is not None else None

    def all_items(self) -> list[TodoItem]:
        with self._lock:
            return [i.copy() for i in self._items]

    def get_items_for(self, day: date) -> list[TodoItem]:
        with self._lock:
            return [i.copy() for i in self._items if i.covers(day)]

    def get_items_in_range(self, first: date, last: date) -> list[TodoItem]:
        if last < first:
            first, last = last, first
        with self._lock:
            return [i.copy() for i in self._items if i.overlaps(first, last)]

    def total_count(self, day: date) -> int:
        with self._lock:
            return sum(1 for i in self._items if i.covers(day))

    def completed_count(self, day: date) -> int:
        with self._lock:
            return sum(1 for i in self._items if i.covers(day) and i.completed)

    def percent_completed(self, day: date) -> int:
        with self._lock:
            total = self.total_count(day)
            if total == 0:
                return 0
            done = self.completed_count(day)
        # round half up, in integers
        return (200 * done + total) // (2 * total)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
