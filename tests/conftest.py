# tests/conftest.py

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import pytest

from calendar_todo.store import TodoItem, TodoStore


@pytest.fixture()
def data_file(tmp_path: Path) -> Path:
    """Backing file inside a not-yet-existing directory, like a first run."""
    return tmp_path / ".calendar-todolist" / "todos.txt"


@pytest.fixture()
def store(data_file: Path) -> TodoStore:
    return TodoStore(data_file)


@pytest.fixture()
def july_store(store: TodoStore) -> TodoStore:
    """Two overlapping July records plus one unrelated June record."""
    store.add(TodoItem("a1", date(2024, 7, 1), date(2024, 7, 5), "Sprint", False))
    store.add(TodoItem("b2", date(2024, 7, 4), date(2024, 7, 10), "Holiday", False))
    store.add(TodoItem.single_day("c3", date(2024, 6, 20), "Dentist"))
    return store


@pytest.fixture()
def restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)
