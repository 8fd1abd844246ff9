# calendar_todo/config.py

"""
Application settings.

Paths are computed once by the entry point and handed to the store and the
UI; nothing else looks up the home directory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

APP_TITLE = "Calendar Todo List"
DATA_DIR_NAME = ".calendar-todolist"
DATA_FILE_NAME = "todos.txt"
THEME_FILE_NAME = "calendar_todo_theme.json"


@dataclass(frozen=True, slots=True)
class AppConfig:
    data_dir: Path
    data_file: Path
    theme_file: Path
    log_dir: Path
    log_level: str = "INFO"
    appearance_mode: str = "dark"
    app_title: str = APP_TITLE

    @staticmethod
    def default(home: str | Path | None = None) -> AppConfig:
        base = Path(home).expanduser() if home is not None else Path.home()
        data_dir = base / DATA_DIR_NAME
        return AppConfig(
            data_dir=data_dir,
            data_file=data_dir / DATA_FILE_NAME,
            theme_file=data_dir / THEME_FILE_NAME,
            log_dir=data_dir,
        )

    @property
    def console_level(self) -> int:
        level = getattr(logging, self.log_level.upper(), logging.INFO)
        return level if isinstance(level, int) else logging.INFO
