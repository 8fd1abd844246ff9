# Calendar Todo — month calendar with per-day completion (CustomTkinter)
# -----------------------------------------------------------
# Features:
#   • Month grid, Monday first; each day cell shows % of its tasks completed
#     and is coloured red → orange → yellow → green → blue by that percentage
#   • Click a day to add / complete / delete that day's tasks
#   • Shift+click a second day to work on the whole range: add the same task
#     to each day, or one multi-day task (completing it completes every day)
#   • Sidebar for creating single- or multi-day tasks with tkcalendar pickers
#   • Plain text storage at ~/.calendar-todolist/todos.txt
#
# Usage:
#   pip install -e .
#   calendar-todo            (or: python -m calendar_todo)

from __future__ import annotations

import json
import logging
import tkinter as tk
from collections.abc import Callable
from datetime import date
from pathlib import Path
from tkinter import messagebox

import customtkinter as ctk
from tkcalendar import DateEntry

from .config import AppConfig
from .grid import (
    CELL_BORDER_COLOR,
    NO_TASKS_COLOR,
    SELECTED_COLOR,
    WEEK_HEADERS,
    RangeSelection,
    brighten,
    color_for_percent,
    month_cells,
    shift_month,
)
from .logging_setup import setup_logging
from .store import InvalidRange, StorageIOError, TodoItem, TodoStore

logger = logging.getLogger(__name__)

HINT_TEXT = (
    "Left: add tasks (single or multi-day). Click a day to edit that day's todos. "
    "Shift+click a range for bulk options. Esc clears the selection."
)
SHIFT_MASK = 0x0001

# -------------------------------
# Helpers
# -------------------------------

def write_theme_if_missing(theme_file: Path) -> None:
    """Create a minimal CustomTkinter theme JSON matching the calendar palette."""
    if theme_file.exists():
        return
    theme = {
        "_name": "calendar-todo-dark",
        "CTk": {
            "fg_color": ["#2D2D37", "#2D2D37"],
            "top_fg_color": ["#2D2D37", "#2D2D37"],
            "text_color": ["#111111", "#F1F1F1"],
            "text_color_disabled": ["#8A8A8A", "#6D6D6D"],
        },
        "CTkToplevel": {
            "fg_color": ["#2D2D37", "#2D2D37"],
        },
        "CTkButton": {
            "corner_radius": 8,
            "border_width": 0,
            "fg_color": ["#50648C", "#50648C"],
            "hover_color": ["#5F78A8", "#5F78A8"],
            "border_color": ["#46465A", "#46465A"],
            "text_color": ["#FFFFFF", "#FFFFFF"],
            "text_color_disabled": ["#8A8A8A", "#6D6D6D"],
        },
        "CTkFrame": {
            "corner_radius": 6,
            "border_width": 0,
            "fg_color": ["#32323E", "#32323E"],
            "top_fg_color": ["#3C3C50", "#3C3C50"],
            "border_color": ["#46465A", "#46465A"],
        },
        "CTkEntry": {
            "corner_radius": 6,
            "border_width": 1,
            "fg_color": ["#2C2C36", "#2C2C36"],
            "border_color": ["#46465A", "#46465A"],
            "text_color": ["#E5E7EB", "#E5E7EB"],
            "placeholder_text_color": ["#9CA3AF", "#9CA3AF"],
        },
        "CTkLabel": {
            "corner_radius": 0,
            "fg_color": "transparent",
            "text_color": ["#E5E7EB", "#E5E7EB"],
        },
        "CTkCheckBox": {
            "corner_radius": 6,
            "border_width": 2,
            "fg_color": ["#50648C", "#50648C"],
            "border_color": ["#8C93B0", "#8C93B0"],
            "hover_color": ["#5F78A8", "#5F78A8"],
            "checkmark_color": ["#F9FAFB", "#F9FAFB"],
            "text_color": ["#E5E7EB", "#E5E7EB"],
            "text_color_disabled": ["#8A8A8A", "#6D6D6D"],
        },
        "CTkScrollableFrame": {
            "label_fg_color": ["#3C3C50", "#3C3C50"],
        },
        "CTkScrollbar": {
            "corner_radius": 1000,
            "border_spacing": 4,
            "fg_color": "transparent",
            "button_color": ["#46465A", "#46465A"],
            "button_hover_color": ["#5A5A72", "#5A5A72"],
        },
        "CTkFont": {
            "macOS": {"family": "SF Display", "size": 13, "weight": "normal"},
            "Windows": {"family": "Roboto", "size": 13, "weight": "normal"},
            "Linux": {"family": "Roboto", "size": 13, "weight": "normal"},
        },
    }
    theme_file.parent.mkdir(parents=True, exist_ok=True)
    with open(theme_file, "w", encoding="utf-8") as f:
        json.dump(theme, f, indent=2)


def create_dark_date_entry(master) -> DateEntry:
    """Return a yyyy-mm-dd DateEntry styled like the calendar grid."""
    entry = DateEntry(
        master,
        date_pattern="yyyy-mm-dd",
        firstweekday="monday",
        width=12,
        borderwidth=0,
        background="#3C3C50",
        foreground="#E5E7EB",
        selectbackground="#50648C",
        selectforeground="#F9FAFB",
        normalbackground="#373746",
        normalforeground="#F9FAFB",
        weekendbackground="#32323E",
        weekendforeground="#F3F4F6",
        othermonthbackground="#2D2D37",
        othermonthforeground="#6B7280",
        headersbackground="#3C3C50",
        headersforeground="#E5E7EB",
    )
    entry.set_date(date.today())
    return entry


def format_long(day: date) -> str:
    return f"{day:%A}, {day:%b} {day.day}, {day.year}"


def format_short(day: date) -> str:
    return f"{day:%b} {day.day}"


def item_label(item: TodoItem) -> str:
    if item.is_multi_day:
        return f"{item.title} ({format_short(item.start_date)} – {format_short(item.end_date)})"
    return item.title


def save_or_report(store: TodoStore, parent) -> bool:
    """Persist the store; on failure tell the user and keep the in-memory change."""
    try:
        store.save()
    except StorageIOError as exc:
        messagebox.showerror("Error", str(exc), parent=parent)
        return False
    return True


# -------------------------------
# GUI Components
# -------------------------------
class DayCell(ctk.CTkFrame):
    def __init__(self, master, day: date, *, on_click: Callable[[date, bool], None]):
        super().__init__(
            master,
            fg_color=NO_TASKS_COLOR,
            border_color=CELL_BORDER_COLOR,
            border_width=1,
            corner_radius=4,
            cursor="hand2",
        )
        self.day = day
        self.on_click = on_click
        self._selected = False
        self._hover = False
        self._base_color = NO_TASKS_COLOR

        self.day_label = ctk.CTkLabel(
            self,
            text=str(day.day),
            font=("Segoe UI", 14, "bold"),
            text_color="#FFFFFF",
            cursor="hand2",
        )
        self.day_label.pack(pady=(4, 0))
        self.percent_label = ctk.CTkLabel(
            self,
            text="",
            font=("Segoe UI", 11),
            text_color="#B4DCB4",
            cursor="hand2",
        )
        self.percent_label.pack(pady=(0, 4))

        for widget in (self, self.day_label, self.percent_label):
            widget.bind("<Button-1>", self._handle_click, add="+")
            widget.bind("<Enter>", self._on_enter, add="+")
            widget.bind("<Leave>", self._on_leave, add="+")

    def _handle_click(self, event):
        extend = bool(getattr(event, "state", 0) & SHIFT_MASK)
        self.on_click(self.day, extend)

    def _on_enter(self, _event):
        self._hover = True
        self._paint()

    def _on_leave(self, _event):
        self._hover = False
        self._paint()

    def _paint(self):
        if self._selected:
            color = SELECTED_COLOR
        elif self._hover:
            color = brighten(self._base_color)
        else:
            color = self._base_color
        self.configure(fg_color=color)

    def update_percent(self, total: int, percent: int) -> None:
        if total == 0:
            self._base_color = NO_TASKS_COLOR
            self.percent_label.configure(text="")
        else:
            self._base_color = color_for_percent(percent)
            self.percent_label.configure(text=f"{percent}%")
        self._paint()

    def set_selected(self, selected: bool) -> None:
        self._selected = bool(selected)
        self._paint()


class CalendarPanel(ctk.CTkFrame):
    """Month grid. Cells re-read the store on refresh_percentages()."""

    def __init__(self, master, store: TodoStore, *, on_month_changed: Callable[[int, int], None] | None = None):
        super().__init__(master, fg_color="transparent")
        self.store = store
        self.on_month_changed = on_month_changed
        today = date.today()
        self.year = today.year
        self.month = today.month
        self.selection = RangeSelection()
        self._cells: dict[date, DayCell] = {}

        header = ctk.CTkFrame(self, fg_color="#3C3C50", corner_radius=4)
        header.pack(fill="x", pady=(0, 4))
        for col, name in enumerate(WEEK_HEADERS):
            header.grid_columnconfigure(col, weight=1, uniform="week")
            ctk.CTkLabel(header, text=name, font=("Segoe UI", 11, "bold"), text_color="#FFFFFF").grid(
                row=0, column=col, sticky="ew", pady=2
            )

        self.grid_frame = ctk.CTkFrame(self, fg_color="transparent")
        self.grid_frame.pack(fill="both", expand=True)
        self._build_grid()

    def _build_grid(self):
        for w in self.grid_frame.winfo_children():
            w.destroy()
        self._cells = {}
        cells = month_cells(self.year, self.month)
        rows = (len(cells) + 6) // 7
        for col in range(7):
            self.grid_frame.grid_columnconfigure(col, weight=1, uniform="day")
        for row in range(6):
            self.grid_frame.grid_rowconfigure(row, weight=1 if row < rows else 0, uniform="day")
        for index, day in enumerate(cells):
            if day is None:
                continue
            cell = DayCell(self.grid_frame, day, on_click=self._on_day_clicked)
            cell.grid(row=index // 7, column=index % 7, sticky="nsew", padx=1, pady=1)
            self._cells[day] = cell
        self.refresh_percentages()
        self._update_selection_highlight()

    def set_month(self, year: int, month: int) -> None:
        self.year, self.month = year, month
        self._build_grid()
        if callable(self.on_month_changed):
            self.on_month_changed(year, month)

    def move_month(self, delta: int) -> None:
        self.set_month(*shift_month(self.year, self.month, delta))

    def refresh_percentages(self) -> None:
        for day, cell in self._cells.items():
            cell.update_percent(self.store.total_count(day), self.store.percent_completed(day))

    def clear_selection(self) -> None:
        self.selection.clear()
        self._update_selection_highlight()

    def _update_selection_highlight(self):
        for day, cell in self._cells.items():
            cell.set_selected(self.selection.contains(day))

    def _on_day_clicked(self, day: date, extend: bool):
        first, last = self.selection.click(day, extend=extend)
        self._update_selection_highlight()
        logger.debug("Opening todos for %s..%s", first, last)
        DayTodoDialog(self.winfo_toplevel(), self.store, first, last, on_update=self.refresh_percentages)


class DayTodoDialog(ctk.CTkToplevel):
    """
    Todo list for one day, or for an inclusive range of days.

    Single day: add items for that day. Range: add the same item to each day
    or one multi-day item. Rows keep only item ids and go through the store.
    """

    def __init__(
        self,
        master,
        store: TodoStore,
        first: date,
        last: date | None = None,
        *,
        on_update: Callable[[], None] | None = None,
    ):
        super().__init__(master)
        self.store = store
        self.first = first
        self.last = last if last is not None and last != first else None
        self.on_update = on_update

        range_mode = self.is_range_mode
        if range_mode:
            self.title(f"Todos – {format_short(self.first)} – {format_short(self.last)}")
            heading = f"{format_long(self.first)}  →  {format_long(self.last)}"
        else:
            self.title(f"Todos – {format_long(self.first)}")
            heading = format_long(self.first)
        self.geometry("480x380")
        self.transient(master)

        ctk.CTkLabel(self, text=heading, font=("Segoe UI", 14, "bold"), anchor="w").pack(
            fill="x", padx=12, pady=(12, 6)
        )

        self.list_frame = ctk.CTkScrollableFrame(self)
        self.list_frame.pack(fill="both", expand=True, padx=12, pady=6)

        add_row = ctk.CTkFrame(self, fg_color="transparent")
        add_row.pack(fill="x", padx=12, pady=(6, 2))
        ctk.CTkLabel(add_row, text="Add:").pack(side="left", padx=(0, 6))
        self.new_todo_var = tk.StringVar()
        self.new_todo_entry = ctk.CTkEntry(add_row, textvariable=self.new_todo_var)
        self.new_todo_entry.pack(side="left", fill="x", expand=True)

        if range_mode:
            buttons = ctk.CTkFrame(self, fg_color="transparent")
            buttons.pack(fill="x", padx=12, pady=(2, 12))
            ctk.CTkButton(buttons, text="Add same task to each day", command=self._add_to_each_day).pack(
                side="left", padx=(0, 6)
            )
            ctk.CTkButton(buttons, text="Add one multi-day task", command=self._add_multi_day).pack(side="left")
            self.new_todo_entry.bind("<Return>", lambda _e: self._add_to_each_day())
        else:
            ctk.CTkButton(add_row, text="Add", width=70, command=self._add_single).pack(side="left", padx=(6, 0))
            self.new_todo_entry.bind("<Return>", lambda _e: self._add_single())
            ctk.CTkFrame(self, fg_color="transparent", height=10).pack()

        self.bind("<Escape>", lambda _e: self.destroy())
        self.refresh_list()
        self.after(50, self.new_todo_entry.focus_set)

    @property
    def is_range_mode(self) -> bool:
        return self.last is not None

    # ----------------------- Actions -----------------------
    def _take_title(self) -> str | None:
        text = (self.new_todo_var.get() or "").strip()
        if not text:
            return None
        self.new_todo_var.set("")
        return text

    def _after_change(self):
        save_or_report(self.store, self)
        self.refresh_list()
        if callable(self.on_update):
            self.on_update()

    def _add_single(self):
        title = self._take_title()
        if title is None:
            return
        self.store.create(title, self.first)
        self._after_change()

    def _add_to_each_day(self):
        title = self._take_title()
        if title is None:
            return
        self.store.create_each_day(title, self.first, self.last)
        self._after_change()

    def _add_multi_day(self):
        title = self._take_title()
        if title is None:
            return
        self.store.create(title, self.first, self.last)
        self._after_change()

    def _set_completed(self, item_id: str, var: tk.BooleanVar):
        if self.store.set_completed(item_id, var.get()) is None:
            messagebox.showwarning("Todos", "This task no longer exists.", parent=self)
            self.refresh_list()
            return
        self._after_change()

    def _rename(self, item_id: str):
        current = self.store.get_by_id(item_id)
        if current is None:
            messagebox.showwarning("Todos", "This task no longer exists.", parent=self)
            self.refresh_list()
            return
        dialog = ctk.CTkInputDialog(text=f"New title for \"{current.title}\":", title="Rename task")
        title = (dialog.get_input() or "").strip()
        if not title:
            return
        if self.store.rename(item_id, title) is None:
            messagebox.showwarning("Todos", "This task no longer exists.", parent=self)
            self.refresh_list()
            return
        self._after_change()

    def _delete(self, item_id: str):
        self.store.remove_by_id(item_id)
        self._after_change()

    def refresh_list(self):
        for w in self.list_frame.winfo_children():
            w.destroy()
        if self.is_range_mode:
            items = self.store.get_items_in_range(self.first, self.last)
        else:
            items = self.store.get_items_for(self.first)

        for item in items:
            row = ctk.CTkFrame(self.list_frame, fg_color="transparent")
            row.pack(fill="x", pady=2)
            var = tk.BooleanVar(value=item.completed)
            ctk.CTkCheckBox(
                row,
                text=item_label(item),
                variable=var,
                command=lambda iid=item.id, v=var: self._set_completed(iid, v),
            ).pack(side="left", padx=4)
            ctk.CTkButton(
                row,
                text="✕",
                width=28,
                fg_color="#8C413C",
                hover_color="#A5504A",
                command=lambda iid=item.id: self._delete(iid),
            ).pack(side="right", padx=4)
            ctk.CTkButton(
                row,
                text="✎",
                width=28,
                command=lambda iid=item.id: self._rename(iid),
            ).pack(side="right", padx=4)

        if not items:
            empty = (
                "No todos in this range. Add one below (per day or multi-day)."
                if self.is_range_mode
                else "No todos for this day. Add one below."
            )
            ctk.CTkLabel(self.list_frame, text=empty, text_color="#9CA3AF").pack(pady=12)


class TaskCreateSidebar(ctk.CTkFrame):
    """Create tasks without the calendar: a start date and an optional end date."""

    def __init__(self, master, store: TodoStore, *, on_task_added: Callable[[], None] | None = None):
        super().__init__(master, width=240, border_width=1)
        self.store = store
        self.on_task_added = on_task_added

        ctk.CTkLabel(self, text="New task", font=("Segoe UI", 15, "bold")).pack(anchor="w", padx=12, pady=(10, 8))

        ctk.CTkLabel(self, text="Title").pack(anchor="w", padx=12)
        self.title_var = tk.StringVar()
        self.title_entry = ctk.CTkEntry(self, textvariable=self.title_var)
        self.title_entry.pack(fill="x", padx=12, pady=(2, 10))
        self.title_entry.bind("<Return>", lambda _e: self.add_task())

        ctk.CTkLabel(self, text="Start date").pack(anchor="w", padx=12)
        self.start_entry = create_dark_date_entry(self)
        self.start_entry.pack(anchor="w", padx=12, pady=(2, 8))

        self.multi_day_var = tk.BooleanVar(value=False)
        ctk.CTkCheckBox(
            self,
            text="Multi-day task",
            variable=self.multi_day_var,
            command=self._on_multi_day_toggled,
        ).pack(anchor="w", padx=12, pady=(0, 6))

        ctk.CTkLabel(self, text="End date").pack(anchor="w", padx=12)
        self.end_entry = create_dark_date_entry(self)
        self.end_entry.pack(anchor="w", padx=12, pady=(2, 14))
        self.end_entry.configure(state="disabled")

        ctk.CTkButton(self, text="Add task", command=self.add_task).pack(fill="x", padx=12, pady=(0, 12))

    def _on_multi_day_toggled(self):
        if self.multi_day_var.get():
            self.end_entry.configure(state="normal")
            self.end_entry.set_date(self.start_entry.get_date())
        else:
            self.end_entry.configure(state="disabled")

    def add_task(self):
        title = (self.title_var.get() or "").strip()
        if not title:
            self.title_entry.focus_set()
            return
        start = self.start_entry.get_date()
        end = self.end_entry.get_date() if self.multi_day_var.get() else start
        if end < start:
            messagebox.showwarning("Invalid dates", "End date must be on or after start date.", parent=self)
            return
        try:
            self.store.create(title, start, end)
        except InvalidRange as exc:
            messagebox.showwarning("Invalid dates", str(exc), parent=self)
            return
        if not save_or_report(self.store, self):
            return
        self.title_var.set("")
        self.title_entry.focus_set()
        if callable(self.on_task_added):
            self.on_task_added()


class CalendarTodoApp(ctk.CTk):
    """Main window: month navigation, creation sidebar and the calendar grid."""

    def __init__(self, store: TodoStore, config: AppConfig):
        super().__init__()
        self.store = store
        self.config_values = config
        self.title(config.app_title)
        self.geometry("900x520")
        self.minsize(720, 420)

        # App header
        header = ctk.CTkFrame(self, fg_color="transparent")
        header.pack(fill="x", padx=12, pady=(10, 4))
        self.month_label = ctk.CTkLabel(header, text="", font=("Segoe UI", 18, "bold"))
        self.month_label.pack(side="left")
        nav = ctk.CTkFrame(header, fg_color="transparent")
        nav.pack(side="right")
        ctk.CTkButton(nav, text="< Prev", width=80, command=lambda: self.calendar.move_month(-1)).pack(
            side="left", padx=5
        )
        ctk.CTkButton(nav, text="Next >", width=80, command=lambda: self.calendar.move_month(1)).pack(
            side="left", padx=5
        )

        body = ctk.CTkFrame(self, fg_color="transparent")
        body.pack(fill="both", expand=True, padx=12, pady=4)

        self._load_store()

        self.calendar = CalendarPanel(body, store, on_month_changed=self._update_month_label)
        self.sidebar = TaskCreateSidebar(body, store, on_task_added=self.calendar.refresh_percentages)
        self.sidebar.pack(side="left", fill="y", padx=(0, 8))
        self.calendar.pack(side="left", fill="both", expand=True)

        ctk.CTkLabel(self, text=HINT_TEXT, text_color="#9CA3AF", anchor="w").pack(fill="x", padx=12, pady=(4, 8))

        self.bind("<Escape>", lambda _e: self.calendar.clear_selection())
        self._update_month_label(self.calendar.year, self.calendar.month)

    def _load_store(self):
        try:
            report = self.store.load()
        except StorageIOError as exc:
            messagebox.showerror("Error", f"Could not load todos: {exc}", parent=self)
            return
        if report.skipped:
            logger.warning("%d unreadable line(s) in %s were ignored", report.skipped, report.path)

    def _update_month_label(self, year: int, month: int):
        self.month_label.configure(text=f"{date(year, month, 1):%B %Y}")


# -------------------------------
# MAIN
# -------------------------------
def main() -> None:
    config = AppConfig.default()
    setup_logging(log_dir=config.log_dir, console_level=config.console_level)
    logger.info("Starting %s, data file %s", config.app_title, config.data_file)

    write_theme_if_missing(config.theme_file)
    ctk.set_appearance_mode(config.appearance_mode)
    try:
        ctk.set_default_color_theme(str(config.theme_file))
    except Exception:
        logger.warning("Custom theme %s unusable, falling back to dark-blue", config.theme_file, exc_info=True)
        ctk.set_default_color_theme("dark-blue")

    store = TodoStore(config.data_file)
    app = CalendarTodoApp(store, config)
    app.mainloop()
    logger.info("Bye.")


if __name__ == "__main__":
    main()
