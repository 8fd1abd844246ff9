# calendar_todo/grid.py

"""Month grid layout, completion colours and day-range selection (no Tk imports)."""

from __future__ import annotations

import calendar
from datetime import date

WEEK_HEADERS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

RGB = tuple[int, int, int]

NO_TASKS_RGB: RGB = (55, 55, 70)
SELECTED_RGB: RGB = (80, 100, 140)
CELL_BORDER_RGB: RGB = (70, 70, 90)

# 0% red, 25% orange, 50% yellow, 75% green, 100% blue (muted)
GRADIENT_STOPS: tuple[RGB, ...] = (
    (140, 65, 60),
    (165, 110, 65),
    (165, 145, 75),
    (70, 125, 85),
    (60, 85, 130),
)


def to_hex(rgb: RGB) -> str:
    r, g, b = rgb
    return f"#{r:02X}{g:02X}{b:02X}"


def from_hex(value: str) -> RGB:
    value = value.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected #rrggbb colour, got {value!r}")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


NO_TASKS_COLOR = to_hex(NO_TASKS_RGB)
SELECTED_COLOR = to_hex(SELECTED_RGB)
CELL_BORDER_COLOR = to_hex(CELL_BORDER_RGB)


def _clamp(value: int) -> int:
    return max(0, min(255, value))


def lerp(a: RGB, b: RGB, t: float) -> RGB:
    return tuple(_clamp(int(ca + (cb - ca) * t)) for ca, cb in zip(a, b))  # type: ignore[return-value]


def color_rgb_for_percent(percent: int) -> RGB:
    if percent <= 0:
        return GRADIENT_STOPS[0]
    last = len(GRADIENT_STOPS) - 1
    if percent >= 100:
        return GRADIENT_STOPS[last]
    segment = percent / 100.0 * last
    i = int(segment)
    return lerp(GRADIENT_STOPS[i], GRADIENT_STOPS[i + 1], segment - i)


def color_for_percent(percent: int) -> str:
    """Cell background for a day with tasks, as #rrggbb."""
    return to_hex(color_rgb_for_percent(percent))


def brighten(color: str, factor: float = 1.15) -> str:
    """Hover shade of a #rrggbb colour."""
    return to_hex(tuple(min(255, int(c * factor + 20)) for c in from_hex(color)))  # type: ignore[arg-type]


def month_cells(year: int, month: int) -> list[date | None]:
    """Monday-first cells for a month: None for the blanks before day 1."""
    offset, days_in_month = calendar.monthrange(year, month)
    cells: list[date | None] = [None] * offset
    cells.extend(date(year, month, day) for day in range(1, days_in_month + 1))
    return cells


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


class RangeSelection:
    """
    Day selection on the calendar grid.

    A plain click anchors a single day; a shift-click extends from the
    anchor to the clicked day.
    """

    def __init__(self) -> None:
        self.anchor: date | None = None
        self.range_end: date | None = None

    def click(self, day: date, *, extend: bool = False) -> tuple[date, date]:
        if extend and self.anchor is not None:
            self.range_end = day
        else:
            self.anchor = day
            self.range_end = None
        return self.bounds()  # type: ignore[return-value]

    def clear(self) -> None:
        self.anchor = None
        self.range_end = None

    def bounds(self) -> tuple[date, date] | None:
        if self.anchor is None:
            return None
        end = self.range_end or self.anchor
        return min(self.anchor, end), max(self.anchor, end)

    @property
    def is_range(self) -> bool:
        bounds = self.bounds()
        return bounds is not None and bounds[0] != bounds[1]

    def contains(self, day: date) -> bool:
        bounds = self.bounds()
        if bounds is None:
            return False
        return bounds[0] <= day <= bounds[1]
