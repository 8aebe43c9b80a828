from __future__ import annotations

from datetime import date, timedelta

from core.domain import DateRange, ResolvedScheduleEntry

DEFAULT_DIRECT_COLOR = "#6366f1"
DEFAULT_PROGRAM_COLOR = "#3b82f6"


def week_range(anchor: date, week_starts_on: int = 0) -> DateRange:
    """The 7-day week containing ``anchor``; 0 = Monday."""
    offset = (anchor.weekday() - week_starts_on) % 7
    start = anchor - timedelta(days=offset)
    return DateRange(start, start + timedelta(days=6))


def month_grid_range(anchor: date, week_starts_on: int = 0, days: int = 42) -> DateRange:
    """Full-week grid covering the month of ``anchor`` (six weeks by default)."""
    first = anchor.replace(day=1)
    start = week_range(first, week_starts_on).start
    return DateRange(start, start + timedelta(days=days - 1))


def group_by_date(entries: list[ResolvedScheduleEntry], date_range: DateRange) -> dict[date, list[ResolvedScheduleEntry]]:
    grouped: dict[date, list[ResolvedScheduleEntry]] = {day: [] for day in date_range.days()}
    for entry in entries:
        if entry.date in grouped:
            grouped[entry.date].append(entry)
    return grouped


def entry_color(
    entry: ResolvedScheduleEntry,
    direct_color: str = DEFAULT_DIRECT_COLOR,
    program_color: str = DEFAULT_PROGRAM_COLOR,
) -> str:
    if entry.workout.color:
        return entry.workout.color
    return program_color if entry.provenance_kind == "program" else direct_color
