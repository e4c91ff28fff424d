# crms/services/routine_grid.py

"""
Turns flat routine entries into the day x time-slot grid the dashboards show.

Entries are filtered on their foreign keys (room, semester, course, teacher,
lab), grouped by (day, start time) and laid out one row per day, one column
per slot. Empty cells read "-".
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from crms.core.constants import EMPTY_CELL, ROUTINE_DAYS, TIME_SLOTS
from crms.models.enums import DayOfWeek
from crms.schemas.routine import GridCell, GridCellEntry, GridRow, RoutineGrid

# filter dimension -> entry attribute holding the foreign key
FILTER_FIELDS = {
    "room": "room_id",
    "semester": "semester_id",
    "course": "course_id",
    "teacher": "teacher_id",
    "lab": "lab_id",
}


@dataclass
class RoutineFilter:
    room: Optional[int] = None
    semester: Optional[int] = None
    course: Optional[int] = None
    teacher: Optional[int] = None
    lab: Optional[int] = None

    def active(self) -> Dict[str, int]:
        """Dimensions that have a selected value."""
        return {
            name: getattr(self, name)
            for name in FILTER_FIELDS
            if getattr(self, name) is not None
        }

    def matches(self, entry) -> bool:
        return all(
            getattr(entry, FILTER_FIELDS[name], None) == value
            for name, value in self.active().items()
        )


def filter_entries(entries: Iterable, routine_filter: Optional[RoutineFilter] = None) -> list:
    entries = list(entries)
    if routine_filter is None or not routine_filter.active():
        return entries
    return [entry for entry in entries if routine_filter.matches(entry)]


def _day_value(day) -> str:
    return day.value if isinstance(day, DayOfWeek) else str(day).upper()


def slot_key(entry) -> Tuple[str, str]:
    return _day_value(entry.day_of_week), entry.start_time


def group_by_slot(entries: Iterable) -> Dict[Tuple[str, str], list]:
    grid = defaultdict(list)
    for entry in entries:
        grid[slot_key(entry)].append(entry)
    return dict(grid)


def slot_label(start: str) -> str:
    """ "08:00" -> "08:00 - 09:00" """
    hour = int(start[:2])
    return f"{start} - {(hour + 1) % 24:02d}:{start[3:]}"


def day_label(day: DayOfWeek) -> str:
    return day.value.capitalize()


def describe_entry(entry) -> str:
    if entry.is_break:
        return entry.break_name or "Break"

    course = getattr(entry, "course", None)
    teacher = getattr(entry, "teacher", None)
    room = getattr(entry, "room", None)
    lab = getattr(entry, "lab", None)
    semester = getattr(entry, "semester", None)

    parts = [f"{course.name} ({course.code})" if course else "N/A"]
    parts.append(f"T: {teacher.name if teacher else 'N/A'}")
    place = (room.room_number if room else None) or (lab.lab_number if lab else None)
    parts.append(f"R: {place or 'N/A'}")
    if semester is not None and semester.shortname:
        parts.append(f"S: {semester.shortname}")

    text = ", ".join(parts)
    if entry.is_canceled:
        text += " [CANCELED]"
    return text


def build_grid(
    entries: Iterable,
    routine_filter: Optional[RoutineFilter] = None,
    days: Sequence[DayOfWeek] = ROUTINE_DAYS,
    time_slots: Sequence[str] = TIME_SLOTS,
) -> RoutineGrid:
    filtered = filter_entries(entries, routine_filter)
    grouped = group_by_slot(filtered)

    rows: List[GridRow] = []
    placed = set()
    for day in days:
        cells = []
        for time in time_slots:
            cell_entries = grouped.get((day.value, time), [])
            placed.add((day.value, time))
            items = [
                GridCellEntry(
                    id=entry.id,
                    text=describe_entry(entry),
                    is_break=entry.is_break,
                    is_lab=entry.lab_id is not None,
                    is_canceled=entry.is_canceled,
                )
                for entry in cell_entries
            ]
            display = " | ".join(item.text for item in items) if items else EMPTY_CELL
            cells.append(GridCell(time=time, entries=items, display=display))
        rows.append(GridRow(day=day, label=day_label(day), cells=cells))

    outside = [
        entry.id
        for key, group in grouped.items()
        if key not in placed
        for entry in group
    ]

    return RoutineGrid(
        headers=[slot_label(time) for time in time_slots],
        rows=rows,
        filters=routine_filter.active() if routine_filter else {},
        total_entries=len(filtered),
        outside=[entry_id for entry_id in outside if entry_id is not None],
    )
