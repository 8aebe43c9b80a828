"""Plain data types shared by the stores and the scheduling services.

Store adapters take and return these values, never ORM rows, so the
resolver and mutation engine stay independent of the persistence layer.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterator, Literal, Optional, Union

ProgramStatus = Literal["draft", "published", "archived"]
PROGRAM_STATUSES: tuple[str, ...] = ("draft", "published", "archived")


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar window."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"start {self.start} is after end {self.end}")

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def overlaps(self, other: DateRange) -> bool:
        return self.start <= other.end and other.start <= self.end

    def intersect(self, other: DateRange) -> Optional[DateRange]:
        if not self.overlaps(other):
            return None
        return DateRange(max(self.start, other.start), min(self.end, other.end))

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True)
class WorkoutType:
    id: int
    code: str
    name: str = ""


@dataclass(frozen=True)
class WorkoutDefinition:
    id: int
    coach_id: int
    description: str
    name: Optional[str] = None
    notes: str = ""
    color: Optional[str] = None
    type_id: Optional[int] = None
    type_code: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        first_line = (self.description or "").strip().splitlines()
        return first_line[0] if first_line else f"Workout {self.id}"


@dataclass(frozen=True)
class DirectAssignment:
    id: int
    athlete_id: int
    workout_id: int
    workout_date: date


@dataclass(frozen=True)
class Program:
    id: int
    coach_id: int
    name: str
    start_date: date
    end_date: date
    status: ProgramStatus = "draft"
    description: Optional[str] = None

    @property
    def window(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    @property
    def duration_weeks(self) -> int:
        return math.ceil(len(self.window) / 7)


@dataclass(frozen=True)
class ProgramWorkout:
    """A dated placement inside a program.

    Not athlete-scoped: every athlete with an active assignment to the
    program sees this row, so changing it changes all of their calendars.
    """

    id: int
    program_id: int
    workout_id: int
    workout_date: date


@dataclass(frozen=True)
class ProgramAssignment:
    id: int
    program_id: int
    athlete_id: int
    start_date: date
    end_date: date
    program_name: Optional[str] = None

    @property
    def window(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)


@dataclass(frozen=True)
class ActivityRecord:
    athlete_id: int
    workout_id: int
    scheduled_on: date
    is_completed: bool = False
    is_unscaled: bool = False
    notes: str = ""
    completed_at: Optional[datetime] = None

    @property
    def key(self) -> tuple[int, int, date]:
        return (self.athlete_id, self.workout_id, self.scheduled_on)


# -- Provenance: tagged variant --


@dataclass(frozen=True)
class DirectSource:
    assignment_id: int
    kind: Literal["direct"] = "direct"


@dataclass(frozen=True)
class ProgramSource:
    program_workout_id: int
    program_id: int
    program_name: Optional[str] = None
    kind: Literal["program"] = "program"


Provenance = Union[DirectSource, ProgramSource]


@dataclass(frozen=True)
class ResolvedScheduleEntry:
    """One workout on one athlete's calendar, from either source.

    Computed on every resolve call and never cached across mutations.
    """

    athlete_id: int
    workout_id: int
    date: date
    provenance: Provenance
    workout: WorkoutDefinition
    activity: Optional[ActivityRecord] = None

    @property
    def provenance_kind(self) -> str:
        return self.provenance.kind

    @property
    def provenance_id(self) -> int:
        match self.provenance:
            case DirectSource(assignment_id=assignment_id):
                return assignment_id
            case ProgramSource(program_workout_id=program_workout_id):
                return program_workout_id
        raise TypeError(f"unknown provenance {self.provenance!r}")

    @property
    def program_name(self) -> Optional[str]:
        if isinstance(self.provenance, ProgramSource):
            return self.provenance.program_name
        return None

    @property
    def activity_key(self) -> tuple[int, int, date]:
        return (self.athlete_id, self.workout_id, self.date)

    def sort_key(self) -> tuple[date, str, int]:
        return (self.date, self.provenance_kind, self.provenance_id)
