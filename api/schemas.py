from __future__ import annotations

from datetime import date as dt_date
from datetime import datetime as dt_datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from core.domain import ActivityRecord, ResolvedScheduleEntry
from core.services.calendar_view import entry_color


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    athlete_id: int
    workout_id: int
    scheduled_on: dt_date
    is_completed: bool
    is_unscaled: bool
    notes: str
    completed_at: Optional[dt_datetime] = None


class WorkoutOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    coach_id: int
    name: Optional[str] = None
    description: str
    notes: str = ""
    color: Optional[str] = None
    type_id: Optional[int] = None
    type_code: Optional[str] = None


class ScheduleEntryOut(BaseModel):
    athlete_id: int
    workout_id: int
    date: dt_date
    provenance: str
    provenance_id: int
    program_id: Optional[int] = None
    program_name: Optional[str] = None
    display_name: str
    color: str
    workout: WorkoutOut
    activity: Optional[ActivityOut] = None

    @classmethod
    def from_entry(cls, entry: ResolvedScheduleEntry, direct_color: str, program_color: str) -> ScheduleEntryOut:
        return cls(
            athlete_id=entry.athlete_id,
            workout_id=entry.workout_id,
            date=entry.date,
            provenance=entry.provenance_kind,
            provenance_id=entry.provenance_id,
            program_id=getattr(entry.provenance, "program_id", None),
            program_name=entry.program_name,
            display_name=entry.workout.display_name,
            color=entry_color(entry, direct_color, program_color),
            workout=WorkoutOut.model_validate(entry.workout),
            activity=ActivityOut.model_validate(entry.activity) if entry.activity else None,
        )


class ScheduleDayOut(BaseModel):
    date: dt_date
    entries: list[ScheduleEntryOut]


class ScheduleOut(BaseModel):
    athlete_id: int
    start: dt_date
    end: dt_date
    days: list[ScheduleDayOut]


class AssignmentCreatedOut(BaseModel):
    assignment_id: int
    athlete_id: int
    workout_id: int
    date: dt_date


class MutationOut(BaseModel):
    program_wide: bool
    affected_athletes: list[int]
    orphaned_activity: Optional[ActivityOut] = None


class ProgramOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    coach_id: int
    name: str
    description: Optional[str] = None
    start_date: dt_date
    end_date: dt_date
    status: str
    duration_weeks: int


class ProgramWorkoutOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    program_id: int
    workout_id: int
    workout_date: dt_date


class ProgramAssignmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    program_id: int
    athlete_id: int
    start_date: dt_date
    end_date: dt_date


class HealthOut(BaseModel):
    status: str
    message: str
    queries: int


def activity_out(record: Optional[ActivityRecord]) -> Optional[ActivityOut]:
    return ActivityOut.model_validate(record) if record is not None else None
