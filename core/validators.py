"""Pydantic validation models for all user-facing data entry points."""

from __future__ import annotations

import re
from datetime import date as dt_date
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from core.domain import PROGRAM_STATUSES

HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")


class AssignWorkoutInput(BaseModel):
    workout_id: int = Field(gt=0)
    date: dt_date


class ScheduleQueryInput(BaseModel):
    start: dt_date
    end: dt_date

    @model_validator(mode="after")
    def end_not_before_start(self):
        if self.end < self.start:
            raise ValueError("end must be on or after start")
        return self


class MoveWorkoutInput(BaseModel):
    workout_id: int = Field(gt=0)
    provenance: str
    from_date: dt_date
    to_date: dt_date
    program_id: Optional[int] = Field(default=None, gt=0)

    @field_validator("provenance")
    @classmethod
    def valid_provenance(cls, v):
        allowed = {"direct", "program"}
        if v not in allowed:
            raise ValueError(f"provenance must be one of {allowed}")
        return v

    @model_validator(mode="after")
    def program_id_for_program_entries(self):
        if self.provenance == "program" and self.program_id is None:
            raise ValueError("program_id is required for program entries")
        return self


class DeleteWorkoutInput(BaseModel):
    workout_id: int = Field(gt=0)
    provenance: str
    date: dt_date
    program_id: Optional[int] = Field(default=None, gt=0)

    @field_validator("provenance")
    @classmethod
    def valid_provenance(cls, v):
        allowed = {"direct", "program"}
        if v not in allowed:
            raise ValueError(f"provenance must be one of {allowed}")
        return v

    @model_validator(mode="after")
    def program_id_for_program_entries(self):
        if self.provenance == "program" and self.program_id is None:
            raise ValueError("program_id is required for program entries")
        return self


class WorkoutCreateInput(BaseModel):
    description: str = Field(min_length=1, max_length=5000)
    name: Optional[str] = Field(default=None, max_length=200)
    notes: str = Field(default="", max_length=2000)
    color: Optional[str] = None
    type_id: Optional[int] = Field(default=None, gt=0)

    @field_validator("color")
    @classmethod
    def valid_color(cls, v):
        if v is not None and not HEX_COLOR.match(v):
            raise ValueError("color must be a hex value like #3b82f6")
        return v


class ProgramCreateInput(BaseModel):
    coach_id: int = Field(gt=0)
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    start_date: dt_date
    end_date: dt_date
    status: str = "draft"

    @field_validator("status")
    @classmethod
    def valid_status(cls, v):
        if v not in PROGRAM_STATUSES:
            raise ValueError(f"status must be one of {set(PROGRAM_STATUSES)}")
        return v

    @model_validator(mode="after")
    def end_not_before_start(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class ProgramWorkoutInput(BaseModel):
    workout_id: int = Field(gt=0)
    date: dt_date


class ProgramAssignInput(BaseModel):
    athlete_ids: list[int] = Field(min_length=1)
    start_date: Optional[dt_date] = None
    end_date: Optional[dt_date] = None

    @field_validator("athlete_ids")
    @classmethod
    def positive_ids(cls, v):
        if any(i <= 0 for i in v):
            raise ValueError("athlete ids must be positive")
        return v


class ActivityInput(BaseModel):
    workout_id: int = Field(gt=0)
    scheduled_on: dt_date
    is_completed: Optional[bool] = None
    is_unscaled: Optional[bool] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class InlineAssignInput(WorkoutCreateInput):
    coach_id: int = Field(gt=0)
    date: dt_date
