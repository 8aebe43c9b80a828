"""Tests for Pydantic input validation models."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from core.validators import (
    ActivityInput,
    AssignWorkoutInput,
    DeleteWorkoutInput,
    InlineAssignInput,
    MoveWorkoutInput,
    ProgramAssignInput,
    ProgramCreateInput,
    ScheduleQueryInput,
    WorkoutCreateInput,
)


# --- AssignWorkoutInput ---

def test_assign_valid():
    a = AssignWorkoutInput(workout_id=3, date="2026-03-10")
    assert a.date == date(2026, 3, 10)


def test_assign_invalid_workout_id():
    with pytest.raises(ValidationError):
        AssignWorkoutInput(workout_id=0, date="2026-03-10")


# --- ScheduleQueryInput ---

def test_schedule_query_single_day():
    q = ScheduleQueryInput(start="2026-03-10", end="2026-03-10")
    assert q.start == q.end


def test_schedule_query_inverted():
    with pytest.raises(ValidationError):
        ScheduleQueryInput(start="2026-03-10", end="2026-03-01")


# --- Move / Delete ---

def test_move_direct_needs_no_program():
    m = MoveWorkoutInput(workout_id=1, provenance="direct", from_date="2026-03-03", to_date="2026-03-05")
    assert m.program_id is None


def test_move_program_requires_program_id():
    with pytest.raises(ValidationError):
        MoveWorkoutInput(workout_id=1, provenance="program", from_date="2026-03-03", to_date="2026-03-05")


def test_move_unknown_provenance():
    with pytest.raises(ValidationError):
        MoveWorkoutInput(workout_id=1, provenance="team", from_date="2026-03-03", to_date="2026-03-05")


def test_delete_program_with_program_id():
    d = DeleteWorkoutInput(workout_id=1, provenance="program", program_id=4, date="2026-03-03")
    assert d.program_id == 4


def test_delete_program_without_program_id():
    with pytest.raises(ValidationError):
        DeleteWorkoutInput(workout_id=1, provenance="program", date="2026-03-03")


# --- WorkoutCreateInput ---

def test_workout_defaults():
    w = WorkoutCreateInput(description="Fran")
    assert w.notes == ""
    assert w.name is None


def test_workout_requires_description():
    with pytest.raises(ValidationError):
        WorkoutCreateInput(description="")


@pytest.mark.parametrize("color", ["#fff", "#3B82F6"])
def test_workout_color_valid(color):
    assert WorkoutCreateInput(description="x", color=color).color == color


@pytest.mark.parametrize("color", ["blue", "#12345", "3b82f6"])
def test_workout_color_invalid(color):
    with pytest.raises(ValidationError):
        WorkoutCreateInput(description="x", color=color)


def test_inline_assign_carries_workout_fields():
    i = InlineAssignInput(coach_id=9, description="Cindy", date="2026-03-12")
    assert i.description == "Cindy"
    assert i.date == date(2026, 3, 12)


# --- Programs ---

def test_program_create_defaults_to_draft():
    p = ProgramCreateInput(coach_id=9, name="Block", start_date="2026-03-01", end_date="2026-03-31")
    assert p.status == "draft"


def test_program_create_bad_status():
    with pytest.raises(ValidationError):
        ProgramCreateInput(coach_id=9, name="Block", start_date="2026-03-01", end_date="2026-03-31", status="live")


def test_program_create_inverted_window():
    with pytest.raises(ValidationError):
        ProgramCreateInput(coach_id=9, name="Block", start_date="2026-03-31", end_date="2026-03-01")


def test_program_assign_requires_athletes():
    with pytest.raises(ValidationError):
        ProgramAssignInput(athlete_ids=[])
    with pytest.raises(ValidationError):
        ProgramAssignInput(athlete_ids=[1, -2])


# --- ActivityInput ---

def test_activity_partial_update():
    a = ActivityInput(workout_id=1, scheduled_on="2026-03-03", notes="heavy")
    assert a.is_completed is None
    assert a.notes == "heavy"
