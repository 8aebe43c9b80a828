"""In-process store adapter holding every table in dictionaries.

Enforces the same uniqueness rules as the SQL schema so the scheduling
services behave identically against it; used by the test suite and for
local demos without a database.
"""

from __future__ import annotations

import copy
import itertools
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, Iterator, Optional

from core.domain import (
    ActivityRecord,
    DateRange,
    DirectAssignment,
    Program,
    ProgramAssignment,
    ProgramWorkout,
    WorkoutDefinition,
    WorkoutType,
)
from core.errors import AssignmentNotFound, ConstraintViolation, DuplicateAssignment, WorkoutInUse, WorkoutNotFound
from core.stores.base import SchedulingStore


class MemoryStore(SchedulingStore):
    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.workout_types: dict[int, WorkoutType] = {}
        self.workouts: dict[int, WorkoutDefinition] = {}
        self.direct_assignments: dict[int, DirectAssignment] = {}
        self.programs: dict[int, Program] = {}
        self.program_workouts: dict[int, ProgramWorkout] = {}
        self.program_assignments: dict[int, ProgramAssignment] = {}
        self.activity: dict[tuple[int, int, date], ActivityRecord] = {}
        self._depth = 0

    _TABLES = (
        "workout_types",
        "workouts",
        "direct_assignments",
        "programs",
        "program_workouts",
        "program_assignments",
        "activity",
    )

    def _next_id(self) -> int:
        return next(self._ids)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._depth:
            yield
            return
        snapshot = {name: copy.copy(getattr(self, name)) for name in self._TABLES}
        self._depth += 1
        try:
            yield
        except Exception:
            for name, table in snapshot.items():
                setattr(self, name, table)
            raise
        finally:
            self._depth -= 1

    # -- seeding helpers --

    def add_workout_type(self, code: str, name: str = "") -> WorkoutType:
        wt = WorkoutType(id=self._next_id(), code=code, name=name)
        self.workout_types[wt.id] = wt
        return wt

    def remove_workout(self, workout_id: int) -> None:
        """Drop a template from the catalog, leaving its assignments behind."""
        self.workouts.pop(workout_id, None)

    # -- direct assignments --

    def find_direct_assignment(self, athlete_id: int, workout_id: int, workout_date: date) -> Optional[DirectAssignment]:
        for row in self.direct_assignments.values():
            if (row.athlete_id, row.workout_id, row.workout_date) == (athlete_id, workout_id, workout_date):
                return row
        return None

    def find_direct_assignments_in_range(self, athlete_id: int, date_range: DateRange) -> list[DirectAssignment]:
        rows = [
            r for r in self.direct_assignments.values()
            if r.athlete_id == athlete_id and date_range.contains(r.workout_date)
        ]
        return sorted(rows, key=lambda r: (r.workout_date, r.id))

    def insert_direct_assignment(self, athlete_id: int, workout_id: int, workout_date: date) -> DirectAssignment:
        self._require_workout(workout_id)
        if self.find_direct_assignment(athlete_id, workout_id, workout_date):
            raise DuplicateAssignment("Workout already assigned to this athlete on this date")
        row = DirectAssignment(id=self._next_id(), athlete_id=athlete_id, workout_id=workout_id, workout_date=workout_date)
        self.direct_assignments[row.id] = row
        return row

    def update_direct_assignment_date(self, assignment_id: int, new_date: date) -> DirectAssignment:
        row = self.direct_assignments.get(assignment_id)
        if row is None:
            raise AssignmentNotFound("Workout assignment not found", details={"assignment_id": assignment_id})
        clash = self.find_direct_assignment(row.athlete_id, row.workout_id, new_date)
        if clash is not None and clash.id != assignment_id:
            raise DuplicateAssignment("Workout already assigned to this athlete on this date")
        row = replace(row, workout_date=new_date)
        self.direct_assignments[row.id] = row
        return row

    def delete_direct_assignment(self, assignment_id: int) -> None:
        if self.direct_assignments.pop(assignment_id, None) is None:
            raise AssignmentNotFound("Workout assignment not found", details={"assignment_id": assignment_id})

    # -- programs --

    def find_program(self, program_id: int) -> Optional[Program]:
        return self.programs.get(program_id)

    def insert_program(
        self,
        coach_id: int,
        name: str,
        start_date: date,
        end_date: date,
        status: str = "draft",
        description: Optional[str] = None,
    ) -> Program:
        if start_date > end_date:
            raise ConstraintViolation("ck_program_window")
        program = Program(
            id=self._next_id(),
            coach_id=coach_id,
            name=name,
            start_date=start_date,
            end_date=end_date,
            status=status,
            description=description,
        )
        self.programs[program.id] = program
        return program

    def find_program_workout(self, program_id: int, workout_id: int, workout_date: date) -> Optional[ProgramWorkout]:
        for row in self.program_workouts.values():
            if (row.program_id, row.workout_id, row.workout_date) == (program_id, workout_id, workout_date):
                return row
        return None

    def find_program_workouts_in_range(self, program_id: int, date_range: DateRange) -> list[ProgramWorkout]:
        rows = [
            r for r in self.program_workouts.values()
            if r.program_id == program_id and date_range.contains(r.workout_date)
        ]
        return sorted(rows, key=lambda r: (r.workout_date, r.id))

    def insert_program_workout(self, program_id: int, workout_id: int, workout_date: date) -> ProgramWorkout:
        if program_id not in self.programs:
            raise ConstraintViolation(f"program {program_id} does not exist")
        self._require_workout(workout_id)
        if self.find_program_workout(program_id, workout_id, workout_date):
            raise DuplicateAssignment("Workout already placed on this program date")
        row = ProgramWorkout(id=self._next_id(), program_id=program_id, workout_id=workout_id, workout_date=workout_date)
        self.program_workouts[row.id] = row
        return row

    def update_program_workout_date(self, program_workout_id: int, new_date: date) -> ProgramWorkout:
        row = self.program_workouts.get(program_workout_id)
        if row is None:
            raise AssignmentNotFound("Program workout not found", details={"program_workout_id": program_workout_id})
        clash = self.find_program_workout(row.program_id, row.workout_id, new_date)
        if clash is not None and clash.id != program_workout_id:
            raise DuplicateAssignment("Workout already placed on this program date")
        row = replace(row, workout_date=new_date)
        self.program_workouts[row.id] = row
        return row

    def delete_program_workout(self, program_workout_id: int) -> None:
        self.program_workouts.pop(program_workout_id, None)

    # -- program assignments --

    def _with_name(self, row: ProgramAssignment) -> ProgramAssignment:
        program = self.programs.get(row.program_id)
        return replace(row, program_name=program.name if program else None)

    def find_active_program_assignments(self, athlete_id: int, date_range: DateRange) -> list[ProgramAssignment]:
        rows = [
            self._with_name(r) for r in self.program_assignments.values()
            if r.athlete_id == athlete_id and r.window.overlaps(date_range)
        ]
        return sorted(rows, key=lambda r: r.id)

    def find_program_assignments(self, program_id: int) -> list[ProgramAssignment]:
        rows = [self._with_name(r) for r in self.program_assignments.values() if r.program_id == program_id]
        return sorted(rows, key=lambda r: (r.athlete_id, r.start_date))

    def insert_program_assignment(self, program_id: int, athlete_id: int, start_date: date, end_date: date) -> ProgramAssignment:
        if program_id not in self.programs:
            raise ConstraintViolation(f"program {program_id} does not exist")
        if start_date > end_date:
            raise ConstraintViolation("ck_program_assignment_window")
        for r in self.program_assignments.values():
            if (r.program_id, r.athlete_id, r.start_date) == (program_id, athlete_id, start_date):
                raise DuplicateAssignment("Athlete already assigned to this program window")
        row = ProgramAssignment(
            id=self._next_id(), program_id=program_id, athlete_id=athlete_id, start_date=start_date, end_date=end_date
        )
        self.program_assignments[row.id] = row
        return self._with_name(row)

    def delete_program_assignments(self, program_id: int, athlete_id: int) -> int:
        doomed = [
            k for k, r in self.program_assignments.items()
            if r.program_id == program_id and r.athlete_id == athlete_id
        ]
        for k in doomed:
            del self.program_assignments[k]
        return len(doomed)

    # -- activity --

    def find_activity_record(self, athlete_id: int, workout_id: int, scheduled_on: date) -> Optional[ActivityRecord]:
        return self.activity.get((athlete_id, workout_id, scheduled_on))

    def find_activity_records(
        self, athlete_id: int, keys: Iterable[tuple[int, date]]
    ) -> dict[tuple[int, date], ActivityRecord]:
        found: dict[tuple[int, date], ActivityRecord] = {}
        for workout_id, scheduled_on in keys:
            record = self.activity.get((athlete_id, workout_id, scheduled_on))
            if record is not None:
                found[(workout_id, scheduled_on)] = record
        return found

    def upsert_activity_record(self, record: ActivityRecord) -> ActivityRecord:
        self.activity[record.key] = record
        return record

    # -- catalog --

    def get_workouts(self, workout_ids: Iterable[int]) -> dict[int, WorkoutDefinition]:
        return {i: self.workouts[i] for i in set(workout_ids) if i in self.workouts}

    def list_workouts(self, coach_id: int) -> list[WorkoutDefinition]:
        rows = [w for w in self.workouts.values() if w.coach_id == coach_id]
        return sorted(rows, key=lambda w: (w.created_at or datetime.min, w.id), reverse=True)

    def insert_workout(
        self,
        coach_id: int,
        description: str,
        name: Optional[str] = None,
        notes: str = "",
        color: Optional[str] = None,
        type_id: Optional[int] = None,
    ) -> WorkoutDefinition:
        type_code = None
        if type_id is not None:
            wt = self.workout_types.get(type_id)
            if wt is None:
                raise ConstraintViolation(f"workout type {type_id} does not exist")
            type_code = wt.code
        workout = WorkoutDefinition(
            id=self._next_id(),
            coach_id=coach_id,
            name=name,
            description=description,
            notes=notes,
            color=color,
            type_id=type_id,
            type_code=type_code,
            created_at=datetime.utcnow(),
        )
        self.workouts[workout.id] = workout
        return workout

    def update_workout(
        self,
        workout_id: int,
        description: str,
        name: Optional[str] = None,
        notes: str = "",
        color: Optional[str] = None,
        type_id: Optional[int] = None,
    ) -> WorkoutDefinition:
        current = self.workouts.get(workout_id)
        if current is None:
            raise WorkoutNotFound("Workout not found", details={"workout_id": workout_id})
        type_code = None
        if type_id is not None:
            wt = self.workout_types.get(type_id)
            if wt is None:
                raise ConstraintViolation(f"workout type {type_id} does not exist")
            type_code = wt.code
        updated = replace(
            current, description=description, name=name, notes=notes, color=color, type_id=type_id, type_code=type_code
        )
        self.workouts[workout_id] = updated
        return updated

    def delete_workout(self, workout_id: int) -> None:
        if workout_id not in self.workouts:
            raise WorkoutNotFound("Workout not found", details={"workout_id": workout_id})
        referenced = any(r.workout_id == workout_id for r in self.direct_assignments.values()) or any(
            r.workout_id == workout_id for r in self.program_workouts.values()
        )
        if referenced:
            raise WorkoutInUse(
                "Workout is still scheduled; remove its assignments and program placements first",
                details={"workout_id": workout_id},
            )
        del self.workouts[workout_id]

    def list_workout_types(self) -> list[WorkoutType]:
        return sorted(self.workout_types.values(), key=lambda t: t.code)

    def _require_workout(self, workout_id: int) -> None:
        if workout_id not in self.workouts:
            raise ConstraintViolation(f"workout {workout_id} does not exist")
