"""Store adapter interfaces for the scheduling core.

Each method maps onto a single relational query or mutation. Adapters hold
no business rules; they translate their backend's failures into
``StoreUnavailable`` / ``ConstraintViolation`` (or ``DuplicateAssignment``
for the uniqueness constraints the scheduling rules rely on).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date
from typing import Iterable, Optional

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


class AssignmentStore(ABC):
    """Direct assignments, programs, program workouts and program assignments."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Group the calls made inside the block into one all-or-nothing unit.

        Nested use joins the outer transaction.
        """

    # -- direct assignments --

    @abstractmethod
    def find_direct_assignment(self, athlete_id: int, workout_id: int, workout_date: date) -> Optional[DirectAssignment]:
        """Return the assignment bound to exactly this triple, if any."""

    @abstractmethod
    def find_direct_assignments_in_range(self, athlete_id: int, date_range: DateRange) -> list[DirectAssignment]:
        """Return the athlete's assignments dated inside ``date_range``."""

    @abstractmethod
    def insert_direct_assignment(self, athlete_id: int, workout_id: int, workout_date: date) -> DirectAssignment:
        """Insert a row; raises DuplicateAssignment if the triple is taken."""

    @abstractmethod
    def update_direct_assignment_date(self, assignment_id: int, new_date: date) -> DirectAssignment:
        """Re-date a row; raises AssignmentNotFound or DuplicateAssignment."""

    @abstractmethod
    def delete_direct_assignment(self, assignment_id: int) -> None:
        """Delete a row; raises AssignmentNotFound if it is already gone."""

    # -- programs --

    @abstractmethod
    def find_program(self, program_id: int) -> Optional[Program]:
        pass

    @abstractmethod
    def insert_program(
        self,
        coach_id: int,
        name: str,
        start_date: date,
        end_date: date,
        status: str = "draft",
        description: Optional[str] = None,
    ) -> Program:
        pass

    @abstractmethod
    def find_program_workout(self, program_id: int, workout_id: int, workout_date: date) -> Optional[ProgramWorkout]:
        pass

    @abstractmethod
    def find_program_workouts_in_range(self, program_id: int, date_range: DateRange) -> list[ProgramWorkout]:
        pass

    @abstractmethod
    def insert_program_workout(self, program_id: int, workout_id: int, workout_date: date) -> ProgramWorkout:
        """Insert a placement; raises DuplicateAssignment if the triple is taken."""

    @abstractmethod
    def update_program_workout_date(self, program_workout_id: int, new_date: date) -> ProgramWorkout:
        pass

    @abstractmethod
    def delete_program_workout(self, program_workout_id: int) -> None:
        """Delete a placement; deleting one that is already gone does nothing."""

    # -- program assignments --

    @abstractmethod
    def find_active_program_assignments(self, athlete_id: int, date_range: DateRange) -> list[ProgramAssignment]:
        """Assignments of the athlete whose window overlaps ``date_range``, with program names."""

    @abstractmethod
    def find_program_assignments(self, program_id: int) -> list[ProgramAssignment]:
        pass

    @abstractmethod
    def insert_program_assignment(self, program_id: int, athlete_id: int, start_date: date, end_date: date) -> ProgramAssignment:
        pass

    @abstractmethod
    def delete_program_assignments(self, program_id: int, athlete_id: int) -> int:
        """Remove every window the athlete has on the program; returns rows removed."""


class ActivityStore(ABC):
    """Per-athlete completion, scaling and notes keyed by (athlete, workout, date)."""

    @abstractmethod
    def find_activity_record(self, athlete_id: int, workout_id: int, scheduled_on: date) -> Optional[ActivityRecord]:
        pass

    @abstractmethod
    def find_activity_records(
        self, athlete_id: int, keys: Iterable[tuple[int, date]]
    ) -> dict[tuple[int, date], ActivityRecord]:
        """Batch lookup; ``keys`` are (workout_id, scheduled_on) pairs. Missing keys are absent."""

    @abstractmethod
    def upsert_activity_record(self, record: ActivityRecord) -> ActivityRecord:
        pass


class WorkoutCatalog(ABC):
    """Coach-owned library of reusable workout templates."""

    @abstractmethod
    def get_workouts(self, workout_ids: Iterable[int]) -> dict[int, WorkoutDefinition]:
        """Batch lookup by id; unknown ids are absent from the result."""

    def get_workout(self, workout_id: int) -> Optional[WorkoutDefinition]:
        return self.get_workouts([workout_id]).get(workout_id)

    @abstractmethod
    def list_workouts(self, coach_id: int) -> list[WorkoutDefinition]:
        """The coach's templates, newest first."""

    @abstractmethod
    def insert_workout(
        self,
        coach_id: int,
        description: str,
        name: Optional[str] = None,
        notes: str = "",
        color: Optional[str] = None,
        type_id: Optional[int] = None,
    ) -> WorkoutDefinition:
        pass

    @abstractmethod
    def update_workout(
        self,
        workout_id: int,
        description: str,
        name: Optional[str] = None,
        notes: str = "",
        color: Optional[str] = None,
        type_id: Optional[int] = None,
    ) -> WorkoutDefinition:
        """Replace the template's content fields; raises WorkoutNotFound."""

    @abstractmethod
    def delete_workout(self, workout_id: int) -> None:
        """Remove a template; raises WorkoutNotFound, or WorkoutInUse while it is still scheduled."""

    @abstractmethod
    def list_workout_types(self) -> list[WorkoutType]:
        pass


class SchedulingStore(AssignmentStore, ActivityStore, WorkoutCatalog, ABC):
    """Convenience union implemented by adapters backing a single database."""
