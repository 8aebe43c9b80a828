"""Program authoring: dated placements and the athletes exposed to them.

A placement must fall inside its program's window, and an athlete's
assignment window must fall inside it too.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from core.domain import PROGRAM_STATUSES, DateRange, Program, ProgramAssignment, ProgramWorkout
from core.errors import AssignmentNotFound, DuplicateAssignment, InvalidTargetDate, WorkoutNotFound
from core.stores.base import AssignmentStore, WorkoutCatalog

logger = logging.getLogger(__name__)


class ProgramService:
    def __init__(self, assignments: AssignmentStore, catalog: WorkoutCatalog) -> None:
        self.assignments = assignments
        self.catalog = catalog

    def create_program(
        self,
        coach_id: int,
        name: str,
        start_date: date,
        end_date: date,
        status: str = "draft",
        description: Optional[str] = None,
    ) -> Program:
        if start_date > end_date:
            raise InvalidTargetDate("Program end date must not precede its start date")
        if status not in PROGRAM_STATUSES:
            raise ValueError(f"status must be one of {PROGRAM_STATUSES}")
        program = self.assignments.insert_program(coach_id, name, start_date, end_date, status, description)
        logger.info("program_created", extra={"ctx_program_id": program.id, "ctx_coach_id": coach_id})
        return program

    def get_program(self, program_id: int) -> Program:
        program = self.assignments.find_program(program_id)
        if program is None:
            raise AssignmentNotFound("Program not found", details={"program_id": program_id})
        return program

    def add_program_workout(self, program_id: int, workout_id: int, workout_date: date) -> ProgramWorkout:
        with self.assignments.transaction():
            program = self.get_program(program_id)
            if not program.window.contains(workout_date):
                raise InvalidTargetDate(
                    f"Workout date must fall within the program ({program.start_date} to {program.end_date})",
                    details={"program_id": program_id, "date": workout_date.isoformat()},
                )
            if self.catalog.get_workout(workout_id) is None:
                raise WorkoutNotFound("Workout not found", details={"workout_id": workout_id})
            if self.assignments.find_program_workout(program_id, workout_id, workout_date) is not None:
                raise DuplicateAssignment(
                    "Workout already placed on this program date",
                    details={"program_id": program_id, "workout_id": workout_id, "date": workout_date.isoformat()},
                )
            return self.assignments.insert_program_workout(program_id, workout_id, workout_date)

    def program_workouts(self, program_id: int) -> list[ProgramWorkout]:
        program = self.get_program(program_id)
        return self.assignments.find_program_workouts_in_range(program_id, program.window)

    def assign_program(
        self,
        program_id: int,
        athlete_ids: Iterable[int],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ProgramAssignment]:
        """Expose athletes to the program for a window, defaulting to the whole program.

        Athletes already holding the same window are left untouched and not
        returned. A window with the same start but a different end raises
        DuplicateAssignment and nothing from the batch is stored.
        """
        with self.assignments.transaction():
            program = self.get_program(program_id)
            window_start = start_date or program.start_date
            window_end = end_date or program.end_date
            if window_start > window_end:
                raise InvalidTargetDate("Assignment end date must not precede its start date")
            window = DateRange(window_start, window_end)
            if program.window.intersect(window) != window:
                raise InvalidTargetDate(
                    f"Assignment window must fall within the program ({program.start_date} to {program.end_date})",
                    details={"program_id": program_id},
                )

            existing = {(a.athlete_id, a.start_date): a.end_date for a in self.assignments.find_program_assignments(program_id)}
            created: list[ProgramAssignment] = []
            for athlete_id in dict.fromkeys(athlete_ids):
                held_until = existing.get((athlete_id, window.start))
                if held_until == window.end:
                    continue
                if held_until is not None:
                    raise DuplicateAssignment(
                        f"Athlete {athlete_id} already holds a window starting {window.start} ending {held_until}; unassign first to change it",
                        details={"program_id": program_id, "athlete_id": athlete_id, "end_date": held_until.isoformat()},
                    )
                created.append(self.assignments.insert_program_assignment(program_id, athlete_id, window.start, window.end))

        logger.info("program_assigned", extra={"ctx_program_id": program_id, "ctx_athletes": [a.athlete_id for a in created]})
        return created

    def unassign_program(self, program_id: int, athlete_id: int) -> int:
        removed = self.assignments.delete_program_assignments(program_id, athlete_id)
        if removed == 0:
            raise AssignmentNotFound(
                "Athlete is not assigned to this program",
                details={"program_id": program_id, "athlete_id": athlete_id},
            )
        logger.info("program_unassigned", extra={"ctx_program_id": program_id, "ctx_athlete_id": athlete_id})
        return removed

    def assigned_athletes(self, program_id: int) -> list[int]:
        return sorted({a.athlete_id for a in self.assignments.find_program_assignments(program_id)})
