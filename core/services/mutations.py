"""Route calendar edits to the store row that produced the entry.

Provenance dispatch here is the single place that decides whether an edit
touches one athlete (direct assignment) or every athlete on a program
(program workout). A program placement is never special-cased for one
athlete.

Activity records are keyed by date and are not migrated when an entry
moves or disappears; the record left behind is reported on the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional

from core.domain import (
    ActivityRecord,
    DirectAssignment,
    DirectSource,
    ProgramSource,
    ResolvedScheduleEntry,
)
from core.errors import AssignmentNotFound, DuplicateAssignment, InvalidTargetDate, WorkoutNotFound
from core.stores.base import ActivityStore, AssignmentStore, WorkoutCatalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoveResult:
    entry: ResolvedScheduleEntry
    from_date: date
    to_date: date
    program_wide: bool = False
    affected_athletes: tuple[int, ...] = ()
    orphaned_activity: Optional[ActivityRecord] = None


@dataclass(frozen=True)
class DeleteResult:
    entry: ResolvedScheduleEntry
    program_wide: bool = False
    affected_athletes: tuple[int, ...] = ()
    orphaned_activity: Optional[ActivityRecord] = None


class MutationEngine:
    def __init__(self, assignments: AssignmentStore, catalog: WorkoutCatalog, activity: ActivityStore) -> None:
        self.assignments = assignments
        self.catalog = catalog
        self.activity = activity

    # -- create --

    def create(self, athlete_id: int, workout_id: int, workout_date: date) -> DirectAssignment:
        """Bind a library workout to one athlete on one date.

        Always produces a direct assignment. The uniqueness constraint on
        (athlete, workout, date) backs the pre-check, so a concurrent insert
        surfaces as DuplicateAssignment instead of a second row.
        """
        with self.assignments.transaction():
            if self.catalog.get_workout(workout_id) is None:
                raise WorkoutNotFound("Workout not found", details={"workout_id": workout_id})
            if self.assignments.find_direct_assignment(athlete_id, workout_id, workout_date) is not None:
                raise DuplicateAssignment(
                    "This workout is already assigned to this athlete on the selected date",
                    details={"athlete_id": athlete_id, "workout_id": workout_id, "date": workout_date.isoformat()},
                )
            row = self.assignments.insert_direct_assignment(athlete_id, workout_id, workout_date)
        logger.info(
            "direct_assignment_created",
            extra={"ctx_assignment_id": row.id, "ctx_athlete_id": athlete_id, "ctx_workout_id": workout_id, "ctx_date": workout_date.isoformat()},
        )
        return row

    # -- move --

    def move(self, entry: ResolvedScheduleEntry, from_date: date, to_date: date) -> MoveResult:
        if from_date == to_date:
            self._require_row(entry, from_date)
            return MoveResult(entry=entry, from_date=from_date, to_date=to_date)

        with self.assignments.transaction():
            match entry.provenance:
                case DirectSource():
                    moved = self._move_direct(entry, from_date, to_date)
                    result = MoveResult(
                        entry=moved,
                        from_date=from_date,
                        to_date=to_date,
                        affected_athletes=(entry.athlete_id,),
                    )
                case ProgramSource() as source:
                    moved, affected = self._move_program(entry, source, from_date, to_date)
                    result = MoveResult(
                        entry=moved,
                        from_date=from_date,
                        to_date=to_date,
                        program_wide=True,
                        affected_athletes=affected,
                    )
                case _:
                    raise TypeError(f"unknown provenance {entry.provenance!r}")

        orphan = self.activity.find_activity_record(entry.athlete_id, entry.workout_id, from_date)
        if orphan is not None:
            logger.info(
                "activity_left_on_previous_date",
                extra={"ctx_athlete_id": entry.athlete_id, "ctx_workout_id": entry.workout_id, "ctx_date": from_date.isoformat()},
            )
        return replace(result, orphaned_activity=orphan)

    def _move_direct(self, entry: ResolvedScheduleEntry, from_date: date, to_date: date) -> ResolvedScheduleEntry:
        row = self.assignments.find_direct_assignment(entry.athlete_id, entry.workout_id, from_date)
        if row is None:
            raise AssignmentNotFound(
                "Workout assignment not found; refresh the calendar and retry",
                details={"athlete_id": entry.athlete_id, "workout_id": entry.workout_id, "date": from_date.isoformat()},
            )
        if self.assignments.find_direct_assignment(entry.athlete_id, entry.workout_id, to_date) is not None:
            raise DuplicateAssignment(
                "This workout is already assigned to this athlete on the target date",
                details={"athlete_id": entry.athlete_id, "workout_id": entry.workout_id, "date": to_date.isoformat()},
            )
        updated = self.assignments.update_direct_assignment_date(row.id, to_date)
        logger.info(
            "direct_assignment_moved",
            extra={"ctx_assignment_id": row.id, "ctx_from": from_date.isoformat(), "ctx_to": to_date.isoformat()},
        )
        return replace(entry, date=updated.workout_date, provenance=DirectSource(assignment_id=updated.id), activity=None)

    def _move_program(
        self, entry: ResolvedScheduleEntry, source: ProgramSource, from_date: date, to_date: date
    ) -> tuple[ResolvedScheduleEntry, tuple[int, ...]]:
        program = self.assignments.find_program(source.program_id)
        if program is None:
            raise AssignmentNotFound("Program not found", details={"program_id": source.program_id})
        if not program.window.contains(to_date):
            raise InvalidTargetDate(
                f"Target date must fall within the program ({program.start_date} to {program.end_date})",
                details={"program_id": program.id, "date": to_date.isoformat()},
            )
        row = self.assignments.find_program_workout(program.id, entry.workout_id, from_date)
        if row is None:
            raise AssignmentNotFound(
                "Program workout not found; refresh the calendar and retry",
                details={"program_id": program.id, "workout_id": entry.workout_id, "date": from_date.isoformat()},
            )
        updated = self.assignments.update_program_workout_date(row.id, to_date)
        affected = self._athletes_on(program.id, (from_date, to_date))
        logger.info(
            "program_workout_moved",
            extra={
                "ctx_program_id": program.id,
                "ctx_program_workout_id": row.id,
                "ctx_from": from_date.isoformat(),
                "ctx_to": to_date.isoformat(),
                "ctx_affected_athletes": len(affected),
            },
        )
        moved = replace(
            entry,
            date=updated.workout_date,
            provenance=replace(source, program_workout_id=updated.id),
            activity=None,
        )
        return moved, affected

    # -- delete --

    def delete(self, entry: ResolvedScheduleEntry) -> DeleteResult:
        with self.assignments.transaction():
            match entry.provenance:
                case DirectSource():
                    row = self.assignments.find_direct_assignment(entry.athlete_id, entry.workout_id, entry.date)
                    if row is None:
                        raise AssignmentNotFound(
                            "Workout assignment not found; refresh the calendar and retry",
                            details={"athlete_id": entry.athlete_id, "workout_id": entry.workout_id, "date": entry.date.isoformat()},
                        )
                    self.assignments.delete_direct_assignment(row.id)
                    result = DeleteResult(entry=entry, affected_athletes=(entry.athlete_id,))
                    logger.info("direct_assignment_deleted", extra={"ctx_assignment_id": row.id})
                case ProgramSource() as source:
                    # A placement that is already gone is not an error.
                    row = self.assignments.find_program_workout(source.program_id, entry.workout_id, entry.date)
                    affected = self._athletes_on(source.program_id, (entry.date,))
                    result = DeleteResult(entry=entry, program_wide=True, affected_athletes=affected)
                    if row is None:
                        logger.info(
                            "program_workout_already_deleted",
                            extra={"ctx_program_id": source.program_id, "ctx_workout_id": entry.workout_id, "ctx_date": entry.date.isoformat()},
                        )
                    else:
                        self.assignments.delete_program_workout(row.id)
                        logger.info(
                            "program_workout_deleted",
                            extra={"ctx_program_workout_id": row.id, "ctx_affected_athletes": len(affected)},
                        )
                case _:
                    raise TypeError(f"unknown provenance {entry.provenance!r}")

        orphan = self.activity.find_activity_record(entry.athlete_id, entry.workout_id, entry.date)
        return replace(result, orphaned_activity=orphan)

    def _require_row(self, entry: ResolvedScheduleEntry, day: date) -> None:
        match entry.provenance:
            case DirectSource():
                if self.assignments.find_direct_assignment(entry.athlete_id, entry.workout_id, day) is None:
                    raise AssignmentNotFound(
                        "Workout assignment not found; refresh the calendar and retry",
                        details={"athlete_id": entry.athlete_id, "workout_id": entry.workout_id, "date": day.isoformat()},
                    )
            case ProgramSource() as source:
                if self.assignments.find_program_workout(source.program_id, entry.workout_id, day) is None:
                    raise AssignmentNotFound(
                        "Program workout not found; refresh the calendar and retry",
                        details={"program_id": source.program_id, "workout_id": entry.workout_id, "date": day.isoformat()},
                    )
            case _:
                raise TypeError(f"unknown provenance {entry.provenance!r}")

    def _athletes_on(self, program_id: int, days: tuple[date, ...]) -> tuple[int, ...]:
        """Athletes whose assignment window covers any of ``days``."""
        athletes = {
            a.athlete_id
            for a in self.assignments.find_program_assignments(program_id)
            if any(a.window.contains(d) for d in days)
        }
        return tuple(sorted(athletes))
