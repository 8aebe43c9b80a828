"""SQLAlchemy-backed store adapter.

One ``SqlStore`` instance serves one caller at a time: outside
``transaction()`` every call runs in its own short-lived session, inside it
all calls share one session that commits or rolls back as a unit.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from typing import Iterable, Iterator, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker

from core import models
from core.db import get_session_factory
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
from core.errors import (
    AssignmentNotFound,
    ConstraintViolation,
    DuplicateAssignment,
    StoreUnavailable,
    WorkoutInUse,
    WorkoutNotFound,
)
from core.stores.base import SchedulingStore

logger = logging.getLogger(__name__)

DIRECT_UNIQUE = "uq_workout_assignment_athlete_workout_date"
PROGRAM_WORKOUT_UNIQUE = "uq_program_workout_program_workout_date"
PROGRAM_ASSIGNMENT_UNIQUE = "uq_program_assignment_window"


def is_unique_violation(exc: IntegrityError, constraint: str, table: str) -> bool:
    """Match a unique-constraint failure by name (Postgres) or by table (SQLite)."""
    message = str(exc.orig).lower()
    if constraint in message:
        return True
    return ("unique" in message or "duplicate" in message) and f"{table}." in message


@contextmanager
def translate_store_errors() -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        logger.error("store_constraint_violation", exc_info=exc, extra={"ctx_statement": exc.statement})
        raise ConstraintViolation(str(exc.orig), details={"statement": exc.statement}) from exc
    except (OperationalError, InterfaceError) as exc:
        logger.warning("store_unavailable: %s", exc.orig)
        raise StoreUnavailable("Store unavailable", details={"reason": str(exc.orig)}) from exc
    except PoolTimeoutError as exc:
        logger.warning("store_unavailable: %s", exc)
        raise StoreUnavailable("Store connection pool exhausted", details={"reason": str(exc)}) from exc
    except DBAPIError as exc:
        if exc.connection_invalidated:
            raise StoreUnavailable("Store connection lost", details={"reason": str(exc.orig)}) from exc
        logger.error("store_rejected_statement", exc_info=exc)
        raise ConstraintViolation(str(exc.orig), details={"statement": exc.statement}) from exc
    except SQLAlchemyError as exc:
        logger.error("store_error", exc_info=exc)
        raise ConstraintViolation(str(exc)) from exc


def _workout(row: models.Workout) -> WorkoutDefinition:
    return WorkoutDefinition(
        id=row.id,
        coach_id=row.coach_id,
        name=row.name,
        description=row.description,
        notes=row.notes or "",
        color=row.color,
        type_id=row.type_id,
        type_code=row.workout_type.code if row.workout_type is not None else None,
        created_at=row.created_at,
    )


def _direct(row: models.WorkoutAssignment) -> DirectAssignment:
    return DirectAssignment(id=row.id, athlete_id=row.athlete_id, workout_id=row.workout_id, workout_date=row.workout_date)


def _program(row: models.Program) -> Program:
    return Program(
        id=row.id,
        coach_id=row.coach_id,
        name=row.name,
        description=row.description,
        start_date=row.start_date,
        end_date=row.end_date,
        status=row.status,
    )


def _program_workout(row: models.ProgramWorkout) -> ProgramWorkout:
    return ProgramWorkout(id=row.id, program_id=row.program_id, workout_id=row.workout_id, workout_date=row.workout_date)


def _program_assignment(row: models.ProgramAssignment) -> ProgramAssignment:
    return ProgramAssignment(
        id=row.id,
        program_id=row.program_id,
        athlete_id=row.athlete_id,
        start_date=row.start_date,
        end_date=row.end_date,
        program_name=row.program.name if row.program is not None else None,
    )


def _activity(row: models.AthleteActivity) -> ActivityRecord:
    return ActivityRecord(
        athlete_id=row.athlete_id,
        workout_id=row.workout_id,
        scheduled_on=row.scheduled_on,
        is_completed=bool(row.is_completed),
        is_unscaled=bool(row.is_unscaled),
        notes=row.notes or "",
        completed_at=row.completed_at,
    )


class SqlStore(SchedulingStore):
    def __init__(self, session_factory: Optional[sessionmaker[Session]] = None) -> None:
        self._session_factory = session_factory or get_session_factory()
        self._active: Optional[Session] = None

    # -- session handling --

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._active is not None:
            yield
            return
        with translate_store_errors():
            session = self._session_factory()
            self._active = session
            try:
                yield
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                self._active = None
                session.close()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        if self._active is not None:
            with translate_store_errors():
                yield self._active
            return
        with translate_store_errors():
            session = self._session_factory()
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    # -- direct assignments --

    def find_direct_assignment(self, athlete_id: int, workout_id: int, workout_date: date) -> Optional[DirectAssignment]:
        with self._session() as s:
            row = s.execute(
                select(models.WorkoutAssignment).where(
                    models.WorkoutAssignment.athlete_id == athlete_id,
                    models.WorkoutAssignment.workout_id == workout_id,
                    models.WorkoutAssignment.workout_date == workout_date,
                )
            ).scalar_one_or_none()
            return _direct(row) if row else None

    def find_direct_assignments_in_range(self, athlete_id: int, date_range: DateRange) -> list[DirectAssignment]:
        with self._session() as s:
            rows = s.execute(
                select(models.WorkoutAssignment)
                .where(
                    models.WorkoutAssignment.athlete_id == athlete_id,
                    models.WorkoutAssignment.workout_date >= date_range.start,
                    models.WorkoutAssignment.workout_date <= date_range.end,
                )
                .order_by(models.WorkoutAssignment.workout_date, models.WorkoutAssignment.id)
            ).scalars().all()
            return [_direct(r) for r in rows]

    def insert_direct_assignment(self, athlete_id: int, workout_id: int, workout_date: date) -> DirectAssignment:
        with self._session() as s:
            row = models.WorkoutAssignment(athlete_id=athlete_id, workout_id=workout_id, workout_date=workout_date)
            s.add(row)
            self._flush_unique(s, DIRECT_UNIQUE, "workout_assignments", "Workout already assigned to this athlete on this date")
            return _direct(row)

    def update_direct_assignment_date(self, assignment_id: int, new_date: date) -> DirectAssignment:
        with self._session() as s:
            row = s.get(models.WorkoutAssignment, assignment_id)
            if row is None:
                raise AssignmentNotFound("Workout assignment not found", details={"assignment_id": assignment_id})
            row.workout_date = new_date
            self._flush_unique(s, DIRECT_UNIQUE, "workout_assignments", "Workout already assigned to this athlete on this date")
            return _direct(row)

    def delete_direct_assignment(self, assignment_id: int) -> None:
        with self._session() as s:
            result = s.execute(delete(models.WorkoutAssignment).where(models.WorkoutAssignment.id == assignment_id))
            if result.rowcount == 0:
                raise AssignmentNotFound("Workout assignment not found", details={"assignment_id": assignment_id})

    # -- programs --

    def find_program(self, program_id: int) -> Optional[Program]:
        with self._session() as s:
            row = s.get(models.Program, program_id)
            return _program(row) if row else None

    def insert_program(
        self,
        coach_id: int,
        name: str,
        start_date: date,
        end_date: date,
        status: str = "draft",
        description: Optional[str] = None,
    ) -> Program:
        with self._session() as s:
            row = models.Program(
                coach_id=coach_id,
                name=name,
                start_date=start_date,
                end_date=end_date,
                status=status,
                description=description,
            )
            s.add(row)
            s.flush()
            return _program(row)

    def find_program_workout(self, program_id: int, workout_id: int, workout_date: date) -> Optional[ProgramWorkout]:
        with self._session() as s:
            row = s.execute(
                select(models.ProgramWorkout).where(
                    models.ProgramWorkout.program_id == program_id,
                    models.ProgramWorkout.workout_id == workout_id,
                    models.ProgramWorkout.workout_date == workout_date,
                )
            ).scalar_one_or_none()
            return _program_workout(row) if row else None

    def find_program_workouts_in_range(self, program_id: int, date_range: DateRange) -> list[ProgramWorkout]:
        with self._session() as s:
            rows = s.execute(
                select(models.ProgramWorkout)
                .where(
                    models.ProgramWorkout.program_id == program_id,
                    models.ProgramWorkout.workout_date >= date_range.start,
                    models.ProgramWorkout.workout_date <= date_range.end,
                )
                .order_by(models.ProgramWorkout.workout_date, models.ProgramWorkout.id)
            ).scalars().all()
            return [_program_workout(r) for r in rows]

    def insert_program_workout(self, program_id: int, workout_id: int, workout_date: date) -> ProgramWorkout:
        with self._session() as s:
            row = models.ProgramWorkout(program_id=program_id, workout_id=workout_id, workout_date=workout_date)
            s.add(row)
            self._flush_unique(s, PROGRAM_WORKOUT_UNIQUE, "program_workouts", "Workout already placed on this program date")
            return _program_workout(row)

    def update_program_workout_date(self, program_workout_id: int, new_date: date) -> ProgramWorkout:
        with self._session() as s:
            row = s.get(models.ProgramWorkout, program_workout_id)
            if row is None:
                raise AssignmentNotFound("Program workout not found", details={"program_workout_id": program_workout_id})
            row.workout_date = new_date
            self._flush_unique(s, PROGRAM_WORKOUT_UNIQUE, "program_workouts", "Workout already placed on this program date")
            return _program_workout(row)

    def delete_program_workout(self, program_workout_id: int) -> None:
        with self._session() as s:
            s.execute(delete(models.ProgramWorkout).where(models.ProgramWorkout.id == program_workout_id))

    # -- program assignments --

    def find_active_program_assignments(self, athlete_id: int, date_range: DateRange) -> list[ProgramAssignment]:
        with self._session() as s:
            rows = s.execute(
                select(models.ProgramAssignment)
                .where(
                    models.ProgramAssignment.athlete_id == athlete_id,
                    models.ProgramAssignment.start_date <= date_range.end,
                    models.ProgramAssignment.end_date >= date_range.start,
                )
                .order_by(models.ProgramAssignment.id)
            ).scalars().all()
            return [_program_assignment(r) for r in rows]

    def find_program_assignments(self, program_id: int) -> list[ProgramAssignment]:
        with self._session() as s:
            rows = s.execute(
                select(models.ProgramAssignment)
                .where(models.ProgramAssignment.program_id == program_id)
                .order_by(models.ProgramAssignment.athlete_id, models.ProgramAssignment.start_date)
            ).scalars().all()
            return [_program_assignment(r) for r in rows]

    def insert_program_assignment(self, program_id: int, athlete_id: int, start_date: date, end_date: date) -> ProgramAssignment:
        with self._session() as s:
            row = models.ProgramAssignment(program_id=program_id, athlete_id=athlete_id, start_date=start_date, end_date=end_date)
            s.add(row)
            self._flush_unique(s, PROGRAM_ASSIGNMENT_UNIQUE, "program_assignments", "Athlete already assigned to this program window")
            s.refresh(row)
            return _program_assignment(row)

    def delete_program_assignments(self, program_id: int, athlete_id: int) -> int:
        with self._session() as s:
            result = s.execute(
                delete(models.ProgramAssignment).where(
                    models.ProgramAssignment.program_id == program_id,
                    models.ProgramAssignment.athlete_id == athlete_id,
                )
            )
            return int(result.rowcount or 0)

    # -- activity --

    def find_activity_record(self, athlete_id: int, workout_id: int, scheduled_on: date) -> Optional[ActivityRecord]:
        with self._session() as s:
            row = self._activity_row(s, athlete_id, workout_id, scheduled_on)
            return _activity(row) if row else None

    def find_activity_records(
        self, athlete_id: int, keys: Iterable[tuple[int, date]]
    ) -> dict[tuple[int, date], ActivityRecord]:
        wanted = set(keys)
        if not wanted:
            return {}
        with self._session() as s:
            rows = s.execute(
                select(models.AthleteActivity).where(
                    models.AthleteActivity.athlete_id == athlete_id,
                    models.AthleteActivity.workout_id.in_({k[0] for k in wanted}),
                    models.AthleteActivity.scheduled_on.in_({k[1] for k in wanted}),
                )
            ).scalars().all()
            found = {(r.workout_id, r.scheduled_on): _activity(r) for r in rows}
            return {k: v for k, v in found.items() if k in wanted}

    def upsert_activity_record(self, record: ActivityRecord) -> ActivityRecord:
        with self._session() as s:
            row = self._activity_row(s, record.athlete_id, record.workout_id, record.scheduled_on)
            if row is None:
                row = models.AthleteActivity(
                    athlete_id=record.athlete_id,
                    workout_id=record.workout_id,
                    scheduled_on=record.scheduled_on,
                )
                s.add(row)
            row.is_completed = record.is_completed
            row.is_unscaled = record.is_unscaled
            row.notes = record.notes
            row.completed_at = record.completed_at
            s.flush()
            return _activity(row)

    # -- catalog --

    def get_workouts(self, workout_ids: Iterable[int]) -> dict[int, WorkoutDefinition]:
        ids = set(workout_ids)
        if not ids:
            return {}
        with self._session() as s:
            rows = s.execute(select(models.Workout).where(models.Workout.id.in_(ids))).scalars().all()
            return {r.id: _workout(r) for r in rows}

    def list_workouts(self, coach_id: int) -> list[WorkoutDefinition]:
        with self._session() as s:
            rows = s.execute(
                select(models.Workout)
                .where(models.Workout.coach_id == coach_id)
                .order_by(models.Workout.created_at.desc(), models.Workout.id.desc())
            ).scalars().all()
            return [_workout(r) for r in rows]

    def insert_workout(
        self,
        coach_id: int,
        description: str,
        name: Optional[str] = None,
        notes: str = "",
        color: Optional[str] = None,
        type_id: Optional[int] = None,
    ) -> WorkoutDefinition:
        with self._session() as s:
            row = models.Workout(coach_id=coach_id, description=description, name=name, notes=notes, color=color, type_id=type_id)
            s.add(row)
            s.flush()
            s.refresh(row)
            return _workout(row)

    def update_workout(
        self,
        workout_id: int,
        description: str,
        name: Optional[str] = None,
        notes: str = "",
        color: Optional[str] = None,
        type_id: Optional[int] = None,
    ) -> WorkoutDefinition:
        with self._session() as s:
            row = s.get(models.Workout, workout_id)
            if row is None:
                raise WorkoutNotFound("Workout not found", details={"workout_id": workout_id})
            row.description = description
            row.name = name
            row.notes = notes
            row.color = color
            row.type_id = type_id
            s.flush()
            s.refresh(row)
            return _workout(row)

    def delete_workout(self, workout_id: int) -> None:
        with self._session() as s:
            row = s.get(models.Workout, workout_id)
            if row is None:
                raise WorkoutNotFound("Workout not found", details={"workout_id": workout_id})
            s.delete(row)
            try:
                s.flush()
            except IntegrityError as exc:
                raise WorkoutInUse(
                    "Workout is still scheduled; remove its assignments and program placements first",
                    details={"workout_id": workout_id},
                ) from exc

    def list_workout_types(self) -> list[WorkoutType]:
        with self._session() as s:
            rows = s.execute(select(models.WorkoutType).order_by(models.WorkoutType.code)).scalars().all()
            return [WorkoutType(id=r.id, code=r.code, name=r.name) for r in rows]

    # -- helpers --

    @staticmethod
    def _activity_row(s: Session, athlete_id: int, workout_id: int, scheduled_on: date) -> Optional[models.AthleteActivity]:
        return s.execute(
            select(models.AthleteActivity).where(
                models.AthleteActivity.athlete_id == athlete_id,
                models.AthleteActivity.workout_id == workout_id,
                models.AthleteActivity.scheduled_on == scheduled_on,
            )
        ).scalar_one_or_none()

    @staticmethod
    def _flush_unique(s: Session, constraint: str, table: str, message: str) -> None:
        try:
            s.flush()
        except IntegrityError as exc:
            if is_unique_violation(exc, constraint, table):
                raise DuplicateAssignment(message, details={"constraint": constraint}) from exc
            raise
