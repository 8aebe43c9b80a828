"""Calendar-facing entry points over the resolver, overlay and mutation engine.

``SchedulingService`` is built around one explicitly constructed store
adapter; nothing here reaches for process-wide state.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from core.config import Settings, get_settings
from core.domain import (
    ActivityRecord,
    DateRange,
    DirectAssignment,
    DirectSource,
    ProgramSource,
    ResolvedScheduleEntry,
    WorkoutDefinition,
)
from core.services.activity_overlay import ActivityOverlay
from core.services.calendar_view import month_grid_range, week_range
from core.services.catalog import CatalogService
from core.services.mutations import DeleteResult, MoveResult, MutationEngine
from core.services.programs import ProgramService
from core.services.resolver import Resolver
from core.stores.base import SchedulingStore

logger = logging.getLogger(__name__)


class SchedulingService:
    def __init__(self, store: SchedulingStore, settings: Optional[Settings] = None) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.resolver = Resolver(store, store)
        self.overlay = ActivityOverlay(store)
        self.mutations = MutationEngine(store, store, store)
        self.catalog = CatalogService(store)
        self.programs = ProgramService(store, store)

    # -- reads --

    def resolve_schedule(self, athlete_id: int, start_date: date, end_date: date) -> list[ResolvedScheduleEntry]:
        date_range = DateRange(start_date, end_date)
        if len(date_range) > self.settings.max_range_days:
            raise ValueError(f"date range exceeds {self.settings.max_range_days} days")
        entries = self.resolver.resolve(athlete_id, date_range)
        return self.overlay.overlay(entries, athlete_id)

    def calendar_range(self, view: str, anchor: date) -> DateRange:
        if view == "week":
            return week_range(anchor, self.settings.week_starts_on)
        if view == "month":
            return month_grid_range(anchor, self.settings.week_starts_on, self.settings.month_grid_days)
        raise ValueError(f"unknown calendar view {view!r}")

    def get_activity(self, athlete_id: int, workout_id: int, scheduled_on: date) -> Optional[ActivityRecord]:
        return self.store.find_activity_record(athlete_id, workout_id, scheduled_on)

    # -- direct assignments --

    def create_direct_assignment(self, athlete_id: int, workout_id: int, workout_date: date) -> int:
        return self.mutations.create(athlete_id, workout_id, workout_date).id

    def move_direct_assignment(self, athlete_id: int, workout_id: int, from_date: date, to_date: date) -> MoveResult:
        entry = self._direct_entry(athlete_id, workout_id, from_date)
        return self.mutations.move(entry, from_date, to_date)

    def delete_direct_assignment(self, athlete_id: int, workout_id: int, workout_date: date) -> DeleteResult:
        return self.mutations.delete(self._direct_entry(athlete_id, workout_id, workout_date))

    # -- program workouts --

    def move_program_workout(
        self, program_id: int, workout_id: int, from_date: date, to_date: date, athlete_id: int = 0
    ) -> MoveResult:
        entry = self._program_entry(program_id, workout_id, from_date, athlete_id)
        return self.mutations.move(entry, from_date, to_date)

    def delete_program_workout(self, program_id: int, workout_id: int, workout_date: date, athlete_id: int = 0) -> DeleteResult:
        return self.mutations.delete(self._program_entry(program_id, workout_id, workout_date, athlete_id))

    # -- resolved entries --

    def move_entry(self, entry: ResolvedScheduleEntry, to_date: date) -> MoveResult:
        return self.mutations.move(entry, entry.date, to_date)

    def delete_entry(self, entry: ResolvedScheduleEntry) -> DeleteResult:
        return self.mutations.delete(entry)

    def create_and_assign(
        self,
        athlete_id: int,
        coach_id: int,
        workout_date: date,
        description: str,
        name: Optional[str] = None,
        notes: str = "",
        color: Optional[str] = None,
        type_id: Optional[int] = None,
    ) -> tuple[WorkoutDefinition, DirectAssignment]:
        with self.store.transaction():
            workout = self.catalog.create_workout(coach_id, description, name=name, notes=notes, color=color, type_id=type_id)
            assignment = self.mutations.create(athlete_id, workout.id, workout_date)
        return workout, assignment

    # -- activity --

    def record_activity(
        self,
        athlete_id: int,
        workout_id: int,
        scheduled_on: date,
        is_completed: Optional[bool] = None,
        is_unscaled: Optional[bool] = None,
        notes: Optional[str] = None,
    ) -> ActivityRecord:
        """Upsert the athlete's record for one scheduled occurrence.

        ``completed_at`` is stamped when the record becomes completed and
        cleared when it is un-completed; unspecified fields keep their value.
        """
        with self.store.transaction():
            current = self.store.find_activity_record(athlete_id, workout_id, scheduled_on) or ActivityRecord(
                athlete_id=athlete_id, workout_id=workout_id, scheduled_on=scheduled_on
            )
            updated = current
            if is_completed is not None and is_completed != current.is_completed:
                updated = replace(
                    updated,
                    is_completed=is_completed,
                    completed_at=datetime.utcnow() if is_completed else None,
                )
            if is_unscaled is not None:
                updated = replace(updated, is_unscaled=is_unscaled)
            if notes is not None:
                updated = replace(updated, notes=notes)
            saved = self.store.upsert_activity_record(updated)
        logger.info(
            "activity_recorded",
            extra={"ctx_athlete_id": athlete_id, "ctx_workout_id": workout_id, "ctx_date": scheduled_on.isoformat()},
        )
        return saved

    # -- helpers --

    def _workout(self, workout_id: int) -> WorkoutDefinition:
        # Rows whose template left the catalog can still be moved or removed.
        workout = self.store.get_workout(workout_id)
        if workout is None:
            return WorkoutDefinition(id=workout_id, coach_id=0, description="")
        return workout

    def _direct_entry(self, athlete_id: int, workout_id: int, day: date) -> ResolvedScheduleEntry:
        row = self.store.find_direct_assignment(athlete_id, workout_id, day)
        return ResolvedScheduleEntry(
            athlete_id=athlete_id,
            workout_id=workout_id,
            date=day,
            provenance=DirectSource(assignment_id=row.id if row else 0),
            workout=self._workout(workout_id),
        )

    def _program_entry(self, program_id: int, workout_id: int, day: date, athlete_id: int) -> ResolvedScheduleEntry:
        row = self.store.find_program_workout(program_id, workout_id, day)
        program = self.store.find_program(program_id)
        return ResolvedScheduleEntry(
            athlete_id=athlete_id,
            workout_id=workout_id,
            date=day,
            provenance=ProgramSource(
                program_workout_id=row.id if row else 0,
                program_id=program_id,
                program_name=program.name if program else None,
            ),
            workout=self._workout(workout_id),
        )
