"""Merge direct assignments and windowed program placements into one calendar.

For an athlete and a date range the resolver returns one entry per binding:
- each direct assignment dated inside the range (provenance ``direct``)
- each placement of every program the athlete is assigned to, restricted to
  the intersection of the assignment window and the range (provenance
  ``program``)

The same workout on the same date may appear once per source; the two
bindings are independent and both are shown.
"""

from __future__ import annotations

import logging
from datetime import date

from core.domain import DateRange, DirectSource, ProgramSource, ResolvedScheduleEntry
from core.stores.base import AssignmentStore, WorkoutCatalog

logger = logging.getLogger(__name__)


class Resolver:
    def __init__(self, assignments: AssignmentStore, catalog: WorkoutCatalog) -> None:
        self.assignments = assignments
        self.catalog = catalog

    def resolve(self, athlete_id: int, date_range: DateRange) -> list[ResolvedScheduleEntry]:
        pending: list[tuple[int, date, DirectSource | ProgramSource]] = []

        for row in self.assignments.find_direct_assignments_in_range(athlete_id, date_range):
            pending.append((row.workout_id, row.workout_date, DirectSource(assignment_id=row.id)))

        # One athlete can hold several windows on the same program; a placement
        # inside more than one of them is still a single binding.
        seen_placements: set[int] = set()
        for assignment in self.assignments.find_active_program_assignments(athlete_id, date_range):
            window = assignment.window.intersect(date_range)
            if window is None:
                continue
            for pw in self.assignments.find_program_workouts_in_range(assignment.program_id, window):
                if pw.id in seen_placements:
                    continue
                seen_placements.add(pw.id)
                source = ProgramSource(
                    program_workout_id=pw.id,
                    program_id=pw.program_id,
                    program_name=assignment.program_name,
                )
                pending.append((pw.workout_id, pw.workout_date, source))

        workouts = self.catalog.get_workouts({workout_id for workout_id, _, _ in pending})

        entries: list[ResolvedScheduleEntry] = []
        for workout_id, day, source in pending:
            workout = workouts.get(workout_id)
            if workout is None:
                logger.warning(
                    "resolver_missing_workout",
                    extra={
                        "ctx_athlete_id": athlete_id,
                        "ctx_workout_id": workout_id,
                        "ctx_date": day.isoformat(),
                        "ctx_provenance": source.kind,
                    },
                )
                continue
            entries.append(
                ResolvedScheduleEntry(
                    athlete_id=athlete_id,
                    workout_id=workout_id,
                    date=day,
                    provenance=source,
                    workout=workout,
                )
            )

        entries.sort(key=ResolvedScheduleEntry.sort_key)
        logger.debug(
            "schedule_resolved",
            extra={
                "ctx_athlete_id": athlete_id,
                "ctx_start": date_range.start.isoformat(),
                "ctx_end": date_range.end.isoformat(),
                "ctx_entries": len(entries),
            },
        )
        return entries
