"""Database seeder for a demo coach calendar.

Creates a small workout library, one program shared by two athletes and a
direct assignment, so the calendar has both provenances to show.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta

from alembic import command
from alembic.config import Config
from sqlalchemy import select

from core.config import get_settings
from core.db import session_scope
from core.errors import DuplicateAssignment
from core.logging_config import setup_logging
from core.models import WorkoutType
from core.services.scheduling import SchedulingService
from core.stores.sql import SqlStore

logger = logging.getLogger(__name__)

DEMO_COACH_ID = 1
DEMO_ATHLETES = (101, 102)

WORKOUT_TYPES = [
    ("strength", "Strength"),
    ("metcon", "Metcon"),
    ("mobility", "Mobility"),
    ("endurance", "Endurance"),
]

LIBRARY = [
    ("Back Squat 5x5", "Back squat 5 sets of 5 at 75%", "strength", None),
    ("Fran", "21-15-9 thrusters and pull-ups", "metcon", "#ef4444"),
    ("Hip Opener Flow", "20 min mobility flow", "mobility", None),
    ("Zone 2 Row", "45 min easy row, conversational pace", "endurance", "#10b981"),
]


def run_migrations() -> None:
    cfg = Config("alembic.ini")
    command.upgrade(cfg, "head")


def seed_workout_types() -> dict[str, int]:
    with session_scope() as s:
        existing = {t.code: t.id for t in s.execute(select(WorkoutType)).scalars()}
        for code, name in WORKOUT_TYPES:
            if code not in existing:
                row = WorkoutType(code=code, name=name)
                s.add(row)
                s.flush()
                existing[code] = row.id
        return existing


def seed_calendar(service: SchedulingService, type_ids: dict[str, int], anchor: date) -> None:
    if service.catalog.list_library(DEMO_COACH_ID):
        logger.info("seed_skipped", extra={"ctx_reason": "library already present"})
        return

    workouts = [
        service.catalog.create_workout(DEMO_COACH_ID, description, name=name, color=color, type_id=type_ids.get(code))
        for name, description, code, color in LIBRARY
    ]

    week_start = service.calendar_range("week", anchor).start
    program = service.programs.create_program(
        DEMO_COACH_ID,
        "Four Week Base",
        week_start,
        week_start + timedelta(weeks=4, days=-1),
        status="published",
        description="Strength and conditioning base block",
    )
    for week in range(4):
        monday = week_start + timedelta(weeks=week)
        service.programs.add_program_workout(program.id, workouts[0].id, monday)
        service.programs.add_program_workout(program.id, workouts[1].id, monday + timedelta(days=2))
        service.programs.add_program_workout(program.id, workouts[2].id, monday + timedelta(days=4))
    service.programs.assign_program(program.id, DEMO_ATHLETES)

    try:
        service.create_direct_assignment(DEMO_ATHLETES[0], workouts[3].id, week_start + timedelta(days=5))
    except DuplicateAssignment:
        logger.info("seed_direct_exists")


def main() -> None:
    setup_logging(get_settings().log_level)
    run_migrations()
    type_ids = seed_workout_types()
    seed_calendar(SchedulingService(SqlStore()), type_ids, date.today())
    print("Seeding complete")


if __name__ == "__main__":
    main()
