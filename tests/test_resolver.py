from __future__ import annotations

import logging
from datetime import date

import pytest

from core.domain import ActivityRecord, DateRange, DirectSource, ProgramSource
from core.services.activity_overlay import ActivityOverlay
from core.services.programs import ProgramService
from core.services.resolver import Resolver
from core.stores.memory import MemoryStore

MARCH = DateRange(date(2026, 3, 1), date(2026, 3, 31))


@pytest.fixture
def store():
    return MemoryStore()


def _program(store, start=date(2026, 3, 1), end=date(2026, 3, 31), name="Base"):
    return ProgramService(store, store).create_program(9, name, start, end)


def test_empty_calendar_resolves_to_empty_list(store):
    assert Resolver(store, store).resolve(1, MARCH) == []


def test_direct_rows_outside_range_are_excluded(store):
    w = store.insert_workout(coach_id=9, description="Fran")
    store.insert_direct_assignment(1, w.id, date(2026, 2, 28))
    store.insert_direct_assignment(1, w.id, date(2026, 3, 1))
    store.insert_direct_assignment(1, w.id, date(2026, 3, 31))
    store.insert_direct_assignment(1, w.id, date(2026, 4, 1))

    entries = Resolver(store, store).resolve(1, MARCH)

    assert [e.date for e in entries] == [date(2026, 3, 1), date(2026, 3, 31)]
    assert all(isinstance(e.provenance, DirectSource) for e in entries)


def test_other_athletes_direct_rows_are_ignored(store):
    w = store.insert_workout(coach_id=9, description="Fran")
    store.insert_direct_assignment(2, w.id, date(2026, 3, 5))

    assert Resolver(store, store).resolve(1, MARCH) == []


def test_program_placements_clipped_to_assignment_window(store):
    w = store.insert_workout(coach_id=9, description="Squat")
    program = _program(store)
    for day in (2, 10, 20):
        store.insert_program_workout(program.id, w.id, date(2026, 3, day))
    store.insert_program_assignment(program.id, 1, date(2026, 3, 5), date(2026, 3, 15))

    entries = Resolver(store, store).resolve(1, MARCH)

    assert [e.date for e in entries] == [date(2026, 3, 10)]
    source = entries[0].provenance
    assert isinstance(source, ProgramSource)
    assert source.program_id == program.id
    assert source.program_name == "Base"
    assert entries[0].program_name == "Base"


def test_program_placements_clipped_to_requested_range(store):
    w = store.insert_workout(coach_id=9, description="Squat")
    program = _program(store)
    store.insert_program_workout(program.id, w.id, date(2026, 3, 2))
    store.insert_program_workout(program.id, w.id, date(2026, 3, 12))
    store.insert_program_assignment(program.id, 1, date(2026, 3, 1), date(2026, 3, 31))

    entries = Resolver(store, store).resolve(1, DateRange(date(2026, 3, 9), date(2026, 3, 15)))

    assert [e.date for e in entries] == [date(2026, 3, 12)]


def test_overlapping_windows_on_one_program_yield_one_entry(store):
    w = store.insert_workout(coach_id=9, description="Squat")
    program = _program(store)
    store.insert_program_workout(program.id, w.id, date(2026, 3, 10))
    store.insert_program_assignment(program.id, 1, date(2026, 3, 1), date(2026, 3, 20))
    store.insert_program_assignment(program.id, 1, date(2026, 3, 5), date(2026, 3, 31))

    entries = Resolver(store, store).resolve(1, MARCH)

    assert len(entries) == 1


def test_entries_sorted_by_date_then_direct_before_program(store):
    w1 = store.insert_workout(coach_id=9, description="Squat")
    w2 = store.insert_workout(coach_id=9, description="Row")
    program = _program(store)
    store.insert_program_workout(program.id, w1.id, date(2026, 3, 4))
    store.insert_program_workout(program.id, w2.id, date(2026, 3, 2))
    store.insert_program_assignment(program.id, 1, date(2026, 3, 1), date(2026, 3, 31))
    store.insert_direct_assignment(1, w1.id, date(2026, 3, 4))
    store.insert_direct_assignment(1, w2.id, date(2026, 3, 8))

    entries = Resolver(store, store).resolve(1, MARCH)

    assert [(e.date, e.provenance_kind) for e in entries] == [
        (date(2026, 3, 2), "program"),
        (date(2026, 3, 4), "direct"),
        (date(2026, 3, 4), "program"),
        (date(2026, 3, 8), "direct"),
    ]


def test_missing_workout_is_omitted_and_logged(store, caplog):
    w = store.insert_workout(coach_id=9, description="Gone")
    keep = store.insert_workout(coach_id=9, description="Kept")
    store.insert_direct_assignment(1, w.id, date(2026, 3, 3))
    store.insert_direct_assignment(1, keep.id, date(2026, 3, 4))
    store.remove_workout(w.id)

    with caplog.at_level(logging.WARNING, logger="core.services.resolver"):
        entries = Resolver(store, store).resolve(1, MARCH)

    assert [e.workout_id for e in entries] == [keep.id]
    record = next(r for r in caplog.records if r.getMessage() == "resolver_missing_workout")
    assert record.ctx_workout_id == w.id


def test_resolve_is_repeatable(store):
    w = store.insert_workout(coach_id=9, description="Squat")
    store.insert_direct_assignment(1, w.id, date(2026, 3, 3))
    resolver = Resolver(store, store)

    assert resolver.resolve(1, MARCH) == resolver.resolve(1, MARCH)


def test_overlay_attaches_activity_by_key(store):
    w = store.insert_workout(coach_id=9, description="Squat")
    store.insert_direct_assignment(1, w.id, date(2026, 3, 3))
    store.insert_direct_assignment(1, w.id, date(2026, 3, 4))
    store.upsert_activity_record(ActivityRecord(athlete_id=1, workout_id=w.id, scheduled_on=date(2026, 3, 4), is_completed=True))
    store.upsert_activity_record(ActivityRecord(athlete_id=2, workout_id=w.id, scheduled_on=date(2026, 3, 3), is_completed=True))

    entries = ActivityOverlay(store).overlay(Resolver(store, store).resolve(1, MARCH), 1)

    assert entries[0].activity is None
    assert entries[1].activity is not None and entries[1].activity.is_completed


def test_overlay_empty_input_skips_lookup():
    class ExplodingStore:
        def find_activity_records(self, athlete_id, keys):
            raise AssertionError("should not be called")

    assert ActivityOverlay(ExplodingStore()).overlay([], 1) == []
