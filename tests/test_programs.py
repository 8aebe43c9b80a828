from __future__ import annotations

from datetime import date

import pytest

from core.domain import DateRange
from core.errors import AssignmentNotFound, DuplicateAssignment, InvalidTargetDate, WorkoutInUse, WorkoutNotFound
from core.services.catalog import CatalogService, filter_library
from core.services.programs import ProgramService
from core.services.resolver import Resolver
from core.stores.memory import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def programs(store):
    return ProgramService(store, store)


def test_create_program_rejects_inverted_window(programs):
    with pytest.raises(InvalidTargetDate):
        programs.create_program(9, "Bad", date(2026, 3, 10), date(2026, 3, 1))


def test_create_program_rejects_unknown_status(programs):
    with pytest.raises(ValueError):
        programs.create_program(9, "Bad", date(2026, 3, 1), date(2026, 3, 10), status="live")


def test_duration_weeks_rounds_up(programs):
    p = programs.create_program(9, "Block", date(2026, 3, 1), date(2026, 3, 15))
    assert p.duration_weeks == 3


def test_add_program_workout_validates(store, programs):
    w = store.insert_workout(coach_id=9, description="Squat")
    p = programs.create_program(9, "Block", date(2026, 3, 1), date(2026, 3, 31))

    with pytest.raises(InvalidTargetDate):
        programs.add_program_workout(p.id, w.id, date(2026, 4, 1))
    with pytest.raises(WorkoutNotFound):
        programs.add_program_workout(p.id, 999, date(2026, 3, 2))
    with pytest.raises(AssignmentNotFound):
        programs.add_program_workout(999, w.id, date(2026, 3, 2))

    programs.add_program_workout(p.id, w.id, date(2026, 3, 2))
    with pytest.raises(DuplicateAssignment):
        programs.add_program_workout(p.id, w.id, date(2026, 3, 2))
    assert len(programs.program_workouts(p.id)) == 1


def test_assign_program_defaults_window_and_skips_existing(programs):
    p = programs.create_program(9, "Block", date(2026, 3, 1), date(2026, 3, 31))

    first = programs.assign_program(p.id, [1, 2, 2])
    second = programs.assign_program(p.id, [2, 3])

    assert [(a.athlete_id, a.start_date, a.end_date) for a in first] == [
        (1, date(2026, 3, 1), date(2026, 3, 31)),
        (2, date(2026, 3, 1), date(2026, 3, 31)),
    ]
    assert [a.athlete_id for a in second] == [3]
    assert programs.assigned_athletes(p.id) == [1, 2, 3]


def test_assign_program_with_same_start_different_end_is_rejected(store, programs):
    p = programs.create_program(9, "Block", date(2026, 3, 1), date(2026, 3, 31))
    programs.assign_program(p.id, [1], date(2026, 3, 1), date(2026, 3, 15))

    with pytest.raises(DuplicateAssignment):
        programs.assign_program(p.id, [2, 1], date(2026, 3, 1), date(2026, 3, 31))

    windows = [(a.athlete_id, a.start_date, a.end_date) for a in store.find_program_assignments(p.id)]
    assert windows == [(1, date(2026, 3, 1), date(2026, 3, 15))]


def test_assign_program_window_must_fit_program(programs):
    p = programs.create_program(9, "Block", date(2026, 3, 1), date(2026, 3, 31))
    with pytest.raises(InvalidTargetDate):
        programs.assign_program(p.id, [1], date(2026, 2, 20), date(2026, 3, 10))


def test_unassign_program(programs):
    p = programs.create_program(9, "Block", date(2026, 3, 1), date(2026, 3, 31))
    programs.assign_program(p.id, [1])

    assert programs.unassign_program(p.id, 1) == 1
    assert programs.assigned_athletes(p.id) == []
    with pytest.raises(AssignmentNotFound):
        programs.unassign_program(p.id, 1)


def test_library_lists_newest_first_and_filters(store):
    catalog = CatalogService(store)
    strength = store.add_workout_type("strength", "Strength")
    catalog.create_workout(9, "Back squat 5x5", name="Squat", type_id=strength.id)
    catalog.create_workout(9, "21-15-9 thrusters and pull-ups", name="Fran")
    catalog.create_workout(8, "Other coach")

    library = catalog.list_library(9)
    assert [w.name for w in library] == ["Fran", "Squat"]
    assert [w.name for w in catalog.list_library(9, "THRUST")] == ["Fran"]
    assert [w.name for w in catalog.list_library(9, "strength")] == ["Squat"]
    assert catalog.list_library(9, "   ") == library


def test_filter_library_without_query_returns_copy(store):
    w = store.insert_workout(coach_id=9, description="Squat")
    items = [w]
    result = filter_library(items, None)
    assert result == items and result is not items


def test_update_workout_replaces_content_and_reaches_the_calendar(store):
    catalog = CatalogService(store)
    metcon = store.add_workout_type("metcon", "Metcon")
    w = catalog.create_workout(9, "Back squat 5x5", name="Squat", color="#111111")
    store.insert_direct_assignment(1, w.id, date(2026, 3, 3))

    updated = catalog.update_workout(9, w.id, "Fran 21-15-9", name="", notes="scale to 65 lb", type_id=metcon.id)

    assert updated.id == w.id
    assert (updated.description, updated.name, updated.notes, updated.color) == ("Fran 21-15-9", None, "scale to 65 lb", None)
    assert updated.type_code == "metcon"
    entry = Resolver(store, store).resolve(1, DateRange(date(2026, 3, 1), date(2026, 3, 31)))[0]
    assert entry.workout.display_name == "Fran 21-15-9"


def test_update_and_delete_are_scoped_to_the_owning_coach(store):
    catalog = CatalogService(store)
    w = catalog.create_workout(9, "Squat")

    with pytest.raises(WorkoutNotFound):
        catalog.update_workout(8, w.id, "Hijacked")
    with pytest.raises(WorkoutNotFound):
        catalog.delete_workout(8, w.id)
    with pytest.raises(WorkoutNotFound):
        catalog.delete_workout(9, 999)
    assert store.get_workout(w.id).description == "Squat"


def test_delete_unscheduled_workout(store):
    catalog = CatalogService(store)
    w = catalog.create_workout(9, "Squat")

    catalog.delete_workout(9, w.id)

    assert catalog.list_library(9) == []


def test_delete_scheduled_workout_is_rejected(store, programs):
    catalog = CatalogService(store)
    direct = catalog.create_workout(9, "Fran")
    placed = catalog.create_workout(9, "Squat")
    store.insert_direct_assignment(1, direct.id, date(2026, 3, 3))
    p = programs.create_program(9, "Block", date(2026, 3, 1), date(2026, 3, 31))
    programs.add_program_workout(p.id, placed.id, date(2026, 3, 4))

    with pytest.raises(WorkoutInUse):
        catalog.delete_workout(9, direct.id)
    with pytest.raises(WorkoutInUse):
        catalog.delete_workout(9, placed.id)
    assert {w.id for w in catalog.list_library(9)} == {direct.id, placed.id}
