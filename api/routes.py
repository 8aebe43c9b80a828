from __future__ import annotations

from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from api.deps import get_scheduling_service
from api.schemas import (
    ActivityOut,
    AssignmentCreatedOut,
    HealthOut,
    MutationOut,
    ProgramAssignmentOut,
    ProgramOut,
    ProgramWorkoutOut,
    ScheduleDayOut,
    ScheduleEntryOut,
    ScheduleOut,
    WorkoutOut,
    activity_out,
)
from core.db import get_query_stats
from core.domain import DateRange
from core.observability import system_status
from core.services.calendar_view import group_by_date
from core.services.mutations import DeleteResult, MoveResult
from core.services.scheduling import SchedulingService
from core.validators import (
    ActivityInput,
    AssignWorkoutInput,
    DeleteWorkoutInput,
    InlineAssignInput,
    MoveWorkoutInput,
    ProgramAssignInput,
    ProgramCreateInput,
    ProgramWorkoutInput,
    ScheduleQueryInput,
    WorkoutCreateInput,
)

router = APIRouter(prefix="/api/v1")

Service = Annotated[SchedulingService, Depends(get_scheduling_service)]


def _mutation_out(result: MoveResult | DeleteResult) -> MutationOut:
    return MutationOut(
        program_wide=result.program_wide,
        affected_athletes=list(result.affected_athletes),
        orphaned_activity=activity_out(result.orphaned_activity),
    )


@router.get("/health", response_model=HealthOut, tags=["system"])
def health():
    stats = get_query_stats()
    strip = system_status(stats)
    return HealthOut(status=strip.status, message=strip.message, queries=stats.total)


# -- athlete calendar --


@router.get("/athletes/{athlete_id}/schedule", response_model=ScheduleOut, tags=["schedule"])
def get_schedule(
    athlete_id: int,
    service: Service,
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    view: Optional[str] = Query(None, pattern="^(week|month)$"),
    anchor: Optional[date] = Query(None),
):
    if start is not None or end is not None:
        query = ScheduleQueryInput(start=start, end=end)
        window = DateRange(query.start, query.end)
    else:
        window = service.calendar_range(view or "week", anchor or date.today())

    entries = service.resolve_schedule(athlete_id, window.start, window.end)
    settings = service.settings
    days = [
        ScheduleDayOut(
            date=day,
            entries=[ScheduleEntryOut.from_entry(e, settings.direct_color, settings.program_color) for e in day_entries],
        )
        for day, day_entries in group_by_date(entries, window).items()
    ]
    return ScheduleOut(athlete_id=athlete_id, start=window.start, end=window.end, days=days)


@router.post(
    "/athletes/{athlete_id}/assignments",
    response_model=AssignmentCreatedOut,
    status_code=status.HTTP_201_CREATED,
    tags=["schedule"],
)
def create_assignment(athlete_id: int, body: AssignWorkoutInput, service: Service):
    assignment_id = service.create_direct_assignment(athlete_id, body.workout_id, body.date)
    return AssignmentCreatedOut(assignment_id=assignment_id, athlete_id=athlete_id, workout_id=body.workout_id, date=body.date)


@router.post(
    "/athletes/{athlete_id}/assignments/inline",
    response_model=AssignmentCreatedOut,
    status_code=status.HTTP_201_CREATED,
    tags=["schedule"],
)
def create_workout_and_assign(athlete_id: int, body: InlineAssignInput, service: Service):
    workout, assignment = service.create_and_assign(
        athlete_id,
        body.coach_id,
        body.date,
        description=body.description,
        name=body.name,
        notes=body.notes,
        color=body.color,
        type_id=body.type_id,
    )
    return AssignmentCreatedOut(assignment_id=assignment.id, athlete_id=athlete_id, workout_id=workout.id, date=body.date)


@router.post("/athletes/{athlete_id}/schedule/move", response_model=MutationOut, tags=["schedule"])
def move_workout(athlete_id: int, body: MoveWorkoutInput, service: Service):
    if body.provenance == "program":
        result = service.move_program_workout(body.program_id, body.workout_id, body.from_date, body.to_date, athlete_id=athlete_id)
    else:
        result = service.move_direct_assignment(athlete_id, body.workout_id, body.from_date, body.to_date)
    return _mutation_out(result)


@router.post("/athletes/{athlete_id}/schedule/delete", response_model=MutationOut, tags=["schedule"])
def delete_workout(athlete_id: int, body: DeleteWorkoutInput, service: Service):
    if body.provenance == "program":
        result = service.delete_program_workout(body.program_id, body.workout_id, body.date, athlete_id=athlete_id)
    else:
        result = service.delete_direct_assignment(athlete_id, body.workout_id, body.date)
    return _mutation_out(result)


# -- activity --


@router.get("/athletes/{athlete_id}/activity", response_model=Optional[ActivityOut], tags=["activity"])
def get_activity(athlete_id: int, service: Service, workout_id: int = Query(gt=0), scheduled_on: date = Query(alias="date")):
    return activity_out(service.get_activity(athlete_id, workout_id, scheduled_on))


@router.put("/athletes/{athlete_id}/activity", response_model=ActivityOut, tags=["activity"])
def put_activity(athlete_id: int, body: ActivityInput, service: Service):
    record = service.record_activity(
        athlete_id,
        body.workout_id,
        body.scheduled_on,
        is_completed=body.is_completed,
        is_unscaled=body.is_unscaled,
        notes=body.notes,
    )
    return ActivityOut.model_validate(record)


# -- workout library --


@router.get("/coaches/{coach_id}/workouts", response_model=list[WorkoutOut], tags=["library"])
def list_library(coach_id: int, service: Service, q: Optional[str] = Query(None, max_length=200)):
    return [WorkoutOut.model_validate(w) for w in service.catalog.list_library(coach_id, q)]


@router.post("/coaches/{coach_id}/workouts", response_model=WorkoutOut, status_code=status.HTTP_201_CREATED, tags=["library"])
def create_workout(coach_id: int, body: WorkoutCreateInput, service: Service):
    workout = service.catalog.create_workout(
        coach_id, body.description, name=body.name, notes=body.notes, color=body.color, type_id=body.type_id
    )
    return WorkoutOut.model_validate(workout)


@router.put("/coaches/{coach_id}/workouts/{workout_id}", response_model=WorkoutOut, tags=["library"])
def update_workout(coach_id: int, workout_id: int, body: WorkoutCreateInput, service: Service):
    workout = service.catalog.update_workout(
        coach_id, workout_id, body.description, name=body.name, notes=body.notes, color=body.color, type_id=body.type_id
    )
    return WorkoutOut.model_validate(workout)


@router.delete("/coaches/{coach_id}/workouts/{workout_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["library"])
def delete_workout_template(coach_id: int, workout_id: int, service: Service):
    service.catalog.delete_workout(coach_id, workout_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -- programs --


@router.post("/programs", response_model=ProgramOut, status_code=status.HTTP_201_CREATED, tags=["programs"])
def create_program(body: ProgramCreateInput, service: Service):
    program = service.programs.create_program(
        body.coach_id, body.name, body.start_date, body.end_date, status=body.status, description=body.description
    )
    return ProgramOut.model_validate(program)


@router.get("/programs/{program_id}/workouts", response_model=list[ProgramWorkoutOut], tags=["programs"])
def list_program_workouts(program_id: int, service: Service):
    return [ProgramWorkoutOut.model_validate(pw) for pw in service.programs.program_workouts(program_id)]


@router.post(
    "/programs/{program_id}/workouts",
    response_model=ProgramWorkoutOut,
    status_code=status.HTTP_201_CREATED,
    tags=["programs"],
)
def add_program_workout(program_id: int, body: ProgramWorkoutInput, service: Service):
    placement = service.programs.add_program_workout(program_id, body.workout_id, body.date)
    return ProgramWorkoutOut.model_validate(placement)


@router.post(
    "/programs/{program_id}/assignments",
    response_model=list[ProgramAssignmentOut],
    status_code=status.HTTP_201_CREATED,
    tags=["programs"],
)
def assign_program(program_id: int, body: ProgramAssignInput, service: Service):
    created = service.programs.assign_program(program_id, body.athlete_ids, body.start_date, body.end_date)
    return [ProgramAssignmentOut.model_validate(a) for a in created]


@router.get("/programs/{program_id}/athletes", response_model=list[int], tags=["programs"])
def program_athletes(program_id: int, service: Service):
    return service.programs.assigned_athletes(program_id)


@router.delete("/programs/{program_id}/assignments/{athlete_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["programs"])
def unassign_program(program_id: int, athlete_id: int, service: Service):
    service.programs.unassign_program(program_id, athlete_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
