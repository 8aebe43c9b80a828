from __future__ import annotations

import logging
from typing import Optional

from core.domain import WorkoutDefinition
from core.errors import WorkoutNotFound
from core.stores.base import WorkoutCatalog

logger = logging.getLogger(__name__)


def matches_query(workout: WorkoutDefinition, query: str) -> bool:
    """Case-insensitive match on name, description or type code."""
    needle = query.strip().lower()
    if not needle:
        return True
    haystacks = (workout.name or "", workout.description or "", workout.type_code or "")
    return any(needle in h.lower() for h in haystacks)


def filter_library(workouts: list[WorkoutDefinition], query: Optional[str]) -> list[WorkoutDefinition]:
    if not query:
        return list(workouts)
    return [w for w in workouts if matches_query(w, query)]


class CatalogService:
    def __init__(self, catalog: WorkoutCatalog) -> None:
        self.catalog = catalog

    def list_library(self, coach_id: int, query: Optional[str] = None) -> list[WorkoutDefinition]:
        return filter_library(self.catalog.list_workouts(coach_id), query)

    def create_workout(
        self,
        coach_id: int,
        description: str,
        name: Optional[str] = None,
        notes: str = "",
        color: Optional[str] = None,
        type_id: Optional[int] = None,
    ) -> WorkoutDefinition:
        workout = self.catalog.insert_workout(
            coach_id=coach_id,
            description=description,
            name=name or None,
            notes=notes or "",
            color=color,
            type_id=type_id,
        )
        logger.info("workout_created", extra={"ctx_workout_id": workout.id, "ctx_coach_id": coach_id})
        return workout

    def get_owned_workout(self, coach_id: int, workout_id: int) -> WorkoutDefinition:
        workout = self.catalog.get_workout(workout_id)
        if workout is None or workout.coach_id != coach_id:
            raise WorkoutNotFound("Workout not found", details={"workout_id": workout_id, "coach_id": coach_id})
        return workout

    def update_workout(
        self,
        coach_id: int,
        workout_id: int,
        description: str,
        name: Optional[str] = None,
        notes: str = "",
        color: Optional[str] = None,
        type_id: Optional[int] = None,
    ) -> WorkoutDefinition:
        """Replace the template's content fields.

        Existing assignments and placements keep pointing at the template, so
        every calendar that shows it picks up the new content on the next read.
        """
        self.get_owned_workout(coach_id, workout_id)
        workout = self.catalog.update_workout(
            workout_id,
            description=description,
            name=name or None,
            notes=notes or "",
            color=color,
            type_id=type_id,
        )
        logger.info("workout_updated", extra={"ctx_workout_id": workout_id, "ctx_coach_id": coach_id})
        return workout

    def delete_workout(self, coach_id: int, workout_id: int) -> None:
        self.get_owned_workout(coach_id, workout_id)
        self.catalog.delete_workout(workout_id)
        logger.info("workout_deleted", extra={"ctx_workout_id": workout_id, "ctx_coach_id": coach_id})
