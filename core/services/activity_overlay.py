from __future__ import annotations

from dataclasses import replace

from core.domain import ResolvedScheduleEntry
from core.stores.base import ActivityStore


class ActivityOverlay:
    """Attach each athlete's activity record to resolved entries.

    Lookups are keyed by (athlete, workout, scheduled date). A missing record
    means the workout has not been attempted yet and leaves ``activity`` as
    ``None``. Never writes to the activity store.
    """

    def __init__(self, activity: ActivityStore) -> None:
        self.activity = activity

    def overlay(self, entries: list[ResolvedScheduleEntry], athlete_id: int) -> list[ResolvedScheduleEntry]:
        if not entries:
            return []
        records = self.activity.find_activity_records(athlete_id, {(e.workout_id, e.date) for e in entries})
        return [replace(e, activity=records.get((e.workout_id, e.date))) for e in entries]
