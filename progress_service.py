from __future__ import annotations
from collections import OrderedDict
from typing import List

from db import WorkoutEntryRepository
from models import WorkoutEntry
from algorithms import (
    HistoryAggregator,
    ProgressionAdvisor,
    SeriesPoint,
    SessionStats,
    SessionStatsCalculator,
    Suggestion,
)


class ProgressService:
    """Run progression and analytics over a user's stored history.

    Every call reads one snapshot from the entry store; nothing derived is
    cached between calls.
    """

    def __init__(self, entry_repo: WorkoutEntryRepository) -> None:
        self.entries = entry_repo

    def history(self, user_id: str) -> List[WorkoutEntry]:
        return self.entries.fetch(user_id)

    def log_session(self, user_id: str, entry: WorkoutEntry) -> int:
        return self.entries.append(user_id, entry)

    def clear(self, user_id: str) -> None:
        self.entries.clear(user_id)

    def suggest_next(self, user_id: str, exercise_id: str) -> Suggestion:
        return ProgressionAdvisor.suggest_next(self.history(user_id), exercise_id)

    def series(self, user_id: str, exercise_id: str) -> List[SeriesPoint]:
        return HistoryAggregator.series_for(self.history(user_id), exercise_id)

    def stats(self, user_id: str, exercise_id: str) -> SessionStats:
        return SessionStatsCalculator.stats(self.history(user_id), exercise_id)

    def grouped_history(
        self, user_id: str, tz: str = "UTC"
    ) -> "OrderedDict[str, List[WorkoutEntry]]":
        return HistoryAggregator.group_by_calendar_date(self.history(user_id), tz)

    def exercises(self, user_id: str) -> List[dict]:
        return HistoryAggregator.unique_exercises(self.history(user_id))

    def recent_sessions(
        self, user_id: str, exercise_id: str, limit: int = 5
    ) -> List[dict]:
        return HistoryAggregator.recent_sessions(
            self.history(user_id), exercise_id, limit
        )

    def overview(self, user_id: str, exercise_id: str, limit: int = 5) -> dict:
        """Series, stats and recent sessions computed from one snapshot."""
        snapshot = self.history(user_id)
        return {
            "series": [
                p.to_dict() for p in HistoryAggregator.series_for(snapshot, exercise_id)
            ],
            "stats": SessionStatsCalculator.stats(snapshot, exercise_id).to_dict(),
            "recent": HistoryAggregator.recent_sessions(snapshot, exercise_id, limit),
        }
