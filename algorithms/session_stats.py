from dataclasses import dataclass
from typing import Iterable

from models import WorkoutEntry
from .history_aggregator import HistoryAggregator, round_half_up


@dataclass(frozen=True)
class SessionStats:
    total_sessions: int
    current_max: float
    starting_max: float
    improvement_percent: float

    def to_dict(self) -> dict:
        return {
            "totalSessions": self.total_sessions,
            "currentMax": self.current_max,
            "startingMax": self.starting_max,
            "improvementPercent": self.improvement_percent,
        }


class SessionStatsCalculator:
    """Summary statistics for one exercise."""

    @staticmethod
    def improvement_percent(current_max: float, starting_max: float) -> float:
        """Return the gain over ``starting_max`` in percent, 0 without a baseline."""
        if starting_max == 0:
            return 0.0
        return round_half_up((current_max - starting_max) / starting_max * 100, 1)

    @classmethod
    def stats(cls, history: Iterable[WorkoutEntry], exercise_id: str) -> SessionStats:
        sessions = HistoryAggregator.oldest_first(history, exercise_id)
        if not sessions:
            return SessionStats(0, 0.0, 0.0, 0.0)
        current = HistoryAggregator.max_weight(sessions[-1])
        starting = HistoryAggregator.max_weight(sessions[0])
        return SessionStats(
            total_sessions=len(sessions),
            current_max=current,
            starting_max=starting,
            improvement_percent=cls.improvement_percent(current, starting),
        )
