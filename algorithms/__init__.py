from .progression_advisor import ProgressionAdvisor, Suggestion
from .history_aggregator import HistoryAggregator, SeriesPoint
from .session_stats import SessionStatsCalculator, SessionStats
from .weight_converter import WeightConverter

__all__ = [
    "ProgressionAdvisor",
    "Suggestion",
    "HistoryAggregator",
    "SeriesPoint",
    "SessionStatsCalculator",
    "SessionStats",
    "WeightConverter",
]
