import datetime
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List
from zoneinfo import ZoneInfo

from models import WorkoutEntry


def round_half_up(value: float, digits: int = 0) -> float:
    """Round ``value`` to ``digits`` decimals with halves rounding up."""
    quant = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quant, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class SeriesPoint:
    index: int
    date: str
    max_weight: float
    avg_reps: int
    volume_total: float

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "date": self.date,
            "maxWeight": self.max_weight,
            "avgReps": self.avg_reps,
            "volumeTotal": self.volume_total,
        }


class HistoryAggregator:
    """Turn a newest-first workout history into grouped views and series."""

    @staticmethod
    def max_weight(entry: WorkoutEntry) -> float:
        return max(s.weight for s in entry.sets)

    @staticmethod
    def avg_reps(entry: WorkoutEntry) -> int:
        mean = sum(s.reps for s in entry.sets) / len(entry.sets)
        return int(round_half_up(mean))

    @staticmethod
    def volume(entry: WorkoutEntry) -> float:
        return sum(s.weight * s.reps for s in entry.sets)

    @staticmethod
    def day_label(ts: datetime.datetime) -> str:
        """Format ``ts`` like ``Tuesday, January 1, 2025``."""
        return f"{ts:%A}, {ts:%B} {ts.day}, {ts.year}"

    @classmethod
    def group_by_calendar_date(
        cls, history: Iterable[WorkoutEntry], tz: str | datetime.tzinfo = "UTC"
    ) -> "OrderedDict[str, List[WorkoutEntry]]":
        """Group entries by the viewer's local calendar day.

        ``tz`` is the viewer's zone; the same history can bucket differently
        for viewers in different zones. Groups keep first-occurrence order and
        entries keep their input order inside a group.
        """
        zone = ZoneInfo(tz) if isinstance(tz, str) else tz
        groups: "OrderedDict[str, List[WorkoutEntry]]" = OrderedDict()
        for entry in history:
            key = cls.day_label(entry.timestamp.astimezone(zone))
            groups.setdefault(key, []).append(entry)
        return groups

    @staticmethod
    def oldest_first(
        history: Iterable[WorkoutEntry], exercise_id: str
    ) -> List[WorkoutEntry]:
        matching = [e for e in history if e.exercise_id == exercise_id]
        matching.reverse()
        return matching

    @classmethod
    def series_for(
        cls, history: Iterable[WorkoutEntry], exercise_id: str
    ) -> List[SeriesPoint]:
        """Return per-session chart points for ``exercise_id``, oldest first."""
        return [
            SeriesPoint(
                index=i,
                date=entry.date,
                max_weight=cls.max_weight(entry),
                avg_reps=cls.avg_reps(entry),
                volume_total=cls.volume(entry),
            )
            for i, entry in enumerate(cls.oldest_first(history, exercise_id), start=1)
        ]

    @staticmethod
    def unique_exercises(history: Iterable[WorkoutEntry]) -> List[dict]:
        """Return ``{id, name}`` for each distinct exercise in first-seen order."""
        seen: dict[str, str] = {}
        for entry in history:
            if entry.exercise_id not in seen:
                seen[entry.exercise_id] = entry.exercise_name
        return [{"id": eid, "name": name} for eid, name in seen.items()]

    @classmethod
    def recent_sessions(
        cls, history: Iterable[WorkoutEntry], exercise_id: str, limit: int = 5
    ) -> List[dict]:
        """Return the ``limit`` newest sessions of ``exercise_id``."""
        if limit <= 0:
            return []
        sessions = []
        for entry in history:
            if entry.exercise_id != exercise_id:
                continue
            sessions.append(
                {
                    "date": entry.date,
                    "maxWeight": cls.max_weight(entry),
                    "volumeTotal": cls.volume(entry),
                    "sets": [s.to_dict() for s in entry.sets],
                }
            )
            if len(sessions) == limit:
                break
        return sessions
