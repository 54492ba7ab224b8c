from __future__ import annotations
import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class MuscleGroup(str, Enum):
    """Muscle groups an exercise can belong to."""

    CHEST = "Chest"
    BACK = "Back"
    SHOULDERS = "Shoulders"
    ARMS = "Arms"
    LEGS = "Legs"
    CORE = "Core"

    @classmethod
    def parse(cls, value: "str | MuscleGroup") -> "MuscleGroup":
        """Return the group for ``value`` or raise ``ValueError``."""
        if isinstance(value, cls):
            return value
        for group in cls:
            if group.value.lower() == str(value).strip().lower():
                return group
        raise ValueError(f"unknown muscle group: {value}")


def parse_timestamp(ts: str | datetime.datetime) -> datetime.datetime:
    """Return ``ts`` as timezone-aware datetime, assuming UTC when naive."""
    if isinstance(ts, datetime.datetime):
        dt = ts
    else:
        text = ts.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt


def utc_now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@dataclass(frozen=True)
class WorkoutSet:
    weight: float
    reps: int
    date: str

    def to_dict(self) -> dict:
        return {"weight": self.weight, "reps": self.reps, "date": self.date}


@dataclass(frozen=True)
class WorkoutEntry:
    """One completed session of a single exercise."""

    exercise_id: str
    exercise_name: str
    muscle_group: str
    sets: tuple[WorkoutSet, ...]
    date: str

    def to_dict(self) -> dict:
        return {
            "exerciseId": self.exercise_id,
            "exerciseName": self.exercise_name,
            "muscleGroup": self.muscle_group,
            "sets": [s.to_dict() for s in self.sets],
            "date": self.date,
        }

    @property
    def timestamp(self) -> datetime.datetime:
        return parse_timestamp(self.date)


@dataclass(frozen=True)
class Exercise:
    id: str
    name: str
    muscle_group: MuscleGroup
    equipment: str
    description: Optional[str] = field(default=None)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "muscleGroup": self.muscle_group.value,
            "equipment": self.equipment,
        }
        if self.description is not None:
            data["description"] = self.description
        return data
