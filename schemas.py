from typing import Annotated, List, Optional
from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from models import MuscleGroup, WorkoutEntry, WorkoutSet, parse_timestamp, utc_now


def _check_timestamp(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        parse_timestamp(value)
    except ValueError:
        raise ValueError(f"invalid timestamp: {value}")
    return value


Timestamp = Annotated[Optional[str], AfterValidator(_check_timestamp)]


class SetIn(BaseModel):
    weight: float = Field(gt=0)
    reps: int = Field(gt=0)
    date: Timestamp = None

    def to_model(self) -> WorkoutSet:
        return WorkoutSet(self.weight, self.reps, self.date or utc_now())


class WorkoutEntryIn(BaseModel):
    """Request body for a completed session.

    Accepts the camelCase field names used on the wire. A session without
    sets never reaches the store.
    """

    model_config = ConfigDict(populate_by_name=True)

    exercise_id: str = Field(alias="exerciseId", min_length=1)
    exercise_name: str = Field(alias="exerciseName", min_length=1)
    muscle_group: MuscleGroup = Field(alias="muscleGroup")
    sets: List[SetIn] = Field(min_length=1)
    date: Timestamp = None

    def to_model(self) -> WorkoutEntry:
        return WorkoutEntry(
            exercise_id=self.exercise_id,
            exercise_name=self.exercise_name,
            muscle_group=self.muscle_group.value,
            sets=tuple(s.to_model() for s in self.sets),
            date=self.date or utc_now(),
        )


class ExerciseIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: str = Field(min_length=1)
    muscle_group: MuscleGroup = Field(alias="muscleGroup")
    equipment: str = ""
    description: Optional[str] = None
