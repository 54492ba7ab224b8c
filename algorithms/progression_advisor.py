from dataclasses import dataclass
from typing import Iterable

from models import WorkoutEntry


@dataclass(frozen=True)
class Suggestion:
    weight: float
    reps: int
    message: str

    def to_dict(self) -> dict:
        return {"weight": self.weight, "reps": self.reps, "message": self.message}


class ProgressionAdvisor:
    """Propose the next weight/rep target from the last logged session."""

    DEFAULT_WEIGHT: float = 20.0
    DEFAULT_REPS: int = 10
    WEIGHT_STEP: float = 2.5
    HIGH_REPS: int = 12
    TARGET_REPS: int = 10
    RESET_REPS: int = 8

    @staticmethod
    def last_session(
        history: Iterable[WorkoutEntry], exercise_id: str
    ) -> WorkoutEntry | None:
        """Return the newest entry for ``exercise_id`` in newest-first ``history``."""
        for entry in history:
            if entry.exercise_id == exercise_id:
                return entry
        return None

    @classmethod
    def suggest_next(
        cls, history: Iterable[WorkoutEntry], exercise_id: str
    ) -> Suggestion:
        """Return the suggested target for the next session of ``exercise_id``.

        Only the first set of the most recent session is considered. Once the
        rep target is met the load goes up, otherwise one rep is added.
        """
        last = cls.last_session(history, exercise_id)
        if last is None:
            return Suggestion(
                cls.DEFAULT_WEIGHT, cls.DEFAULT_REPS, "Start with a comfortable weight"
            )
        first = last.sets[0]
        if first.reps >= cls.HIGH_REPS:
            return Suggestion(
                first.weight + cls.WEIGHT_STEP,
                cls.RESET_REPS,
                "Increase weight, reduce reps",
            )
        if first.reps >= cls.TARGET_REPS:
            return Suggestion(
                first.weight + cls.WEIGHT_STEP, first.reps, "Time to increase weight!"
            )
        return Suggestion(first.weight, first.reps + 1, "Add one more rep")
