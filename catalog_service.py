from __future__ import annotations
import logging
import time
from typing import List, Optional

from db import CustomExerciseRepository
from exercise_catalog import builtin_for, is_builtin
from models import Exercise, MuscleGroup

logger = logging.getLogger(__name__)


class CatalogService:
    """Merge the built-in catalog with each user's custom exercises."""

    def __init__(self, custom_repo: CustomExerciseRepository) -> None:
        self.custom = custom_repo

    @staticmethod
    def muscle_groups() -> List[str]:
        return [g.value for g in MuscleGroup]

    def exercises_for(
        self,
        user_id: str,
        muscle_group: str | MuscleGroup,
        query: Optional[str] = None,
    ) -> List[Exercise]:
        """Return built-in then custom exercises of ``muscle_group``.

        ``query`` filters by case-insensitive substring of the name.
        """
        group = MuscleGroup.parse(muscle_group)
        merged = list(builtin_for(group)) + self.custom.fetch(user_id, group)
        if query:
            needle = query.lower()
            merged = [ex for ex in merged if needle in ex.name.lower()]
        return merged

    def custom_exercises(self, user_id: str) -> List[Exercise]:
        return self.custom.fetch(user_id)

    def _generate_id(self, user_id: str) -> str:
        stamp = int(time.time() * 1000)
        while True:
            candidate = f"custom-{stamp}"
            if not self.custom.exists(user_id, candidate):
                return candidate
            stamp += 1

    def add_custom(
        self,
        user_id: str,
        name: str,
        muscle_group: str | MuscleGroup,
        equipment: str = "",
        description: Optional[str] = None,
        exercise_id: Optional[str] = None,
    ) -> Exercise:
        if not name or not name.strip():
            raise ValueError("name required")
        group = MuscleGroup.parse(muscle_group)
        ex_id = exercise_id or self._generate_id(user_id)
        if is_builtin(ex_id):
            raise ValueError(f"exercise id already exists: {ex_id}")
        exercise = Exercise(ex_id, name.strip(), group, equipment, description)
        self.custom.add(user_id, exercise)
        logger.info("added custom exercise %s for user %s", ex_id, user_id)
        return exercise
