import requests
from typing import Optional


class FitTrackClient:
    """Simple REST client for the FitTrack API."""

    def __init__(
        self, base_url: str = "http://localhost:8000", token: Optional[str] = None
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _get(self, path: str, **params):
        resp = self.session.get(f"{self.base_url}{path}", params=params or None)
        resp.raise_for_status()
        return resp.json()

    def list_workouts(self) -> list[dict]:
        return self._get("/workouts")["workouts"]

    def log_workout(self, entry: dict) -> None:
        resp = self.session.post(f"{self.base_url}/workouts", json=entry)
        resp.raise_for_status()

    def clear_workouts(self) -> None:
        resp = self.session.delete(f"{self.base_url}/workouts")
        resp.raise_for_status()

    def custom_exercises(self) -> list[dict]:
        return self._get("/exercises/custom")["exercises"]

    def add_custom_exercise(
        self,
        name: str,
        muscle_group: str,
        equipment: str = "",
        description: Optional[str] = None,
        exercise_id: Optional[str] = None,
    ) -> dict:
        body = {"name": name, "muscleGroup": muscle_group, "equipment": equipment}
        if description is not None:
            body["description"] = description
        if exercise_id is not None:
            body["id"] = exercise_id
        resp = self.session.post(f"{self.base_url}/exercises/custom", json=body)
        resp.raise_for_status()
        return resp.json()["exercise"]

    def suggestion(self, exercise_id: str) -> dict:
        return self._get(f"/progress/{exercise_id}/suggestion")

    def series(self, exercise_id: str) -> list[dict]:
        return self._get(f"/progress/{exercise_id}/series")

    def stats(self, exercise_id: str) -> dict:
        return self._get(f"/progress/{exercise_id}/stats")

    def grouped_history(self, tz: Optional[str] = None) -> list[dict]:
        if tz:
            return self._get("/workouts/grouped", tz=tz)
        return self._get("/workouts/grouped")

    def progress_exercises(self) -> list[dict]:
        return self._get("/progress/exercises")

    def overview(self, exercise_id: str, limit: Optional[int] = None) -> dict:
        if limit is not None:
            return self._get(f"/progress/{exercise_id}", limit=limit)
        return self._get(f"/progress/{exercise_id}")

    def recent_sessions(self, exercise_id: str, limit: Optional[int] = None) -> list[dict]:
        if limit is not None:
            return self._get(f"/progress/{exercise_id}/recent", limit=limit)
        return self._get(f"/progress/{exercise_id}/recent")

    def muscle_groups(self) -> list[str]:
        return self._get("/muscle_groups")

    def exercises_for(self, muscle_group: str, query: Optional[str] = None) -> list[dict]:
        if query:
            return self._get(f"/muscle_groups/{muscle_group}/exercises", query=query)
        return self._get(f"/muscle_groups/{muscle_group}/exercises")

    def settings(self) -> dict:
        return self._get("/settings")

    def update_settings(self, values: dict) -> None:
        resp = self.session.post(f"{self.base_url}/settings", json=values)
        resp.raise_for_status()

    def health(self) -> dict:
        return self._get("/health")
