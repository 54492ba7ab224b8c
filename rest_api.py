import logging
import time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from fastapi import (
    FastAPI,
    HTTPException,
    Response,
    Body,
    APIRouter,
    Request,
    Header,
    Depends,
    Query,
)
from db import (
    WorkoutEntryRepository,
    AsyncWorkoutEntryRepository,
    CustomExerciseRepository,
    AccessTokenRepository,
    SettingsRepository,
    UserSettingsRepository,
)
from catalog_service import CatalogService
from progress_service import ProgressService
from schemas import ExerciseIn, WorkoutEntryIn

logger = logging.getLogger(__name__)


class RateLimiter:
    """Simple in-memory rate limiter."""

    def __init__(self, limit: int = 60, window: int = 60) -> None:
        self.limit = limit
        self.window = window
        self.requests: dict[str, list[float]] = {}

    async def __call__(self, request: Request, call_next):
        ip = request.client.host if request.client else "anon"
        now = time.time()
        history = [t for t in self.requests.get(ip, []) if now - t < self.window]
        if len(history) >= self.limit:
            logger.warning("rate limit exceeded for %s", ip)
            return Response("rate limit exceeded", status_code=429)
        history.append(now)
        self.requests[ip] = history
        return await call_next(request)


class FitTrackAPI:
    """Provides REST endpoints for workout logging and progress analytics."""

    def __init__(
        self,
        db_path: str = "workout.db",
        yaml_path: str = "settings.yaml",
        *,
        rate_limit: int | None = None,
        rate_window: int = 60,
    ) -> None:
        self.db_path = db_path
        self.settings = SettingsRepository(db_path, yaml_path)
        self.user_settings = UserSettingsRepository(db_path, self.settings)
        self.entries = WorkoutEntryRepository(db_path)
        self.async_entries = AsyncWorkoutEntryRepository(db_path)
        self.custom_exercises = CustomExerciseRepository(db_path)
        self.tokens = AccessTokenRepository(db_path)
        self.catalog = CatalogService(self.custom_exercises)
        self.progress = ProgressService(self.entries)
        self.app = FastAPI(
            title="FitTrack API",
            description="REST API for workout logging and progress analytics",
        )
        if rate_limit is not None:
            limiter = RateLimiter(limit=rate_limit, window=rate_window)
            self.app.middleware("http")(limiter)
        self._setup_routes()

    def current_user(self, authorization: str | None = Header(None)) -> str:
        """Resolve the bearer token in ``Authorization`` to a user id."""
        if not authorization:
            logger.warning("request without credentials rejected")
            raise HTTPException(status_code=401, detail="Unauthorized")
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            logger.warning("malformed authorization header rejected")
            raise HTTPException(status_code=401, detail="Unauthorized")
        user_id = self.tokens.resolve(token.strip())
        if user_id is None:
            logger.warning("unknown access token rejected")
            raise HTTPException(status_code=401, detail="Unauthorized")
        return user_id

    def _viewer_zone(self, tz: str | None, user_id: str) -> str:
        zone = tz or self.user_settings.get_text(user_id, "timezone", "UTC")
        try:
            ZoneInfo(zone)
        except (ZoneInfoNotFoundError, ValueError):
            raise HTTPException(status_code=400, detail=f"unknown time zone: {zone}")
        return zone

    def _setup_routes(self) -> None:
        muscle_groups_router = APIRouter(
            prefix="/muscle_groups", tags=["Muscle Groups"]
        )
        exercises_router = APIRouter(prefix="/exercises", tags=["Exercises"])
        workouts_router = APIRouter(prefix="/workouts", tags=["Workouts"])
        progress_router = APIRouter(prefix="/progress", tags=["Progress"])
        user = Depends(self.current_user)

        @self.app.get(
            "/health",
            summary="Health check",
            description="Verify API and database connectivity.",
        )
        def health():
            """Return API and database connection status."""
            try:
                self.settings.fetch_all("SELECT 1;")
                return {"status": "ok"}
            except Exception as e:  # pragma: no cover - connectivity failure
                raise HTTPException(status_code=500, detail=str(e))

        @muscle_groups_router.get("")
        def list_muscle_groups():
            return self.catalog.muscle_groups()

        @muscle_groups_router.get("/{group}/exercises")
        def list_group_exercises(
            group: str, query: str | None = None, user_id: str = user
        ):
            try:
                exercises = self.catalog.exercises_for(user_id, group, query)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return [ex.to_dict() for ex in exercises]

        @exercises_router.get("/custom")
        def list_custom_exercises(user_id: str = user):
            return {
                "exercises": [
                    ex.to_dict() for ex in self.catalog.custom_exercises(user_id)
                ]
            }

        @exercises_router.post("/custom")
        def add_custom_exercise(body: ExerciseIn = Body(...), user_id: str = user):
            try:
                exercise = self.catalog.add_custom(
                    user_id,
                    body.name,
                    body.muscle_group,
                    body.equipment,
                    body.description,
                    exercise_id=body.id,
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"success": True, "exercise": exercise.to_dict()}

        @workouts_router.get("")
        async def list_workouts(user_id: str = user):
            entries = await self.async_entries.fetch(user_id)
            return {"workouts": [e.to_dict() for e in entries]}

        @workouts_router.post("")
        def log_workout(body: WorkoutEntryIn = Body(...), user_id: str = user):
            self.progress.log_session(user_id, body.to_model())
            return {"success": True}

        @workouts_router.delete("")
        def clear_workouts(user_id: str = user):
            self.progress.clear(user_id)
            return {"success": True}

        @workouts_router.get("/grouped")
        def grouped_workouts(tz: str | None = None, user_id: str = user):
            zone = self._viewer_zone(tz, user_id)
            groups = self.progress.grouped_history(user_id, zone)
            return [
                {"date": day, "entries": [e.to_dict() for e in entries]}
                for day, entries in groups.items()
            ]

        @progress_router.get("/exercises")
        def progress_exercises(user_id: str = user):
            return self.progress.exercises(user_id)

        @progress_router.get("/{exercise_id}")
        def progress_overview(
            exercise_id: str,
            limit: int | None = Query(None, ge=1),
            user_id: str = user,
        ):
            count = (
                limit
                if limit is not None
                else self.user_settings.get_int(user_id, "recent_sessions", 5)
            )
            return self.progress.overview(user_id, exercise_id, count)

        @progress_router.get("/{exercise_id}/suggestion")
        def suggestion(exercise_id: str, user_id: str = user):
            return self.progress.suggest_next(user_id, exercise_id).to_dict()

        @progress_router.get("/{exercise_id}/series")
        def series(exercise_id: str, user_id: str = user):
            return [p.to_dict() for p in self.progress.series(user_id, exercise_id)]

        @progress_router.get("/{exercise_id}/stats")
        def stats(exercise_id: str, user_id: str = user):
            return self.progress.stats(user_id, exercise_id).to_dict()

        @progress_router.get("/{exercise_id}/recent")
        def recent(
            exercise_id: str,
            limit: int | None = Query(None, ge=1),
            user_id: str = user,
        ):
            count = (
                limit
                if limit is not None
                else self.user_settings.get_int(user_id, "recent_sessions", 5)
            )
            return self.progress.recent_sessions(user_id, exercise_id, count)

        @self.app.get("/settings")
        def get_settings(user_id: str = user):
            return self.user_settings.all_settings(user_id)

        @self.app.post("/settings")
        def update_settings(values: dict = Body(...), user_id: str = user):
            try:
                self.user_settings.update(user_id, values)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"status": "updated"}

        self.app.include_router(muscle_groups_router)
        self.app.include_router(exercises_router)
        self.app.include_router(workouts_router)
        self.app.include_router(progress_router)


def create_app(db_path: str = "workout.db", yaml_path: str = "settings.yaml") -> FastAPI:
    return FitTrackAPI(db_path=db_path, yaml_path=yaml_path).app


if __name__ == "__main__":
    import os
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        create_app(
            os.environ.get("DB_PATH", "workout.db"),
            os.environ.get("YAML_PATH", "settings.yaml"),
        )
    )
