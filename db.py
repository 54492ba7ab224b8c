import sqlite3
import aiosqlite
import datetime
import logging
import secrets
import threading
from contextlib import contextmanager, asynccontextmanager
from typing import List, Tuple, Optional, Iterable

from config import YamlConfig
from models import Exercise, MuscleGroup, WorkoutEntry, WorkoutSet
from settings_schema import SettingsSchema, validate_settings

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 1000

_LOCKS_GUARD = threading.Lock()
_USER_LOCKS: dict[str, threading.Lock] = {}


def _user_lock(user_id: str) -> threading.Lock:
    """Return the process-wide lock serializing writes for ``user_id``."""
    with _LOCKS_GUARD:
        lock = _USER_LOCKS.get(user_id)
        if lock is None:
            lock = threading.Lock()
            _USER_LOCKS[user_id] = lock
        return lock


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "workout_entries": (
            """CREATE TABLE workout_entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    exercise_id TEXT NOT NULL,
                    exercise_name TEXT NOT NULL,
                    muscle_group TEXT NOT NULL,
                    date TEXT NOT NULL
                );""",
            [
                "id",
                "user_id",
                "exercise_id",
                "exercise_name",
                "muscle_group",
                "date",
            ],
        ),
        "entry_sets": (
            """CREATE TABLE entry_sets (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    entry_id INTEGER NOT NULL,
                    position INTEGER NOT NULL,
                    weight REAL NOT NULL,
                    reps INTEGER NOT NULL,
                    date TEXT NOT NULL,
                    FOREIGN KEY(entry_id) REFERENCES workout_entries(id) ON DELETE CASCADE
                );""",
            ["id", "entry_id", "position", "weight", "reps", "date"],
        ),
        "custom_exercises": (
            """CREATE TABLE custom_exercises (
                    user_id TEXT NOT NULL,
                    id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    muscle_group TEXT NOT NULL,
                    equipment TEXT NOT NULL DEFAULT '',
                    description TEXT,
                    created_at TEXT NOT NULL,
                    PRIMARY KEY (user_id, id)
                );""",
            [
                "user_id",
                "id",
                "name",
                "muscle_group",
                "equipment",
                "description",
                "created_at",
            ],
        ),
        "access_tokens": (
            """CREATE TABLE access_tokens (
                    token TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL DEFAULT 'default',
                    created_at TEXT NOT NULL
                );""",
            ["token", "user_id", "name", "created_at"],
        ),
        "settings": (
            """CREATE TABLE settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );""",
            ["key", "value"],
        ),
        "user_settings": (
            """CREATE TABLE user_settings (
                    user_id TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    PRIMARY KEY (user_id, key)
                );""",
            ["user_id", "key", "value"],
        ),
    }

    _INDEXES = (
        "CREATE INDEX IF NOT EXISTS idx_entries_user ON workout_entries(user_id, id);",
        "CREATE INDEX IF NOT EXISTS idx_sets_entry ON entry_sets(entry_id, position);",
    )

    def __init__(self, db_path: str = "workout.db") -> None:
        self._db_path = db_path
        self._ensure_schema()
        self._ensure_indexes()

    @property
    def db_path(self) -> str:
        return self._db_path

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path, timeout=30)
        connection.execute("PRAGMA foreign_keys=ON;")
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("PRAGMA foreign_keys=off;")
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)
            cursor.execute("PRAGMA foreign_keys=on;")

    def _ensure_indexes(self) -> None:
        with self._connection() as conn:
            for sql in self._INDEXES:
                conn.execute(sql)

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        logger.info("migrating table %s", table)
        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)

        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            missing = [c for c in columns if c not in existing_cols]
            if missing:
                def default_val(col: str) -> str:
                    if col in ("equipment", "muscle_group", "exercise_name"):
                        return "''"
                    if col == "name":
                        return "'default'"
                    if col in ("created_at", "date"):
                        return "datetime('now')"
                    if col == "position":
                        return "0"
                    return "NULL"

                defaults = ", ".join(default_val(c) for c in missing)
                conn.execute(
                    f"INSERT INTO {table} ({cols}, {', '.join(missing)}) SELECT {cols}, {defaults} FROM {table}_old;"
                )
            else:
                conn.execute(
                    f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;"
                )
        conn.execute(f"DROP TABLE {table}_old;")

    def vacuum(self) -> None:
        """Run SQLite VACUUM to reduce database size."""
        with self._connection() as conn:
            conn.execute("VACUUM;")


class BaseRepository(Database):
    """Base repository providing helper methods."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()


class AsyncDatabase(Database):
    """Provides asynchronous connection management."""

    @asynccontextmanager
    async def _async_connection(self):
        conn = await aiosqlite.connect(self._db_path)
        try:
            await conn.execute("PRAGMA foreign_keys=ON;")
            yield conn
            await conn.commit()
        finally:
            await conn.close()


class AsyncBaseRepository(AsyncDatabase):
    """Asynchronous variant of BaseRepository using aiosqlite."""

    async def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        async with self._async_connection() as conn:
            cursor = await conn.execute(query, params)
            return await cursor.fetchall()


_ENTRY_QUERY = (
    "SELECT e.id, e.exercise_id, e.exercise_name, e.muscle_group, e.date, "
    "s.weight, s.reps, s.date "
    "FROM workout_entries e JOIN entry_sets s ON s.entry_id = e.id "
    "WHERE e.user_id = ? ORDER BY e.id DESC, s.position ASC;"
)


def _build_entries(rows: Iterable[Tuple]) -> List[WorkoutEntry]:
    """Fold joined entry/set rows into newest-first ``WorkoutEntry`` objects."""
    entries: List[WorkoutEntry] = []
    current_id: Optional[int] = None
    header: tuple = ()
    sets: list[WorkoutSet] = []

    def flush() -> None:
        if current_id is not None:
            ex_id, ex_name, group, date = header
            entries.append(WorkoutEntry(ex_id, ex_name, group, tuple(sets), date))

    for eid, ex_id, ex_name, group, date, weight, reps, set_date in rows:
        if eid != current_id:
            flush()
            current_id = eid
            header = (ex_id, ex_name, group, date)
            sets = []
        sets.append(WorkoutSet(float(weight), int(reps), set_date))
    flush()
    return entries


class WorkoutEntryRepository(BaseRepository):
    """Per-user workout history, newest entry first."""

    def __init__(self, db_path: str = "workout.db", limit: int = HISTORY_LIMIT) -> None:
        super().__init__(db_path)
        self.limit = limit

    def append(self, user_id: str, entry: WorkoutEntry) -> int:
        """Store ``entry`` at the head of the history and enforce the cap."""
        if not entry.sets:
            raise ValueError("entry must contain at least one set")
        with _user_lock(user_id), self._connection() as conn:
            conn.execute("BEGIN IMMEDIATE;")
            cur = conn.execute(
                "INSERT INTO workout_entries (user_id, exercise_id, exercise_name, muscle_group, date) VALUES (?, ?, ?, ?, ?);",
                (
                    user_id,
                    entry.exercise_id,
                    entry.exercise_name,
                    entry.muscle_group,
                    entry.date,
                ),
            )
            entry_id = cur.lastrowid
            conn.executemany(
                "INSERT INTO entry_sets (entry_id, position, weight, reps, date) VALUES (?, ?, ?, ?, ?);",
                [
                    (entry_id, pos, s.weight, s.reps, s.date)
                    for pos, s in enumerate(entry.sets)
                ],
            )
            cur = conn.execute(
                "DELETE FROM workout_entries WHERE user_id = ? AND id NOT IN "
                "(SELECT id FROM workout_entries WHERE user_id = ? ORDER BY id DESC LIMIT ?);",
                (user_id, user_id, self.limit),
            )
            if cur.rowcount > 0:
                logger.debug(
                    "dropped %d old entries for user %s", cur.rowcount, user_id
                )
        logger.info("stored %s session for user %s", entry.exercise_id, user_id)
        return entry_id

    def fetch(self, user_id: str) -> List[WorkoutEntry]:
        return _build_entries(self.fetch_all(_ENTRY_QUERY, (user_id,)))

    def count(self, user_id: str) -> int:
        rows = self.fetch_all(
            "SELECT COUNT(*) FROM workout_entries WHERE user_id = ?;", (user_id,)
        )
        return int(rows[0][0])

    def clear(self, user_id: str) -> None:
        with _user_lock(user_id):
            self.execute("DELETE FROM workout_entries WHERE user_id = ?;", (user_id,))
        logger.info("cleared history for user %s", user_id)


class AsyncWorkoutEntryRepository(AsyncBaseRepository):
    """Async read access to per-user workout history."""

    async def fetch(self, user_id: str) -> List[WorkoutEntry]:
        rows = await self.fetch_all(_ENTRY_QUERY, (user_id,))
        return _build_entries(rows)


class CustomExerciseRepository(BaseRepository):
    """User-defined exercises, namespaced per user."""

    def add(self, user_id: str, exercise: Exercise) -> None:
        try:
            self.execute(
                "INSERT INTO custom_exercises (user_id, id, name, muscle_group, equipment, description, created_at) VALUES (?, ?, ?, ?, ?, ?, ?);",
                (
                    user_id,
                    exercise.id,
                    exercise.name,
                    exercise.muscle_group.value,
                    exercise.equipment,
                    exercise.description,
                    datetime.datetime.now(datetime.timezone.utc).isoformat(),
                ),
            )
        except sqlite3.IntegrityError:
            raise ValueError(f"exercise id already exists: {exercise.id}")

    def exists(self, user_id: str, exercise_id: str) -> bool:
        rows = self.fetch_all(
            "SELECT 1 FROM custom_exercises WHERE user_id = ? AND id = ?;",
            (user_id, exercise_id),
        )
        return bool(rows)

    def fetch(
        self, user_id: str, muscle_group: "MuscleGroup | None" = None
    ) -> List[Exercise]:
        query = "SELECT id, name, muscle_group, equipment, description FROM custom_exercises WHERE user_id = ?"
        params: list[str] = [user_id]
        if muscle_group is not None:
            query += " AND muscle_group = ?"
            params.append(muscle_group.value)
        query += " ORDER BY rowid;"
        return [
            Exercise(ex_id, name, MuscleGroup.parse(group), equipment, description)
            for ex_id, name, group, equipment, description in self.fetch_all(
                query, tuple(params)
            )
        ]


class AccessTokenRepository(BaseRepository):
    """Bearer tokens mapped to user ids."""

    def issue(self, user_id: str, name: str = "default") -> str:
        if not user_id:
            raise ValueError("user_id required")
        token = secrets.token_urlsafe(32)
        self.execute(
            "INSERT INTO access_tokens (token, user_id, name, created_at) VALUES (?, ?, ?, ?);",
            (
                token,
                user_id,
                name,
                datetime.datetime.now(datetime.timezone.utc).isoformat(),
            ),
        )
        logger.info("issued token %r for user %s", name, user_id)
        return token

    def resolve(self, token: str) -> Optional[str]:
        rows = self.fetch_all(
            "SELECT user_id FROM access_tokens WHERE token = ?;", (token,)
        )
        return rows[0][0] if rows else None

    def revoke(self, token: str) -> bool:
        with self._connection() as conn:
            cur = conn.execute("DELETE FROM access_tokens WHERE token = ?;", (token,))
            return cur.rowcount > 0

    def fetch_for_user(self, user_id: str) -> List[Tuple[str, str]]:
        return self.fetch_all(
            "SELECT name, created_at FROM access_tokens WHERE user_id = ? ORDER BY created_at;",
            (user_id,),
        )


_INT_KEYS = {"recent_sessions"}
_READ_ONLY_KEYS = {"app_version"}


def _typed(key: str, value: str) -> int | str:
    if key in _INT_KEYS:
        try:
            return int(float(value))
        except ValueError:
            pass
    return value


class SettingsRepository(BaseRepository):
    """Server-wide default settings synchronized with YAML."""

    def __init__(
        self, db_path: str = "workout.db", yaml_path: str = "settings.yaml"
    ) -> None:
        super().__init__(db_path)
        self._yaml = YamlConfig(yaml_path)
        self._init_settings()
        self._sync_from_yaml()
        self._sync_to_yaml()

    def _init_settings(self) -> None:
        defaults = SettingsSchema().model_dump()
        with self._connection() as conn:
            for key, value in defaults.items():
                conn.execute(
                    "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?);",
                    (key, str(value)),
                )
            conn.execute(
                "UPDATE settings SET value = ? WHERE key = 'app_version';",
                (defaults["app_version"],),
            )

    def _raw_all_settings(self) -> dict:
        rows = self.fetch_all("SELECT key, value FROM settings ORDER BY key;")
        return {k: _typed(k, v) for k, v in rows}

    def _sync_from_yaml(self) -> None:
        data = self._yaml.load()
        if not data:
            return
        validate_settings(data)
        with self._connection() as conn:
            for key, value in data.items():
                if key in _READ_ONLY_KEYS:
                    continue
                conn.execute(
                    "INSERT INTO settings (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
                    (key, str(value)),
                )

    def _sync_to_yaml(self) -> None:
        self._yaml.save(self._raw_all_settings())

    def all_settings(self) -> dict:
        self._sync_from_yaml()
        return self._raw_all_settings()


class UserSettingsRepository(BaseRepository):
    """Per-user overrides layered on top of the server defaults."""

    def __init__(self, db_path: str, defaults: SettingsRepository) -> None:
        super().__init__(db_path)
        self.defaults = defaults

    def all_settings(self, user_id: str) -> dict:
        data = self.defaults.all_settings()
        rows = self.fetch_all(
            "SELECT key, value FROM user_settings WHERE user_id = ? ORDER BY key;",
            (user_id,),
        )
        data.update({k: _typed(k, v) for k, v in rows})
        return data

    def get_text(self, user_id: str, key: str, default: str) -> str:
        return str(self.all_settings(user_id).get(key, default))

    def get_int(self, user_id: str, key: str, default: int) -> int:
        value = self.all_settings(user_id).get(key, default)
        return value if isinstance(value, int) else default

    def update(self, user_id: str, values: dict) -> None:
        """Validate and store overrides of ``user_id``."""
        locked = _READ_ONLY_KEYS & set(values)
        if locked:
            raise ValueError(f"read-only setting: {', '.join(sorted(locked))}")
        validate_settings({**self.all_settings(user_id), **values})
        with self._connection() as conn:
            for key, value in values.items():
                conn.execute(
                    "INSERT INTO user_settings (user_id, key, value) VALUES (?, ?, ?) "
                    "ON CONFLICT(user_id, key) DO UPDATE SET value=excluded.value;",
                    (user_id, key, str(value)),
                )
        logger.info("updated settings %s for user %s", sorted(values), user_id)
