import os
import sys
import threading
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import (
    HISTORY_LIMIT,
    AccessTokenRepository,
    CustomExerciseRepository,
    SettingsRepository,
    UserSettingsRepository,
    WorkoutEntryRepository,
)
from config import APP_VERSION
from models import Exercise, MuscleGroup, WorkoutEntry, WorkoutSet


def _entry(n: int, ex_id: str = "bench") -> WorkoutEntry:
    date = f"2025-01-01T10:00:{n % 60:02d}+00:00"
    return WorkoutEntry(
        ex_id,
        "Bench Press",
        "Chest",
        (WorkoutSet(20.0 + n, 8, date), WorkoutSet(20.0, 10, date)),
        date,
    )


class WorkoutEntryRepositoryTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_entries.db"
        if os.path.exists(self.db_path):
            os.remove(self.db_path)
        self.repo = WorkoutEntryRepository(self.db_path)

    def tearDown(self) -> None:
        if os.path.exists(self.db_path):
            os.remove(self.db_path)

    def test_append_prepends_and_keeps_sets(self) -> None:
        self.repo.append("alice", _entry(1))
        self.repo.append("alice", _entry(2, "squat"))
        history = self.repo.fetch("alice")
        self.assertEqual([e.exercise_id for e in history], ["squat", "bench"])
        self.assertEqual(history[1], _entry(1))
        self.assertEqual([s.weight for s in history[1].sets], [21.0, 20.0])

    def test_users_are_isolated(self) -> None:
        self.repo.append("alice", _entry(1))
        self.assertEqual(self.repo.fetch("bob"), [])
        self.repo.clear("bob")
        self.assertEqual(self.repo.count("alice"), 1)

    def test_clear(self) -> None:
        self.repo.append("alice", _entry(1))
        self.repo.append("alice", _entry(2))
        self.repo.clear("alice")
        self.assertEqual(self.repo.fetch("alice"), [])
        rows = self.repo.fetch_all("SELECT COUNT(*) FROM entry_sets;")
        self.assertEqual(rows[0][0], 0)

    def test_empty_entry_rejected(self) -> None:
        empty = WorkoutEntry("bench", "Bench", "Chest", (), "2025-01-01T10:00:00Z")
        with self.assertRaises(ValueError):
            self.repo.append("alice", empty)

    def test_cap_drops_oldest(self) -> None:
        self.assertEqual(HISTORY_LIMIT, 1000)
        repo = WorkoutEntryRepository(self.db_path, limit=5)
        for n in range(6):
            repo.append("alice", _entry(n))
        history = repo.fetch("alice")
        self.assertEqual(len(history), 5)
        self.assertEqual([e.sets[0].weight for e in history], [25.0, 24.0, 23.0, 22.0, 21.0])
        rows = repo.fetch_all("SELECT COUNT(*) FROM entry_sets;")
        self.assertEqual(rows[0][0], 10)

    def test_1001st_entry_drops_oldest(self) -> None:
        for n in range(HISTORY_LIMIT + 1):
            self.repo.append("alice", _entry(n))
        history = self.repo.fetch("alice")
        self.assertEqual(len(history), HISTORY_LIMIT)
        self.assertEqual(history[0].sets[0].weight, 20.0 + HISTORY_LIMIT)
        self.assertEqual(history[-1].sets[0].weight, 21.0)

    def test_concurrent_appends_are_not_lost(self) -> None:
        def worker(offset: int) -> None:
            for n in range(10):
                self.repo.append("alice", _entry(offset + n))

        threads = [threading.Thread(target=worker, args=(i * 10,)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(self.repo.count("alice"), 40)


class CustomExerciseRepositoryTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_custom.db"
        if os.path.exists(self.db_path):
            os.remove(self.db_path)
        self.repo = CustomExerciseRepository(self.db_path)

    def tearDown(self) -> None:
        if os.path.exists(self.db_path):
            os.remove(self.db_path)

    def test_add_fetch_namespaced(self) -> None:
        ex = Exercise("custom-1", "Cable Curl", MuscleGroup.ARMS, "Cable", None)
        self.repo.add("alice", ex)
        self.repo.add("bob", ex)
        self.assertEqual(self.repo.fetch("alice"), [ex])
        self.assertEqual(self.repo.fetch("alice", MuscleGroup.ARMS), [ex])
        self.assertEqual(self.repo.fetch("alice", MuscleGroup.LEGS), [])
        self.assertTrue(self.repo.exists("bob", "custom-1"))
        self.assertFalse(self.repo.exists("carol", "custom-1"))

    def test_duplicate_id_rejected(self) -> None:
        ex = Exercise("custom-1", "Cable Curl", MuscleGroup.ARMS, "Cable")
        self.repo.add("alice", ex)
        with self.assertRaises(ValueError):
            self.repo.add("alice", ex)


class AccessTokenRepositoryTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_tokens.db"
        if os.path.exists(self.db_path):
            os.remove(self.db_path)
        self.repo = AccessTokenRepository(self.db_path)

    def tearDown(self) -> None:
        if os.path.exists(self.db_path):
            os.remove(self.db_path)

    def test_issue_resolve_revoke(self) -> None:
        token = self.repo.issue("alice", "phone")
        self.assertEqual(self.repo.resolve(token), "alice")
        self.assertIsNone(self.repo.resolve("nope"))
        self.assertEqual([r[0] for r in self.repo.fetch_for_user("alice")], ["phone"])
        self.assertTrue(self.repo.revoke(token))
        self.assertFalse(self.repo.revoke(token))
        self.assertIsNone(self.repo.resolve(token))

    def test_user_required(self) -> None:
        with self.assertRaises(ValueError):
            self.repo.issue("")


class SettingsRepositoryTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_settings.db"
        self.yaml_path = "test_settings.yaml"
        for p in [self.db_path, self.yaml_path]:
            if os.path.exists(p):
                os.remove(p)

    def tearDown(self) -> None:
        for p in [self.db_path, self.yaml_path]:
            if os.path.exists(p):
                os.remove(p)

    def test_defaults_and_yaml_sync(self) -> None:
        repo = SettingsRepository(self.db_path, self.yaml_path)
        self.assertEqual(repo.all_settings()["timezone"], "UTC")
        self.assertEqual(repo.all_settings()["recent_sessions"], 5)
        self.assertTrue(os.path.exists(self.yaml_path))
        with open(self.yaml_path, "w", encoding="utf-8") as f:
            f.write("timezone: Europe/Berlin\nweight_unit: lb\nrecent_sessions: 3\n")
        settings = repo.all_settings()
        self.assertEqual(settings["timezone"], "Europe/Berlin")
        self.assertEqual(settings["recent_sessions"], 3)

    def test_yaml_cannot_change_app_version(self) -> None:
        repo = SettingsRepository(self.db_path, self.yaml_path)
        with open(self.yaml_path, "w", encoding="utf-8") as f:
            f.write("app_version: 0.0.1\n")
        self.assertEqual(repo.all_settings()["app_version"], APP_VERSION)

    def test_unknown_yaml_key_rejected(self) -> None:
        repo = SettingsRepository(self.db_path, self.yaml_path)
        with open(self.yaml_path, "w", encoding="utf-8") as f:
            f.write("junk: 1\n")
        with self.assertRaises(ValueError):
            repo.all_settings()


class UserSettingsRepositoryTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_user_settings.db"
        self.yaml_path = "test_user_settings.yaml"
        for p in [self.db_path, self.yaml_path]:
            if os.path.exists(p):
                os.remove(p)
        self.repo = UserSettingsRepository(
            self.db_path, SettingsRepository(self.db_path, self.yaml_path)
        )

    def tearDown(self) -> None:
        for p in [self.db_path, self.yaml_path]:
            if os.path.exists(p):
                os.remove(p)

    def test_overrides_are_per_user(self) -> None:
        self.repo.update("alice", {"weight_unit": "lb", "recent_sessions": 3})
        self.assertEqual(self.repo.get_text("alice", "weight_unit", "kg"), "lb")
        self.assertEqual(self.repo.get_int("alice", "recent_sessions", 5), 3)
        self.assertEqual(self.repo.get_text("bob", "weight_unit", "kg"), "kg")
        self.assertEqual(self.repo.get_int("bob", "recent_sessions", 0), 5)

    def test_update_validates(self) -> None:
        with self.assertRaises(ValueError):
            self.repo.update("alice", {"timezone": "Mars/Olympus"})
        with self.assertRaises(ValueError):
            self.repo.update("alice", {"recent_sessions": 0})
        with self.assertRaises(ValueError):
            self.repo.update("alice", {"favorite_color": "red"})
        with self.assertRaises(ValueError):
            self.repo.update("alice", {"app_version": "2.0"})
        self.assertEqual(
            self.repo.all_settings("alice"), self.repo.all_settings("bob")
        )


if __name__ == "__main__":
    unittest.main()
