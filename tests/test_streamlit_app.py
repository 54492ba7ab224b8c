import os
import sys
import unittest
import warnings
from altair.utils.deprecation import AltairDeprecationWarning

warnings.simplefilter("ignore", AltairDeprecationWarning)

from streamlit.testing.v1 import AppTest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import SettingsRepository, UserSettingsRepository, WorkoutEntryRepository
from models import WorkoutEntry, WorkoutSet

APP_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "streamlit_app.py")


def _find_by_label(elements, label):
    for idx, elem in enumerate(elements):
        if getattr(elem, "label", None) == label:
            return idx
    raise AssertionError(f"Element with label '{label}' not found")


class StreamlitAppTest(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = os.path.abspath("test_gui.db")
        self.yaml_path = os.path.abspath("test_gui_settings.yaml")
        for p in [self.db_path, self.yaml_path]:
            if os.path.exists(p):
                os.remove(p)
        os.environ["DB_PATH"] = self.db_path
        os.environ["YAML_PATH"] = self.yaml_path
        os.environ["FITTRACK_USER"] = "local"
        self.repo = WorkoutEntryRepository(self.db_path)

    def tearDown(self) -> None:
        for p in [self.db_path, self.yaml_path]:
            if os.path.exists(p):
                os.remove(p)

    def _run(self) -> AppTest:
        at = AppTest.from_file(APP_PATH, default_timeout=20)
        at.run(timeout=20)
        self.assertFalse(at.exception)
        return at

    def _seed(self, weight: float, reps: int) -> None:
        ts = "2025-01-01T10:00:00+00:00"
        self.repo.append(
            "local",
            WorkoutEntry(
                "bench-press", "Bench Press", "Chest", (WorkoutSet(weight, reps, ts),), ts
            ),
        )

    def test_empty_state(self) -> None:
        at = self._run()
        infos = [i.value for i in at.info]
        self.assertIn("Start with a comfortable weight", infos)
        self.assertIn("No progress data yet", infos)
        self.assertIn("No workout history yet", infos)

    def test_log_workout(self) -> None:
        at = self._run()
        at.button(key="add_set").click().run()
        self.assertEqual(len(at.session_state.pending_sets), 1)
        at.button(key="complete_workout").click().run()
        self.assertIn("Workout saved", [s.value for s in at.success])
        history = self.repo.fetch("local")
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0].exercise_id, "bench-press")
        self.assertEqual((history[0].sets[0].weight, history[0].sets[0].reps), (20.0, 10))
        self.assertEqual(at.session_state.pending_sets, [])

    def test_remove_pending_set(self) -> None:
        at = self._run()
        at.button(key="add_set").click().run()
        at.button(key="add_set").click().run()
        at.button(key="remove_set_0").click().run()
        self.assertEqual(len(at.session_state.pending_sets), 1)

    def test_complete_without_sets_warns(self) -> None:
        at = self._run()
        at.button(key="complete_workout").click().run()
        self.assertIn(
            "Add at least one set before completing", [w.value for w in at.warning]
        )
        self.assertEqual(self.repo.count("local"), 0)

    def test_use_suggestion(self) -> None:
        self._seed(60.0, 12)
        at = self._run()
        self.assertIn("Increase weight, reduce reps", [i.value for i in at.info])
        at.button(key="use_suggestion").click().run()
        self.assertEqual(at.number_input(key="set_weight").value, 62.5)
        self.assertEqual(at.number_input(key="set_reps").value, 8)

    def test_progress_tab(self) -> None:
        self._seed(60.0, 10)
        self._seed(66.0, 10)
        at = self._run()
        metrics = {m.label: m.value for m in at.metric}
        self.assertEqual(metrics["Max Weight"], "66 kg")
        self.assertEqual(metrics["Workouts"], "2")
        self.assertEqual(metrics["Gain"], "+10.0%")
        headers = [h.value for h in at.subheader]
        self.assertIn("Max Weight Progress", headers)
        self.assertIn("Recent Workouts", headers)
        self.assertIn("Wednesday, January 1, 2025", headers)

    def test_progress_tab_shows_decline(self) -> None:
        self._seed(60.0, 10)
        self._seed(55.0, 10)
        at = self._run()
        metrics = {m.label: m.value for m in at.metric}
        self.assertEqual(metrics["Gain"], "-8.3%")

    def test_uses_dashboard_user_settings(self) -> None:
        settings = UserSettingsRepository(
            self.db_path, SettingsRepository(self.db_path, self.yaml_path)
        )
        settings.update("local", {"weight_unit": "lb"})
        settings.update("someone-else", {"weight_unit": "kg"})
        self._seed(100.0, 10)
        at = self._run()
        metrics = {m.label: m.value for m in at.metric}
        self.assertEqual(metrics["Max Weight"], "220.46 lb")

    def test_clear_history_requires_confirmation(self) -> None:
        self._seed(60.0, 10)
        at = self._run()
        at.button(key="clear_history").click().run()
        self.assertIn("Tick the confirmation box first", [w.value for w in at.warning])
        self.assertEqual(self.repo.count("local"), 1)
        at.checkbox(key="confirm_clear").check().run()
        at.button(key="clear_history").click().run()
        self.assertEqual(self.repo.count("local"), 0)
        self.assertIn("No workout history yet", [i.value for i in at.info])

    def test_add_custom_exercise(self) -> None:
        at = self._run()
        idx = _find_by_label(at.text_input, "Name")
        at.text_input[idx].input("Svend Press")
        idx = _find_by_label(at.button, "Add Exercise")
        at.button[idx].click().run()
        self.assertIn("Added Svend Press", [s.value for s in at.success])
        at.text_input(key="exercise_query").input("svend").run()
        options = at.selectbox(key="exercise_Chest").options
        self.assertEqual(len(options), 1)


if __name__ == "__main__":
    unittest.main()
