import datetime
import os
import warnings
from zoneinfo import ZoneInfo

import altair as alt
import pandas as pd
import streamlit as st
from altair.utils.deprecation import AltairDeprecationWarning

warnings.filterwarnings("ignore", category=AltairDeprecationWarning)
from db import (
    WorkoutEntryRepository,
    CustomExerciseRepository,
    SettingsRepository,
    UserSettingsRepository,
)
from algorithms import WeightConverter
from catalog_service import CatalogService
from models import WorkoutEntry, WorkoutSet, parse_timestamp, utc_now
from progress_service import ProgressService


class FitTrackApp:
    """Streamlit dashboard for logging sessions and tracking progress."""

    def __init__(
        self,
        db_path: str = "workout.db",
        yaml_path: str = "settings.yaml",
        user_id: str = "local",
    ) -> None:
        self._configure_page()
        self.user_id = user_id
        self.settings_repo = UserSettingsRepository(
            db_path, SettingsRepository(db_path, yaml_path)
        )
        settings = self.settings_repo.all_settings(user_id)
        self.weight_unit = settings["weight_unit"]
        self.timezone = settings["timezone"]
        self.recent_count = settings["recent_sessions"]
        self.entries = WorkoutEntryRepository(db_path)
        self.catalog = CatalogService(CustomExerciseRepository(db_path))
        self.progress = ProgressService(self.entries)
        self._state_init()

    def _configure_page(self) -> None:
        if st.session_state.get("layout_set"):
            return
        st.set_page_config(page_title="FitTrack", layout="centered")
        st.session_state.layout_set = True

    def _state_init(self) -> None:
        if "pending_sets" not in st.session_state:
            st.session_state.pending_sets = []
        if "set_weight" not in st.session_state:
            st.session_state.set_weight = WeightConverter.to_unit(20.0, self.weight_unit)
        if "set_reps" not in st.session_state:
            st.session_state.set_reps = 10

    def _format_weight(self, weight: float) -> str:
        """Return weight formatted according to user settings."""
        return WeightConverter.format(weight, self.weight_unit)

    @staticmethod
    def _format_gain(percent: float) -> str:
        return f"+{percent}%" if percent >= 0 else f"{percent}%"

    def _local(self, ts: str) -> datetime.datetime:
        return parse_timestamp(ts).astimezone(ZoneInfo(self.timezone))

    def _format_time(self, ts: str) -> str:
        return f"{self._local(ts):%I:%M %p}".lstrip("0")

    def _line_chart(
        self,
        data: dict[str, list],
        x: list,
        *,
        x_label: str = "x",
        y_label: str = "value",
    ) -> None:
        """Render a consistent line chart with accessible labels."""
        df = pd.DataFrame({"x": x})
        for key, values in data.items():
            df[key] = values
        long_df = df.melt("x", var_name="series", value_name="value")
        chart = (
            alt.Chart(long_df)
            .mark_line(point=True)
            .encode(
                x=alt.X("x", title=x_label),
                y=alt.Y("value", title=y_label),
                color=alt.Color(
                    "series",
                    scale=alt.Scale(scheme="dark2"),
                    legend=None if len(data) == 1 else alt.Legend(title="Series"),
                ),
            )
        )
        st.altair_chart(chart, use_container_width=True)

    def _use_suggestion(self, weight: float, reps: int) -> None:
        st.session_state.set_weight = WeightConverter.to_unit(weight, self.weight_unit)
        st.session_state.set_reps = reps

    def _add_set(self) -> None:
        weight = WeightConverter.from_unit(
            float(st.session_state.set_weight), self.weight_unit
        )
        st.session_state.pending_sets.append(
            {"weight": weight, "reps": int(st.session_state.set_reps), "date": utc_now()}
        )

    def _remove_set(self, index: int) -> None:
        st.session_state.pending_sets.pop(index)

    def _workout_tab(self) -> None:
        group = st.selectbox(
            "Muscle Group", self.catalog.muscle_groups(), key="muscle_group"
        )
        query = st.text_input("Search exercises", key="exercise_query")
        exercises = self.catalog.exercises_for(self.user_id, group, query)
        with st.expander("Add Custom Exercise"):
            with st.form("custom_exercise_form", clear_on_submit=True):
                name = st.text_input("Name")
                equipment = st.text_input("Equipment")
                description = st.text_area("Description")
                if st.form_submit_button("Add Exercise"):
                    try:
                        ex = self.catalog.add_custom(
                            self.user_id, name, group, equipment, description or None
                        )
                        st.success(f"Added {ex.name}")
                        exercises = self.catalog.exercises_for(
                            self.user_id, group, query
                        )
                    except ValueError as e:
                        st.error(str(e))
        if not exercises:
            st.info("No exercises found")
            return
        by_id = {ex.id: ex for ex in exercises}
        ex_id = st.selectbox(
            "Exercise",
            list(by_id),
            format_func=lambda i: by_id[i].name,
            key=f"exercise_{group}",
        )
        exercise = by_id[ex_id]
        if exercise.description:
            st.caption(exercise.description)

        suggestion = self.progress.suggest_next(self.user_id, exercise.id)
        st.info(suggestion.message)
        cols = st.columns(3)
        cols[0].metric("Suggested Weight", self._format_weight(suggestion.weight))
        cols[1].metric("Suggested Reps", suggestion.reps)
        cols[2].button(
            "Use suggestion",
            key="use_suggestion",
            on_click=self._use_suggestion,
            args=(suggestion.weight, suggestion.reps),
        )

        st.number_input(
            f"Weight ({self.weight_unit})", min_value=0.5, step=2.5, key="set_weight"
        )
        st.number_input("Reps", min_value=1, step=1, key="set_reps")
        st.button("Add Set", key="add_set", on_click=self._add_set)

        for idx, s in enumerate(st.session_state.pending_sets):
            row = st.columns([4, 1])
            row[0].write(f"Set {idx + 1}: {self._format_weight(s['weight'])} × {s['reps']}")
            row[1].button(
                "Remove",
                key=f"remove_set_{idx}",
                on_click=self._remove_set,
                args=(idx,),
            )

        if st.button("Complete Workout", key="complete_workout"):
            pending = st.session_state.pending_sets
            if not pending:
                st.warning("Add at least one set before completing")
                return
            entry = WorkoutEntry(
                exercise.id,
                exercise.name,
                exercise.muscle_group.value,
                tuple(WorkoutSet(s["weight"], s["reps"], s["date"]) for s in pending),
                utc_now(),
            )
            self.progress.log_session(self.user_id, entry)
            st.session_state.pending_sets = []
            st.success("Workout saved")

    def _progress_tab(self) -> None:
        exercises = self.progress.exercises(self.user_id)
        if not exercises:
            st.info("No progress data yet")
            st.caption("Complete workouts to see your progress")
            return
        names = {e["id"]: e["name"] for e in exercises}
        ex_id = st.selectbox(
            "Exercise",
            list(names),
            format_func=lambda i: names[i],
            key="progress_exercise",
        )
        overview = self.progress.overview(self.user_id, ex_id, self.recent_count)
        stats = overview["stats"]
        cols = st.columns(3)
        cols[0].metric("Max Weight", self._format_weight(stats["currentMax"]))
        cols[1].metric("Workouts", stats["totalSessions"])
        cols[2].metric("Gain", self._format_gain(stats["improvementPercent"]))

        series = overview["series"]
        x = [p["index"] for p in series]
        st.subheader("Max Weight Progress")
        self._line_chart(
            {
                "Max Weight": [
                    WeightConverter.to_unit(p["maxWeight"], self.weight_unit)
                    for p in series
                ]
            },
            x,
            x_label="Workout",
            y_label=f"Weight ({self.weight_unit})",
        )
        st.subheader("Volume Progress")
        self._line_chart(
            {
                "Volume": [
                    WeightConverter.to_unit(p["volumeTotal"], self.weight_unit)
                    for p in series
                ]
            },
            x,
            x_label="Workout",
            y_label=f"Volume ({self.weight_unit})",
        )

        st.subheader("Recent Workouts")
        for session in overview["recent"]:
            day = f"{self._local(session['date']):%b} {self._local(session['date']).day}"
            sets = ", ".join(
                f"{self._format_weight(s['weight'])} × {s['reps']}"
                for s in session["sets"]
            )
            st.write(
                f"**{day}** · max {self._format_weight(session['maxWeight'])} · {sets}"
            )

    def _history_tab(self) -> None:
        groups = self.progress.grouped_history(self.user_id, self.timezone)
        if not groups:
            st.info("No workout history yet")
            return
        confirm = st.checkbox("Confirm clearing all history", key="confirm_clear")
        if st.button("Clear All", key="clear_history"):
            if not confirm:
                st.warning("Tick the confirmation box first")
            else:
                self.progress.clear(self.user_id)
                st.rerun()
        for day, entries in groups.items():
            st.subheader(day)
            for entry in entries:
                sets = ", ".join(
                    f"{self._format_weight(s.weight)} × {s.reps}" for s in entry.sets
                )
                st.markdown(
                    f"**{entry.exercise_name}** · {self._format_time(entry.date)}  \n{sets}"
                )

    def run(self) -> None:
        st.title("FitTrack")
        workout_tab, progress_tab, history_tab = st.tabs(
            ["Workout", "Progress", "History"]
        )
        with workout_tab:
            self._workout_tab()
        with progress_tab:
            self._progress_tab()
        with history_tab:
            self._history_tab()


if __name__ == "__main__":
    FitTrackApp(
        db_path=os.environ.get("DB_PATH", "workout.db"),
        yaml_path=os.environ.get("YAML_PATH", "settings.yaml"),
        user_id=os.environ.get("FITTRACK_USER", "local"),
    ).run()
