from types import MappingProxyType

from models import Exercise, MuscleGroup


def _ex(
    ex_id: str, name: str, group: MuscleGroup, equipment: str, description: str
) -> Exercise:
    return Exercise(ex_id, name, group, equipment, description)


_CATALOG = {
    MuscleGroup.CHEST: (
        _ex("bench-press", "Bench Press", MuscleGroup.CHEST, "Barbell",
            "Lie on a flat bench and press the bar from chest to lockout."),
        _ex("incline-dumbbell-press", "Incline Dumbbell Press", MuscleGroup.CHEST, "Dumbbells",
            "Press dumbbells on a bench set to 30-45 degrees."),
        _ex("cable-fly", "Cable Fly", MuscleGroup.CHEST, "Cable Machine",
            "Bring the handles together in a wide arc in front of the chest."),
        _ex("push-up", "Push-Up", MuscleGroup.CHEST, "Bodyweight",
            "Lower the chest to the floor keeping the body in a straight line."),
    ),
    MuscleGroup.BACK: (
        _ex("deadlift", "Deadlift", MuscleGroup.BACK, "Barbell",
            "Lift the bar from the floor to hip height with a neutral spine."),
        _ex("pull-up", "Pull-Up", MuscleGroup.BACK, "Pull-Up Bar",
            "Hang from the bar and pull the chin above it."),
        _ex("barbell-row", "Barbell Row", MuscleGroup.BACK, "Barbell",
            "Hinge forward and row the bar to the lower ribs."),
        _ex("lat-pulldown", "Lat Pulldown", MuscleGroup.BACK, "Cable Machine",
            "Pull the bar down to the upper chest."),
    ),
    MuscleGroup.SHOULDERS: (
        _ex("overhead-press", "Overhead Press", MuscleGroup.SHOULDERS, "Barbell",
            "Press the bar from the shoulders to overhead lockout."),
        _ex("lateral-raise", "Lateral Raise", MuscleGroup.SHOULDERS, "Dumbbells",
            "Raise the dumbbells out to the sides up to shoulder height."),
        _ex("face-pull", "Face Pull", MuscleGroup.SHOULDERS, "Cable Machine",
            "Pull the rope towards the face with elbows high."),
    ),
    MuscleGroup.ARMS: (
        _ex("barbell-curl", "Barbell Curl", MuscleGroup.ARMS, "Barbell",
            "Curl the bar up while keeping the elbows at the sides."),
        _ex("hammer-curl", "Hammer Curl", MuscleGroup.ARMS, "Dumbbells",
            "Curl the dumbbells with a neutral grip."),
        _ex("triceps-pushdown", "Triceps Pushdown", MuscleGroup.ARMS, "Cable Machine",
            "Push the bar down until the elbows are fully extended."),
        _ex("skull-crusher", "Skull Crusher", MuscleGroup.ARMS, "EZ Bar",
            "Lower the bar towards the forehead and extend the elbows."),
    ),
    MuscleGroup.LEGS: (
        _ex("back-squat", "Back Squat", MuscleGroup.LEGS, "Barbell",
            "Squat below parallel with the bar on the upper back."),
        _ex("leg-press", "Leg Press", MuscleGroup.LEGS, "Leg Press Machine",
            "Press the sled away until the knees are almost straight."),
        _ex("romanian-deadlift", "Romanian Deadlift", MuscleGroup.LEGS, "Barbell",
            "Hinge at the hips with soft knees and lower the bar along the legs."),
        _ex("walking-lunge", "Walking Lunge", MuscleGroup.LEGS, "Dumbbells",
            "Step forward into a lunge and alternate legs."),
    ),
    MuscleGroup.CORE: (
        _ex("plank", "Plank", MuscleGroup.CORE, "Bodyweight",
            "Hold a straight line from head to heels on the forearms."),
        _ex("hanging-leg-raise", "Hanging Leg Raise", MuscleGroup.CORE, "Pull-Up Bar",
            "Raise the legs to hip height while hanging from the bar."),
        _ex("cable-crunch", "Cable Crunch", MuscleGroup.CORE, "Cable Machine",
            "Kneel and crunch the rope towards the floor."),
    ),
}

BUILTIN_CATALOG = MappingProxyType(_CATALOG)
BUILTIN_IDS = frozenset(ex.id for group in _CATALOG.values() for ex in group)


def builtin_for(group: "str | MuscleGroup") -> tuple[Exercise, ...]:
    """Return the built-in exercises for ``group``."""
    return BUILTIN_CATALOG[MuscleGroup.parse(group)]


def is_builtin(exercise_id: str) -> bool:
    return exercise_id in BUILTIN_IDS
