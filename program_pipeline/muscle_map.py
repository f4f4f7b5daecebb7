"""
Exercise name -> muscle group lookup used for weekly volume tallies.

Names are normalized before matching. Names the table cannot resolve map to
no muscles; callers skip them.
"""

import os
import re

import yaml

from program_pipeline.errors import ConfigurationError


MUSCLE_GROUPS = [
    "chest",
    "back",
    "delts_front",
    "delts_side",
    "delts_rear",
    "biceps",
    "triceps",
    "quads",
    "hamstrings",
    "glutes",
    "calves",
]

# First match wins, so specific patterns sit above the generic ones they
# would otherwise lose to ("leg curl" before "curl", "split squat" before
# "squat").
DEFAULT_MUSCLE_TABLE = [
    # Legs
    (r"\b(?:romanian deadlift|stiff leg deadlift|good morning)\b", ["hamstrings", "glutes"]),
    (r"\bdeadlift\b", ["hamstrings", "glutes", "back"]),
    (r"\b(?:split squat|lunge|step up)\b", ["quads", "glutes"]),
    (r"\bleg press\b", ["quads", "glutes"]),
    (r"\bleg extension\b", ["quads"]),
    (r"\b(?:leg curl|hamstring curl|nordic)\b", ["hamstrings"]),
    (r"\b(?:hip thrust|glute bridge)\b", ["glutes"]),
    (r"\bcalf raise\b", ["calves"]),
    (r"\bsquat\b", ["quads", "glutes"]),
    # Push
    (r"\b(?:tricep|triceps|pushdown|pressdown|skull ?crusher)\b", ["triceps"]),
    (r"\b(?:incline (?:bench|dumbbell|press)|incline press)\b", ["chest", "delts_front"]),
    (r"\b(?:bench press|bench|chest press|floor press)\b", ["chest"]),
    (r"\b(?:overhead press|military press|shoulder press|push press|standing press)\b", ["delts_front"]),
    (r"\b(?:rear delt|reverse fly|reverse pec deck)\b", ["delts_rear"]),
    (r"\b(?:lateral raise|side raise|upright row)\b", ["delts_side"]),
    (r"\bfront raise\b", ["delts_front"]),
    (r"\b(?:fly|flye|pec deck|crossover)\b", ["chest"]),
    (r"\bdip\b", ["chest", "triceps"]),
    (r"\bpush up\b", ["chest"]),
    # Pull
    (r"\bface pull\b", ["delts_rear"]),
    (r"\b(?:pull up|chin up|pulldown|pull down)\b", ["back"]),
    (r"\brow\b", ["back"]),
    (r"\bpullover\b", ["back"]),
    (r"\bcurl\b", ["biceps"]),
]


class ExerciseMuscleMap:
    """Resolve exercise names to the muscle groups they train."""

    def __init__(self, normalizer, table=None, overrides=None):
        self.normalizer = normalizer
        self._table = [
            (re.compile(pattern), tuple(muscles))
            for pattern, muscles in (table if table is not None else DEFAULT_MUSCLE_TABLE)
        ]
        self._overrides = {}
        for name, muscles in (overrides or {}).items():
            self._overrides[self.normalizer.match_key(name)] = tuple(muscles or [])

    @classmethod
    def from_yaml(cls, normalizer, path):
        """
        Build the map with exact-name overrides from a YAML file:

            exercise_muscles:
              Landmine Press: [chest, delts_front]
              Reverse Hyper: [glutes, hamstrings]
        """
        if not path:
            return cls(normalizer)
        if not os.path.exists(path):
            raise ConfigurationError(f"Muscle map file not found: {path}")
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Could not read muscle map file {path}: {exc}") from exc

        overrides = data.get("exercise_muscles") if isinstance(data, dict) else None
        if not isinstance(overrides, dict):
            raise ConfigurationError(f"{path} must define an exercise_muscles mapping")
        unknown = sorted(
            {muscle for muscles in overrides.values() for muscle in (muscles or [])}
            - set(MUSCLE_GROUPS)
        )
        if unknown:
            raise ConfigurationError(f"Unknown muscle groups in {path}: {', '.join(unknown)}")
        return cls(normalizer, overrides=overrides)

    def resolve(self, exercise_name):
        """Return the muscle groups for an exercise, or () when unresolved."""
        key = self.normalizer.match_key(exercise_name)
        if not key:
            return ()
        if key in self._overrides:
            return self._overrides[key]
        for pattern, muscles in self._table:
            if pattern.search(key):
                return muscles
        return ()
