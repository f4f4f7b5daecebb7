"""
Typed structures shared by the pipeline stages.

Raw generator output never reaches these types directly; it goes through
draft_validator.validate_draft first.
"""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple, Union


SCHEMA_VERSION = 1

SOURCE_FRESH = "fresh"
SOURCE_CACHE_HIT = "cache-hit"

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

REP_RANGE_RE = re.compile(r"^\s*(\d+)\s*(?:[-–]\s*(\d+))?\s*$")


def normalize_token(value):
    """Lowercase and collapse separators: 'General Fitness' -> 'general_fitness'."""
    return re.sub(r"[^a-z0-9]+", "_", str(value or "").strip().lower()).strip("_")


def format_reps(reps):
    if isinstance(reps, tuple):
        low, high = reps
        return str(low) if low == high else f"{low}-{high}"
    return str(reps)


def parse_reps(value):
    """Parse an int or 'low-high' string. Returns int, (low, high) or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer():
        return parse_reps(int(value))
    if not isinstance(value, str):
        return None

    match = REP_RANGE_RE.match(value)
    if not match:
        return None
    low = int(match.group(1))
    high = int(match.group(2)) if match.group(2) else low
    if low <= 0 or high < low:
        return None
    return low if low == high else (low, high)


@dataclass
class ExercisePrescription:
    name: str
    sets: int
    reps: Union[int, Tuple[int, int]]
    rpe: Optional[float] = None
    load_text: str = ""
    category: Optional[str] = None
    rest: Optional[str] = None
    tempo: Optional[str] = None
    notes: Optional[str] = None

    @property
    def top_reps(self):
        if isinstance(self.reps, tuple):
            return self.reps[1]
        return self.reps

    def to_dict(self):
        data = {
            "name": self.name,
            "sets": self.sets,
            "reps": format_reps(self.reps),
            "rpe": self.rpe,
            "load_text": self.load_text,
        }
        for key in ("category", "rest", "tempo", "notes"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(
            name=data["name"],
            sets=int(data["sets"]),
            reps=parse_reps(data["reps"]),
            rpe=data.get("rpe"),
            load_text=data.get("load_text") or "",
            category=data.get("category"),
            rest=data.get("rest"),
            tempo=data.get("tempo"),
            notes=data.get("notes"),
        )


@dataclass
class ProgramDay:
    label: str
    exercises: list
    day_of_week: Optional[int] = None
    notes: Optional[str] = None

    @property
    def day_name(self):
        if self.day_of_week and 1 <= self.day_of_week <= 7:
            return DAY_NAMES[self.day_of_week - 1]
        return ""

    @property
    def total_sets(self):
        return sum(exercise.sets for exercise in self.exercises)

    def to_dict(self):
        data = {
            "label": self.label,
            "day_of_week": self.day_of_week,
            "exercises": [exercise.to_dict() for exercise in self.exercises],
        }
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(
            label=data["label"],
            exercises=[ExercisePrescription.from_dict(ex) for ex in data["exercises"]],
            day_of_week=data.get("day_of_week"),
            notes=data.get("notes"),
        )


@dataclass
class TrainingProgramDraft:
    days: list
    program_name: str = ""
    schema_version: int = SCHEMA_VERSION

    @property
    def labels(self):
        return [day.label for day in self.days]

    def iter_exercises(self):
        for day_index, day in enumerate(self.days):
            for exercise_index, exercise in enumerate(day.exercises):
                yield day_index, exercise_index, exercise


@dataclass
class Cohort:
    training_focus: str
    experience_level: str
    days_per_week: Optional[int] = None
    session_minutes: Optional[int] = None

    @property
    def focus_key(self):
        return normalize_token(self.training_focus)

    @property
    def experience_key(self):
        return normalize_token(self.experience_level)


@dataclass
class AdvisoryEntry:
    muscle_group: str
    original_count: int
    final_count: int
    target_range: Tuple[int, int]
    note: str

    def to_dict(self):
        return {
            "muscle_group": self.muscle_group,
            "original_count": self.original_count,
            "final_count": self.final_count,
            "target_range": list(self.target_range),
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data):
        low, high = data["target_range"]
        return cls(
            muscle_group=data["muscle_group"],
            original_count=data["original_count"],
            final_count=data["final_count"],
            target_range=(low, high),
            note=data["note"],
        )


@dataclass
class WeeklyProgram:
    """The harmonized program returned to callers and stored in the cache."""

    draft: TrainingProgramDraft
    advisories: list = field(default_factory=list)
    generated_at: Optional[str] = None

    def to_dict(self):
        return {
            "schema_version": self.draft.schema_version,
            "program_name": self.draft.program_name,
            "generated_at": self.generated_at,
            "days": [day.to_dict() for day in self.draft.days],
            "advisories": [advisory.to_dict() for advisory in self.advisories],
        }

    def to_json(self):
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_dict(cls, data):
        draft = TrainingProgramDraft(
            days=[ProgramDay.from_dict(day) for day in data["days"]],
            program_name=data.get("program_name") or "",
            schema_version=data.get("schema_version") or SCHEMA_VERSION,
        )
        return cls(
            draft=draft,
            advisories=[AdvisoryEntry.from_dict(a) for a in data.get("advisories") or []],
            generated_at=data.get("generated_at"),
        )

    @classmethod
    def from_json(cls, text):
        return cls.from_dict(json.loads(text))


@dataclass
class CachedProgramEntry:
    key: str
    program: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now):
        return self.expires_at <= now


@dataclass
class TrainingProgramRecord:
    id: int
    user_id: str
    created_at: datetime
    source: str
    cache_key: Optional[str]
    program: str


@dataclass
class ProgramRequest:
    user_id: str
    tier_flag: bool
    onboarding_facts: dict
    cohort: Cohort
    personal_records: dict = field(default_factory=dict)
    profile: dict = field(default_factory=dict)
    unit: str = "kg"


@dataclass
class ProgramResult:
    program: WeeklyProgram
    source: str
    cache_key: str
    record_id: int
    notes: list = field(default_factory=list)

    @property
    def advisories(self):
        return self.program.advisories
