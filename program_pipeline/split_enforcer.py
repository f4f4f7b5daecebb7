"""
Deterministic day-label rules for validated drafts.

One cohort (hypertrophy / advanced / 6 days) always gets the Push-Pull-Legs
x2 template. Every other cohort keeps its day order and count, and each free
text label is mapped onto the canonical tag vocabulary.
"""

import copy
import logging
import re
from collections import Counter


logger = logging.getLogger(__name__)

PPL_TEMPLATE = ["Push", "Pull", "Legs", "Push", "Pull", "Legs"]

CANONICAL_TAGS = [
    "Push",
    "Pull",
    "Legs",
    "Upper Body",
    "Lower Body",
    "Full Body",
    "Strength",
    "Arms",
    "Back",
    "Chest",
    "Shoulders",
    "Glutes",
    "Core",
    "Cardio",
    "Recovery/Mobility",
    "Rest Day",
]

# Whole-label synonyms (normalized text -> tag).
LABEL_SYNONYMS = {
    "push day": "Push",
    "chest and triceps": "Push",
    "chest shoulders triceps": "Push",
    "chest shoulders and triceps": "Push",
    "pull day": "Pull",
    "back and biceps": "Pull",
    "back biceps": "Pull",
    "leg day": "Legs",
    "leg": "Legs",
    "quads and hamstrings": "Legs",
    "upper": "Upper Body",
    "lower": "Lower Body",
    "full": "Full Body",
    "total body": "Full Body",
    "whole body": "Full Body",
    "arm day": "Arms",
    "biceps and triceps": "Arms",
    "shoulder day": "Shoulders",
    "delts": "Shoulders",
    "abs": "Core",
    "conditioning": "Cardio",
    "hiit": "Cardio",
    "mobility": "Recovery/Mobility",
    "recovery": "Recovery/Mobility",
    "active recovery": "Recovery/Mobility",
    "rest": "Rest Day",
    "off": "Rest Day",
}

# Keyword -> candidate tag, for labels that are neither a tag nor a synonym.
KEYWORD_TAGS = [
    (re.compile(r"\bpush\b"), "Push"),
    (re.compile(r"\bpull\b"), "Pull"),
    (re.compile(r"\b(?:legs?|lower|quads?|hamstrings?|squat|deadlift)\b"), "Legs"),
    (re.compile(r"\bupper\b"), "Upper Body"),
    (re.compile(r"\b(?:full|total)\b"), "Full Body"),
    (re.compile(r"\b(?:strength|power|heavy|max)\b"), "Strength"),
    (re.compile(r"\b(?:arms?|biceps|triceps)\b"), "Arms"),
    (re.compile(r"\bchest\b"), "Chest"),
    (re.compile(r"\bback\b"), "Back"),
    (re.compile(r"\b(?:shoulders?|delts?)\b"), "Shoulders"),
    (re.compile(r"\bglutes?\b"), "Glutes"),
    (re.compile(r"\b(?:core|abs)\b"), "Core"),
    (re.compile(r"\b(?:cardio|conditioning|endurance)\b"), "Cardio"),
    (re.compile(r"\b(?:mobility|recovery)\b"), "Recovery/Mobility"),
]

PUSH_MUSCLES = {"chest", "delts_front", "delts_side", "triceps"}
PULL_MUSCLES = {"back", "biceps", "delts_rear"}
LEG_MUSCLES = {"quads", "hamstrings", "glutes", "calves"}

STRENGTH_FOCI = {"strength", "powerlifting"}


def _normalize_label(label):
    text = (label or "").lower().replace("&", " and ")
    return re.sub(r"[^a-z0-9/]+", " ", text).strip()


def is_ppl_cohort(cohort):
    return (
        cohort.focus_key == "hypertrophy"
        and cohort.experience_key == "advanced"
        and cohort.days_per_week == 6
    )


def classify_day_content(day, muscle_map):
    """Pick a body-part tag from the muscles a day's exercises train."""
    weights = Counter()
    for exercise in day.exercises:
        for muscle in muscle_map.resolve(exercise.name):
            weights[muscle] += exercise.sets

    push = sum(weights[m] for m in PUSH_MUSCLES)
    pull = sum(weights[m] for m in PULL_MUSCLES)
    legs = sum(weights[m] for m in LEG_MUSCLES)
    total = push + pull + legs
    if total == 0:
        return None

    if legs >= 0.7 * total:
        return "Legs"
    if legs >= 0.3 * total:
        return "Full Body"
    if push >= 0.7 * total:
        return "Push"
    if pull >= 0.7 * total:
        return "Pull"
    return "Upper Body"


def canonical_label(label, day, cohort, muscle_map):
    """Resolve a free-text label to one canonical tag. Never returns raw text."""
    normalized = _normalize_label(label)

    for tag in CANONICAL_TAGS:
        if normalized == _normalize_label(tag) and (tag != "Strength" or cohort.focus_key in STRENGTH_FOCI):
            return tag
    if normalized in LABEL_SYNONYMS:
        return LABEL_SYNONYMS[normalized]

    candidates = []
    for pattern, tag in KEYWORD_TAGS:
        if pattern.search(normalized) and tag not in candidates:
            candidates.append(tag)

    if "Strength" in candidates and cohort.focus_key in STRENGTH_FOCI:
        return "Strength"
    body_candidates = [tag for tag in candidates if tag != "Strength"]

    if len(body_candidates) == 1:
        return body_candidates[0]

    # Ambiguous or unknown label: let the exercises decide.
    content_tag = classify_day_content(day, muscle_map)
    if content_tag:
        return content_tag
    if body_candidates:
        return body_candidates[0]
    if candidates:
        return candidates[0]
    return "Full Body"


def _apply_ppl_template(days, notes):
    if len(days) > len(PPL_TEMPLATE):
        notes.append(f"Trimmed extra days from {len(days)} to {len(PPL_TEMPLATE)} for the Push/Pull/Legs template")
        days = days[: len(PPL_TEMPLATE)]

    while days and len(days) < len(PPL_TEMPLATE):
        filler = copy.deepcopy(days[-1])
        days.append(filler)
        notes.append(f"Copied the last day to fill day {len(days)} of the Push/Pull/Legs template")

    for index, day in enumerate(days):
        focus = PPL_TEMPLATE[index]
        if day.label != focus:
            notes.append(f'Renamed focus "{day.label}" -> "{focus}" on day {index + 1}')
        day.label = focus
        day.day_of_week = index + 1
    return days


def enforce_split(draft, cohort, muscle_map):
    """
    Apply the split rules to a validated draft.

    Returns:
        Tuple[TrainingProgramDraft, List[str]] => (new draft, correction notes)
    """
    result = copy.deepcopy(draft)
    notes = []

    if is_ppl_cohort(cohort):
        result.days = _apply_ppl_template(result.days, notes)
    else:
        for index, day in enumerate(result.days):
            tag = canonical_label(day.label, day, cohort, muscle_map)
            if tag != day.label:
                notes.append(f'Relabeled focus "{day.label}" -> "{tag}" on day {index + 1}')
                day.label = tag

    for note in notes:
        logger.debug(note)
    return result, notes
