"""
Deterministic load suggestions derived from personal records.

Major barbell lifts with a known 1RM get an absolute working weight appended
to their load text, e.g. "185x5" -> "185x5 | ~120 kg (85% 1RM)".
"""

import copy
import math


# %1RM by prescribed RPE (reps-independent chart).
RPE_PERCENT_TABLE = {
    5.0: 70,
    5.5: 72,
    6.0: 75,
    6.5: 77,
    7.0: 80,
    7.5: 82,
    8.0: 85,
    8.5: 87,
    9.0: 90,
    9.5: 92,
    10.0: 95,
}

# %1RM by prescribed reps, used when no RPE is given.
REP_PERCENT_TABLE = {
    1: 100,
    2: 95,
    3: 93,
    4: 90,
    5: 87,
    6: 85,
    7: 83,
    8: 80,
    9: 77,
    10: 75,
    11: 72,
    12: 70,
    15: 65,
    20: 60,
}

LOAD_INCREMENT = 2.5
SUGGESTION_MARKER = "% 1RM)"


def format_load(value):
    """Format load values while preserving meaningful decimal precision."""
    if value is None:
        return ""

    if abs(value - round(value)) < 1e-9:
        return str(int(round(value)))

    return f"{value:.3f}".rstrip("0").rstrip(".")


def round_to_increment(value, increment=LOAD_INCREMENT):
    """Round half-up to the nearest increment (119 -> 120, 121.25 -> 122.5)."""
    return math.floor(value / increment + 0.5) * increment


def percent_from_rpe(rpe):
    if rpe is None:
        return None
    snapped = round_to_increment(float(rpe), 0.5)
    snapped = min(max(snapped, 5.0), 10.0)
    return RPE_PERCENT_TABLE[snapped]


def percent_from_reps(reps):
    if reps is None or reps <= 0 or reps > max(REP_PERCENT_TABLE):
        return None
    eligible = [count for count in REP_PERCENT_TABLE if count <= reps]
    return REP_PERCENT_TABLE[max(eligible)]


def target_percent(exercise):
    """RPE table first, rep table as fallback. Top of a rep range is used."""
    percent = percent_from_rpe(exercise.rpe)
    if percent is not None:
        return percent
    return percent_from_reps(exercise.top_reps)


def canonical_records(personal_records, normalizer):
    """Map caller-supplied PR keys onto canonical lift names, dropping junk."""
    records = {}
    for name, value in (personal_records or {}).items():
        lift = normalizer.canonical_lift_key(name)
        if not lift:
            continue
        try:
            weight = float(value)
        except (TypeError, ValueError):
            continue
        if weight > 0:
            records[lift] = weight
    return records


def suggestion_text(one_rep_max, percent, unit):
    weight = round_to_increment(one_rep_max * percent / 100.0)
    return f"~{format_load(weight)} {unit} ({format_load(percent)}% 1RM)"


def merge_weight_suggestions(draft, personal_records, normalizer, unit="kg"):
    """
    Append PR-based load suggestions to matching major lifts.

    Exercises without a recognised lift, without a PR, or with no usable
    intensity keep their load text unchanged.

    Returns:
        Tuple[TrainingProgramDraft, int] => (new draft, suggestions applied)
    """
    result = copy.deepcopy(draft)
    records = canonical_records(personal_records, normalizer)
    if not records:
        return result, 0

    applied = 0
    for _, _, exercise in result.iter_exercises():
        if SUGGESTION_MARKER in (exercise.load_text or ""):
            continue
        lift = normalizer.major_lift(exercise.name)
        if lift is None or lift not in records:
            continue
        percent = target_percent(exercise)
        if percent is None:
            continue

        suggestion = suggestion_text(records[lift], percent, unit)
        if exercise.load_text:
            exercise.load_text = f"{exercise.load_text} | {suggestion}"
        else:
            exercise.load_text = suggestion
        applied += 1

    return result, applied
