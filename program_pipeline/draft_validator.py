"""
Structural validation of raw generated drafts.

The generator returns loosely-typed JSON. Nothing downstream touches it until
it has been validated into a TrainingProgramDraft here.
"""

import json
import numbers

from program_pipeline.errors import ValidationError
from program_pipeline.program_types import (
    SCHEMA_VERSION,
    ExercisePrescription,
    ProgramDay,
    TrainingProgramDraft,
    parse_reps,
)


SUPPORTED_SCHEMA_VERSIONS = {SCHEMA_VERSION}

DAY_FIELDS = {
    "day_of_week",
    "dayOfWeek",
    "focus",
    "label",
    "exercises",
    "notes",
    "estimated_duration_minutes",
    "estimatedDurationMinutes",
}

EXERCISE_FIELDS = {
    "name",
    "sets",
    "reps",
    "rpe",
    "load_text",
    "load",
    "weight",
    "rest",
    "tempo",
    "notes",
    "category",
}


def _add_violation(violations, code, message, day=None, exercise=None):
    violations.append(
        {
            "code": code,
            "message": message,
            "day": day or "",
            "exercise": exercise or "",
        }
    )


def _parse_positive_int(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Integral):
        return int(value) if value > 0 else None
    if isinstance(value, float) and value.is_integer() and value > 0:
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None


def _parse_rpe(value):
    if value is None or value == "":
        return None, True
    if isinstance(value, bool):
        return None, False
    try:
        rpe = float(value)
    except (TypeError, ValueError):
        return None, False
    if 1.0 <= rpe <= 10.0:
        return rpe, True
    return None, False


def _optional_text(value):
    if value is None:
        return None
    return str(value).strip() or None


def _load_raw(raw):
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                "Generated draft is not valid JSON",
                [{"code": "invalid_json", "message": str(exc), "day": "", "exercise": ""}],
            ) from exc
    if not isinstance(raw, dict):
        raise ValidationError(
            "Generated draft must be a JSON object",
            [{"code": "not_an_object", "message": type(raw).__name__, "day": "", "exercise": ""}],
        )
    return raw


def _extract_days(raw, violations):
    """Top-level `days`, or the first week of a nested `weeks` list."""
    if "days" in raw:
        return raw.get("days")

    weeks = raw.get("weeks")
    if isinstance(weeks, list) and weeks:
        first_week = weeks[0]
        if isinstance(first_week, dict):
            return first_week.get("days")

    _add_violation(violations, "missing_days", "Draft has no days.")
    return None


def _validate_exercise(entry, day_label, violations):
    if not isinstance(entry, dict):
        _add_violation(violations, "exercise_not_object", "Exercise entry is not an object.", day=day_label)
        return None

    name = str(entry.get("name") or "").strip()
    unknown = sorted(set(entry) - EXERCISE_FIELDS)
    if unknown:
        _add_violation(
            violations,
            "unknown_exercise_field",
            f"Unknown exercise field(s): {', '.join(unknown)}",
            day=day_label,
            exercise=name,
        )

    if not name:
        _add_violation(violations, "missing_exercise_name", "Exercise has no name.", day=day_label)

    sets = _parse_positive_int(entry.get("sets"))
    if sets is None:
        _add_violation(
            violations,
            "invalid_sets",
            f"Sets must be a positive integer, got {entry.get('sets')!r}.",
            day=day_label,
            exercise=name,
        )

    reps = parse_reps(entry.get("reps"))
    if reps is None:
        _add_violation(
            violations,
            "invalid_reps",
            f"Reps must be a positive integer or range, got {entry.get('reps')!r}.",
            day=day_label,
            exercise=name,
        )

    rpe, rpe_ok = _parse_rpe(entry.get("rpe"))
    if not rpe_ok:
        _add_violation(
            violations,
            "invalid_rpe",
            f"RPE must be a number between 1 and 10, got {entry.get('rpe')!r}.",
            day=day_label,
            exercise=name,
        )

    if not name or sets is None or reps is None or not rpe_ok or unknown:
        return None

    load_text = entry.get("load_text")
    if load_text is None:
        load_text = entry.get("load")
    if load_text is None:
        load_text = entry.get("weight")

    return ExercisePrescription(
        name=name,
        sets=sets,
        reps=reps,
        rpe=rpe,
        load_text=str(load_text).strip() if load_text is not None else "",
        category=_optional_text(entry.get("category")),
        rest=_optional_text(entry.get("rest")),
        tempo=_optional_text(entry.get("tempo")),
        notes=_optional_text(entry.get("notes")),
    )


def _validate_day(entry, index, violations):
    fallback_label = f"Day {index + 1}"
    if not isinstance(entry, dict):
        _add_violation(violations, "day_not_object", "Day entry is not an object.", day=fallback_label)
        return None

    label = str(entry.get("focus") or entry.get("label") or "").strip()
    day_ref = label or fallback_label

    unknown = sorted(set(entry) - DAY_FIELDS)
    if unknown:
        _add_violation(
            violations,
            "unknown_day_field",
            f"Unknown day field(s): {', '.join(unknown)}",
            day=day_ref,
        )

    day_of_week = entry.get("day_of_week", entry.get("dayOfWeek"))
    if day_of_week is not None:
        parsed_day = _parse_positive_int(day_of_week)
        if parsed_day is None or parsed_day > 7:
            _add_violation(
                violations,
                "invalid_day_of_week",
                f"day_of_week must be 1-7, got {day_of_week!r}.",
                day=day_ref,
            )
        day_of_week = parsed_day

    raw_exercises = entry.get("exercises")
    if not isinstance(raw_exercises, list) or not raw_exercises:
        _add_violation(violations, "day_without_exercises", "Day has no exercises.", day=day_ref)
        return None

    exercises = [_validate_exercise(ex, day_ref, violations) for ex in raw_exercises]
    if unknown or any(ex is None for ex in exercises):
        return None

    return ProgramDay(
        label=label,
        exercises=exercises,
        day_of_week=day_of_week,
        notes=_optional_text(entry.get("notes")),
    )


def validate_draft(raw):
    """
    Validate a raw generated draft into a TrainingProgramDraft.

    Every violation is collected before raising, so one ValidationError
    describes everything wrong with the draft.

    Raises:
        ValidationError with `violations` (code, message, day, exercise)
    """
    data = _load_raw(raw)
    violations = []

    version = data.get("schema_version", SCHEMA_VERSION)
    if isinstance(version, bool) or not isinstance(version, int) or version not in SUPPORTED_SCHEMA_VERSIONS:
        _add_violation(
            violations,
            "unsupported_schema_version",
            f"Unsupported draft schema version: {version!r}",
        )
        raise ValidationError(f"Unsupported draft schema version: {version!r}", violations)

    raw_days = _extract_days(data, violations)
    if raw_days is not None and (not isinstance(raw_days, list) or not raw_days):
        _add_violation(violations, "missing_days", "Draft must contain at least one day.")
        raw_days = None

    days = []
    for index, entry in enumerate(raw_days or []):
        days.append(_validate_day(entry, index, violations))

    if violations:
        raise ValidationError(
            f"Draft validation failed: {len(violations)} violation(s).", violations
        )

    return TrainingProgramDraft(
        days=days,
        program_name=str(data.get("program_name") or data.get("programName") or "").strip(),
        schema_version=version,
    )


def summarize_violations(violations, limit=10):
    """Render violations as short lines for logs and CLI output."""
    lines = []
    for violation in violations[:limit]:
        where = " | ".join(part for part in (violation.get("day"), violation.get("exercise")) if part)
        prefix = f"{violation['code']} ({where})" if where else violation["code"]
        lines.append(f"- {prefix}: {violation['message']}")
    remaining = len(violations) - limit
    if remaining > 0:
        lines.append(f"- ... {remaining} more")
    return "\n".join(lines)
