"""
Weekly volume harmonization.

Counts hard sets per muscle group across the week and nudges accessory set
counts until every muscle group sits inside the target band for the
cohort. Anchor lifts are never touched and exercises are never swapped; what
cannot be fixed is reported as an advisory instead of failing the program.
"""

import copy
import logging
from collections import Counter

from program_pipeline.muscle_map import MUSCLE_GROUPS
from program_pipeline.program_types import AdvisoryEntry


logger = logging.getLogger(__name__)

# Weekly hard-set targets per muscle group.
HYPERTROPHY_TARGETS = {
    "beginner": (12, 14),
    "intermediate": (12, 18),
    "advanced": (14, 20),
}
FOCUS_TARGETS = {
    "strength": (10, 15),
    "powerlifting": (10, 15),
    "general_fitness": (6, 9),
}

ANCHOR_CATEGORIES = {"compound", "power"}

DEFAULT_MINUTES_PER_SET = 2.0
DEFAULT_MAX_SETS_PER_EXERCISE = 5
DEFAULT_SESSION_MINUTES = 60
MIN_SETS_PER_EXERCISE = 1

BLOCK_REASONS = {
    "budget": "session-duration budget reached",
    "cap": "accessories already at the per-exercise set cap",
    "floor": "accessories already at the floor of 1 set",
    "other": "further changes would push another muscle group out of range",
}


def target_range(cohort):
    """Return (low, high) weekly sets for a cohort, or None when not harmonized."""
    focus = cohort.focus_key
    if focus == "hypertrophy":
        # Unknown experience levels get the widest hypertrophy band.
        return HYPERTROPHY_TARGETS.get(cohort.experience_key, HYPERTROPHY_TARGETS["advanced"])
    return FOCUS_TARGETS.get(focus)


def is_anchor(exercise, normalizer):
    if (exercise.category or "").strip().lower() in ANCHOR_CATEGORIES:
        return True
    return normalizer.major_lift(exercise.name) is not None


def tally_volume(draft, muscle_map):
    """MuscleVolumeTally for a draft: muscle group -> weekly sets."""
    tally = Counter()
    for _, _, exercise in draft.iter_exercises():
        for muscle in muscle_map.resolve(exercise.name):
            tally[muscle] += exercise.sets
    return tally


def _muscle_order(muscle):
    if muscle in MUSCLE_GROUPS:
        return (0, MUSCLE_GROUPS.index(muscle), muscle)
    return (1, 0, muscle)


class _Harmonizer:
    def __init__(self, draft, muscle_map, low, high, session_minutes, minutes_per_set, max_sets):
        self.draft = draft
        self.low = low
        self.high = high
        self.session_minutes = session_minutes
        self.minutes_per_set = minutes_per_set
        self.max_sets = max_sets
        self.normalizer = muscle_map.normalizer
        self.resolved = {
            (day_index, exercise_index): muscle_map.resolve(exercise.name)
            for day_index, exercise_index, exercise in draft.iter_exercises()
        }
        self.tally = Counter()
        for (day_index, exercise_index), muscles in self.resolved.items():
            sets = draft.days[day_index].exercises[exercise_index].sets
            for muscle in muscles:
                self.tally[muscle] += sets

    def accessory_candidates(self, muscle):
        """Accessories training `muscle`, lowest declared priority first."""
        candidates = []
        for (day_index, exercise_index), muscles in self.resolved.items():
            if muscle not in muscles:
                continue
            exercise = self.draft.days[day_index].exercises[exercise_index]
            if is_anchor(exercise, self.normalizer):
                continue
            candidates.append((day_index, exercise_index))
        # Later in the day = lower priority; ties go to the later day.
        return sorted(candidates, key=lambda ref: (-ref[1], -ref[0]))

    def _breaks_other(self, ref, muscle, delta):
        for other in self.resolved[ref]:
            if other == muscle:
                continue
            updated = self.tally[other] + delta
            if delta > 0 and updated > self.high:
                return True
            if delta < 0 and updated < self.low:
                return True
        return False

    def _apply(self, ref, delta):
        day_index, exercise_index = ref
        exercise = self.draft.days[day_index].exercises[exercise_index]
        before = exercise.sets
        exercise.sets += delta
        for muscle in self.resolved[ref]:
            self.tally[muscle] += delta
        logger.debug(
            "Adjusted %s sets %d -> %d on day %d",
            exercise.name,
            before,
            exercise.sets,
            day_index + 1,
        )

    def raise_volume(self, muscle, candidates):
        blocked = set()
        while self.tally[muscle] < self.low:
            progressed = False
            for ref in candidates:
                if self.tally[muscle] >= self.low:
                    break
                day = self.draft.days[ref[0]]
                exercise = day.exercises[ref[1]]
                if exercise.sets >= self.max_sets:
                    blocked.add("cap")
                    continue
                if (day.total_sets + 1) * self.minutes_per_set > self.session_minutes:
                    blocked.add("budget")
                    continue
                if self._breaks_other(ref, muscle, 1):
                    blocked.add("other")
                    continue
                self._apply(ref, 1)
                progressed = True
            if not progressed:
                break
        return blocked

    def lower_volume(self, muscle, candidates):
        blocked = set()
        while self.tally[muscle] > self.high:
            progressed = False
            for ref in candidates:
                if self.tally[muscle] <= self.high:
                    break
                exercise = self.draft.days[ref[0]].exercises[ref[1]]
                if exercise.sets <= MIN_SETS_PER_EXERCISE:
                    blocked.add("floor")
                    continue
                if self._breaks_other(ref, muscle, -1):
                    blocked.add("other")
                    continue
                self._apply(ref, -1)
                progressed = True
            if not progressed:
                break
        return blocked


def _advisory_note(original, final, low, high, had_candidates, blocked):
    if low <= final <= high:
        return f"Adjusted accessory sets from {original} to {final} to reach {low}-{high}"

    direction = "below" if final < low else "above"
    if low <= original <= high:
        return f"Moved {direction} {low}-{high} by adjustments to other muscle groups"

    reasons = [BLOCK_REASONS[code] for code in ("budget", "cap", "floor", "other") if code in blocked]
    if not had_candidates and original == 0:
        reasons = ["not trained by any exercise this week, so there are no adjustable accessory exercises"]
    elif not had_candidates:
        reasons = ["no adjustable accessory exercises (anchor lifts are never adjusted)"]
    detail = "; ".join(reasons) if reasons else "no further adjustment possible"
    if final != original:
        return f"Still {direction} {low}-{high} after adjusting {original} -> {final}: {detail}"
    return f"Still {direction} {low}-{high} at {final} sets: {detail}"


def harmonize_volume(
    draft,
    cohort,
    muscle_map,
    minutes_per_set=DEFAULT_MINUTES_PER_SET,
    max_sets_per_exercise=DEFAULT_MAX_SETS_PER_EXERCISE,
    default_session_minutes=DEFAULT_SESSION_MINUTES,
):
    """
    Bring weekly sets per muscle group into the cohort's target band.

    Below range: add sets to accessories (lowest priority first) while the
    day's estimated duration fits the session budget and the per-exercise cap
    holds. Above range: remove sets from accessories down to a floor of 1.

    Returns:
        Tuple[TrainingProgramDraft, List[AdvisoryEntry]]
    """
    result = copy.deepcopy(draft)
    target = target_range(cohort)
    if target is None:
        return result, []

    low, high = target
    harmonizer = _Harmonizer(
        result,
        muscle_map,
        low,
        high,
        session_minutes=cohort.session_minutes or default_session_minutes,
        minutes_per_set=minutes_per_set,
        max_sets=max_sets_per_exercise,
    )
    original = {muscle: harmonizer.tally[muscle] for muscle in MUSCLE_GROUPS}
    original.update(harmonizer.tally)
    muscles = sorted(original, key=_muscle_order)

    outcomes = {}
    for muscle in muscles:
        count = harmonizer.tally[muscle]
        if low <= count <= high:
            continue
        candidates = harmonizer.accessory_candidates(muscle)
        if not candidates:
            outcomes[muscle] = (False, set())
        elif count < low:
            outcomes[muscle] = (True, harmonizer.raise_volume(muscle, candidates))
        else:
            outcomes[muscle] = (True, harmonizer.lower_volume(muscle, candidates))

    advisories = []
    for muscle in muscles:
        before = original[muscle]
        after = harmonizer.tally[muscle]
        if low <= before <= high and low <= after <= high:
            continue
        had_candidates, blocked = outcomes.get(muscle, (True, set()))
        advisories.append(
            AdvisoryEntry(
                muscle_group=muscle,
                original_count=before,
                final_count=after,
                target_range=(low, high),
                note=_advisory_note(before, after, low, high, had_candidates, blocked),
            )
        )

    return result, advisories
