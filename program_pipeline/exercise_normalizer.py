"""
Canonical exercise normalization.

Single place where exercise names are cleaned up before any table lookup
(muscle groups, major-lift detection, personal-record matching).
"""

import re


# ---------------------------------------------------------------------------
# Parenthetical qualifiers to STRIP (these don't change exercise identity)
# ---------------------------------------------------------------------------
STRIP_PAREN_PATTERNS = [
    re.compile(r"\s*\(warm-?up(?:\s+set)?\s*\d*\)", re.IGNORECASE),
    re.compile(r"\s*\(build\)", re.IGNORECASE),
    re.compile(r"\s*\(working\)", re.IGNORECASE),
    re.compile(r"\s*\(top\s+set\)", re.IGNORECASE),
    re.compile(r"\s*\(back-?off\)", re.IGNORECASE),
    re.compile(r"\s*\(amrap\)", re.IGNORECASE),
    re.compile(r"\s*\(myo-?reps?\)", re.IGNORECASE),
    re.compile(r"\s*\(finisher\)", re.IGNORECASE),
    re.compile(r"\s*\(optional\)", re.IGNORECASE),
]

# Post-dash qualifiers to strip: " — top set", " - backoff"
STRIP_DASH_SUFFIX = re.compile(
    r"\s*[—–-]+\s*(?:top set|back-?offs?|working sets?|warm-?up)\s*$", re.IGNORECASE
)

# ---------------------------------------------------------------------------
# Abbreviation normalization (canonical forms)
# ---------------------------------------------------------------------------
ABBREVIATION_MAP = [
    (re.compile(r"\bez[\s-]*bar\b", re.IGNORECASE), "EZ-Bar"),
    (re.compile(r"\bdb\b", re.IGNORECASE), "Dumbbell"),
    (re.compile(r"\bbb\b", re.IGNORECASE), "Barbell"),
    (re.compile(r"\bkb\b", re.IGNORECASE), "Kettlebell"),
    (re.compile(r"\bohp\b", re.IGNORECASE), "Overhead Press"),
    (re.compile(r"\brdl\b", re.IGNORECASE), "Romanian Deadlift"),
    (re.compile(r"\bsldl\b", re.IGNORECASE), "Stiff-Leg Deadlift"),
]

DEPLURALIZE_PATTERNS = [
    (re.compile(r"\bpull-?ups\b", re.IGNORECASE), "Pull-Up"),
    (re.compile(r"\bchin-?ups\b", re.IGNORECASE), "Chin-Up"),
    (re.compile(r"\bpush-?ups\b", re.IGNORECASE), "Push-Up"),
    (re.compile(r"\bdips\b", re.IGNORECASE), "Dip"),
    (re.compile(r"\bface pulls\b", re.IGNORECASE), "Face Pull"),
    (re.compile(r"\blunges\b", re.IGNORECASE), "Lunge"),
    (re.compile(r"\bcurls\b", re.IGNORECASE), "Curl"),
    (re.compile(r"\braises\b", re.IGNORECASE), "Raise"),
]

# ---------------------------------------------------------------------------
# Major barbell lifts. Order matters: exclusions are checked before matches.
# ---------------------------------------------------------------------------
MAJOR_LIFT_PATTERNS = [
    (
        "deadlift",
        re.compile(r"\bdeadlift\b"),
        re.compile(r"\b(?:romanian|stiff leg|single leg|dumbbell|kettlebell|trap bar)\b"),
    ),
    (
        "squat",
        re.compile(r"\bsquats?\b"),
        re.compile(r"\b(?:split|goblet|dumbbell|kettlebell|hack|sissy|jump|pistol|bulgarian|smith)\b"),
    ),
    (
        "bench",
        re.compile(r"\bbench(?: press)?\b"),
        re.compile(r"\b(?:dumbbell|dip|machine|smith)\b"),
    ),
    (
        "overhead_press",
        re.compile(r"\b(?:overhead press|military press|standing press|strict press|push press)\b"),
        re.compile(r"\b(?:dumbbell|kettlebell|machine|seated|tricep|triceps)\b"),
    ),
]

# Personal-record keys as callers tend to send them.
LIFT_KEY_ALIASES = {
    "squat": "squat",
    "back squat": "squat",
    "squat1rmestimate": "squat",
    "bench": "bench",
    "bench press": "bench",
    "benchpress": "bench",
    "benchpress1rmestimate": "bench",
    "deadlift": "deadlift",
    "conventional deadlift": "deadlift",
    "deadlift1rmestimate": "deadlift",
    "overhead press": "overhead_press",
    "ohp": "overhead_press",
    "military press": "overhead_press",
    "press": "overhead_press",
    "overheadpress": "overhead_press",
    "overheadpress1rmestimate": "overhead_press",
}


class ExerciseNormalizer:
    """
    Canonical exercise normalization and major-lift detection.

    Usage:
        normalizer = ExerciseNormalizer()
        normalizer.canonical_key("DB Lateral Raises (Finisher)")  # -> "dumbbell lateral raise"
        normalizer.major_lift("Paused Back Squat")  # -> "squat"
        normalizer.canonical_lift_key("benchPress1RMEstimate")  # -> "bench"
    """

    def canonical_key(self, name):
        """
        Compute the canonical key used for matching.

        Strips non-identity qualifiers, unifies abbreviations, lowercases.
        """
        if not name:
            return ""

        result = re.sub(r"\s+", " ", str(name).strip())

        for pattern in STRIP_PAREN_PATTERNS:
            result = pattern.sub("", result)

        result = STRIP_DASH_SUFFIX.sub("", result)

        for pattern, replacement in ABBREVIATION_MAP:
            result = pattern.sub(replacement, result)

        for pattern, replacement in DEPLURALIZE_PATTERNS:
            result = pattern.sub(replacement, result)

        return re.sub(r"\s+", " ", result).strip().lower()

    def match_key(self, name):
        """Canonical key with punctuation flattened to spaces, for regex tables."""
        return re.sub(r"[^a-z0-9]+", " ", self.canonical_key(name)).strip()

    def major_lift(self, name):
        """Return 'squat', 'bench', 'deadlift', 'overhead_press' or None."""
        key = self.match_key(name)
        if not key:
            return None
        for lift, pattern, exclude in MAJOR_LIFT_PATTERNS:
            if pattern.search(key) and not exclude.search(key):
                return lift
        return None

    def canonical_lift_key(self, record_name):
        """Map a personal-record key to a canonical lift name, or None."""
        raw = str(record_name or "").strip()
        if not raw:
            return None
        # camelCase -> spaced, then the same cleanup as exercise names
        spaced = re.sub(r"(?<=[a-z])(?=[A-Z])", " ", raw)
        key = re.sub(r"[^a-z0-9]+", " ", spaced.lower()).strip()
        if key in LIFT_KEY_ALIASES:
            return LIFT_KEY_ALIASES[key]
        compact = key.replace(" ", "")
        if compact in LIFT_KEY_ALIASES:
            return LIFT_KEY_ALIASES[compact]
        return self.major_lift(raw)
