import json
import unittest

from program_pipeline.draft_validator import summarize_violations, validate_draft
from program_pipeline.errors import ValidationError


def _raw_draft(**overrides):
    draft = {
        "schema_version": 1,
        "program_name": "Test Week",
        "days": [
            {
                "day_of_week": 1,
                "label": "Upper",
                "exercises": [
                    {"name": "Barbell Bench Press", "sets": 4, "reps": "6-8", "rpe": 8, "category": "compound"},
                    {"name": "Cable Lateral Raise", "sets": 3, "reps": 15, "load_text": "8 kg"},
                ],
            }
        ],
    }
    draft.update(overrides)
    return draft


class DraftValidatorTests(unittest.TestCase):
    def test_valid_draft_becomes_typed(self):
        draft = validate_draft(_raw_draft())
        self.assertEqual(draft.program_name, "Test Week")
        self.assertEqual(len(draft.days), 1)
        day = draft.days[0]
        self.assertEqual(day.label, "Upper")
        self.assertEqual(day.day_of_week, 1)
        bench, raise_ = day.exercises
        self.assertEqual(bench.reps, (6, 8))
        self.assertEqual(bench.rpe, 8.0)
        self.assertEqual(bench.category, "compound")
        self.assertEqual(raise_.reps, 15)
        self.assertIsNone(raise_.rpe)
        self.assertEqual(raise_.load_text, "8 kg")

    def test_json_text_accepted(self):
        draft = validate_draft(json.dumps(_raw_draft()))
        self.assertEqual(draft.days[0].exercises[0].name, "Barbell Bench Press")

    def test_invalid_json_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_draft("Here is your program: {not json")
        self.assertIn("invalid_json", ctx.exception.codes)

    def test_non_object_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_draft([1, 2, 3])
        self.assertIn("not_an_object", ctx.exception.codes)

    def test_unsupported_schema_version(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_draft(_raw_draft(schema_version=2))
        self.assertIn("unsupported_schema_version", ctx.exception.codes)

    def test_non_integer_schema_version_rejected(self):
        for version in ([1], {"major": 1}, True, "1", 1.5):
            with self.assertRaises(ValidationError) as ctx:
                validate_draft(_raw_draft(schema_version=version))
            self.assertEqual(ctx.exception.codes, {"unsupported_schema_version"})

    def test_missing_days(self):
        raw = _raw_draft()
        del raw["days"]
        with self.assertRaises(ValidationError) as ctx:
            validate_draft(raw)
        self.assertIn("missing_days", ctx.exception.codes)

        with self.assertRaises(ValidationError) as ctx:
            validate_draft(_raw_draft(days=[]))
        self.assertIn("missing_days", ctx.exception.codes)

    def test_nested_weeks_shape_uses_first_week(self):
        raw = _raw_draft()
        days = raw.pop("days")
        raw["weeks"] = [{"days": days}, {"days": []}]
        draft = validate_draft(raw)
        self.assertEqual(len(draft.days), 1)

    def test_focus_field_used_as_label(self):
        raw = _raw_draft()
        day = raw["days"][0]
        del day["label"]
        day["focus"] = "Push Day"
        self.assertEqual(validate_draft(raw).days[0].label, "Push Day")

    def test_all_violations_collected(self):
        raw = _raw_draft(
            days=[
                {
                    "label": "Legs",
                    "exercises": [
                        {"name": "Back Squat", "sets": 0, "reps": "heavy", "rpe": 11},
                        {"name": "", "sets": 3, "reps": 10},
                    ],
                },
                {"label": "Empty", "exercises": []},
            ]
        )
        with self.assertRaises(ValidationError) as ctx:
            validate_draft(raw)
        self.assertEqual(
            ctx.exception.codes,
            {"invalid_sets", "invalid_reps", "invalid_rpe", "missing_exercise_name", "day_without_exercises"},
        )

    def test_unknown_fields_rejected(self):
        raw = _raw_draft()
        raw["days"][0]["warmup"] = "5 min bike"
        raw["days"][0]["exercises"][0]["superset_with"] = "B2"
        with self.assertRaises(ValidationError) as ctx:
            validate_draft(raw)
        self.assertIn("unknown_day_field", ctx.exception.codes)
        self.assertIn("unknown_exercise_field", ctx.exception.codes)

    def test_unknown_top_level_fields_ignored(self):
        draft = validate_draft(_raw_draft(coach_notes="Have fun"))
        self.assertEqual(len(draft.days), 1)

    def test_invalid_day_of_week(self):
        raw = _raw_draft()
        raw["days"][0]["day_of_week"] = 9
        with self.assertRaises(ValidationError) as ctx:
            validate_draft(raw)
        self.assertIn("invalid_day_of_week", ctx.exception.codes)

    def test_summarize_violations_truncates(self):
        violations = [
            {"code": "invalid_sets", "message": f"bad {i}", "day": "Legs", "exercise": "Squat"}
            for i in range(12)
        ]
        summary = summarize_violations(violations, limit=10)
        lines = summary.splitlines()
        self.assertEqual(len(lines), 11)
        self.assertEqual(lines[0], "- invalid_sets (Legs | Squat): bad 0")
        self.assertEqual(lines[-1], "- ... 2 more")


if __name__ == "__main__":
    unittest.main()
