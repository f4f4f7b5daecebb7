import unittest

from program_pipeline.exercise_normalizer import ExerciseNormalizer
from program_pipeline.program_types import ExercisePrescription, ProgramDay, TrainingProgramDraft
from program_pipeline.weight_suggestions import (
    canonical_records,
    merge_weight_suggestions,
    percent_from_reps,
    percent_from_rpe,
    round_to_increment,
)


def _draft(*exercises):
    return TrainingProgramDraft(days=[ProgramDay("Legs", list(exercises))])


class WeightSuggestionTests(unittest.TestCase):
    def setUp(self):
        self.normalizer = ExerciseNormalizer()

    def test_squat_rpe_8_suggestion_appended(self):
        draft = _draft(ExercisePrescription("Back Squat", 5, 5, rpe=8, load_text="185x5"))
        result, applied = merge_weight_suggestions(draft, {"squat": 140}, self.normalizer)

        self.assertEqual(applied, 1)
        self.assertEqual(result.days[0].exercises[0].load_text, "185x5 | ~120 kg (85% 1RM)")
        self.assertEqual(draft.days[0].exercises[0].load_text, "185x5")

    def test_rep_table_used_without_rpe(self):
        draft = _draft(ExercisePrescription("Barbell Bench Press", 4, (6, 8)))
        result, applied = merge_weight_suggestions(draft, {"benchPress1RMEstimate": 100}, self.normalizer, unit="lb")

        self.assertEqual(applied, 1)
        self.assertEqual(result.days[0].exercises[0].load_text, "~80 lb (80% 1RM)")

    def test_suggestions_are_multiples_of_increment(self):
        draft = _draft(
            ExercisePrescription("Deadlift", 3, 5, rpe=7),
            ExercisePrescription("Back Squat", 3, 3, rpe=9.5),
            ExercisePrescription("OHP", 3, 6),
        )
        records = {"deadlift": 183, "squat": 151, "overhead_press": 61}
        result, applied = merge_weight_suggestions(draft, records, self.normalizer)

        self.assertEqual(applied, 3)
        self.assertEqual(result.days[0].exercises[0].load_text, "~147.5 kg (80% 1RM)")
        for exercise in result.days[0].exercises:
            weight = float(exercise.load_text.split()[0].lstrip("~"))
            self.assertEqual(weight % 2.5, 0)

    def test_no_matching_record_leaves_load_text(self):
        draft = _draft(
            ExercisePrescription("Back Squat", 5, 5, rpe=8, load_text="185x5"),
            ExercisePrescription("Leg Press", 3, 12, rpe=8, load_text="200 kg"),
        )
        result, applied = merge_weight_suggestions(draft, {"bench": 100}, self.normalizer)
        self.assertEqual(applied, 0)
        self.assertEqual([ex.load_text for ex in result.days[0].exercises], ["185x5", "200 kg"])

        result, applied = merge_weight_suggestions(draft, {}, self.normalizer)
        self.assertEqual(applied, 0)
        self.assertEqual(result.days[0].exercises[0].load_text, "185x5")

    def test_existing_suggestion_not_duplicated(self):
        draft = _draft(ExercisePrescription("Back Squat", 5, 5, rpe=8, load_text="185x5"))
        once, _ = merge_weight_suggestions(draft, {"squat": 140}, self.normalizer)
        twice, applied = merge_weight_suggestions(once, {"squat": 140}, self.normalizer)
        self.assertEqual(applied, 0)
        self.assertEqual(twice.days[0].exercises[0].load_text, "185x5 | ~120 kg (85% 1RM)")

    def test_no_usable_intensity_skipped(self):
        draft = _draft(ExercisePrescription("Back Squat", 2, 25))
        result, applied = merge_weight_suggestions(draft, {"squat": 140}, self.normalizer)
        self.assertEqual(applied, 0)
        self.assertEqual(result.days[0].exercises[0].load_text, "")

    def test_percent_tables(self):
        self.assertEqual(percent_from_rpe(8), 85)
        self.assertEqual(percent_from_rpe(7.3), 82)
        self.assertEqual(percent_from_rpe(3), 70)
        self.assertIsNone(percent_from_rpe(None))
        self.assertEqual(percent_from_reps(5), 87)
        self.assertEqual(percent_from_reps(13), 70)
        self.assertIsNone(percent_from_reps(30))

    def test_round_to_increment(self):
        self.assertEqual(round_to_increment(119), 120)
        self.assertEqual(round_to_increment(121.25), 122.5)
        self.assertEqual(round_to_increment(118.7), 117.5)

    def test_canonical_records_drop_junk(self):
        records = {"squat1RMEstimate": 140, "bench": "abc", "favorite": 5, "deadlift": 0}
        self.assertEqual(canonical_records(records, self.normalizer), {"squat": 140.0})


if __name__ == "__main__":
    unittest.main()
