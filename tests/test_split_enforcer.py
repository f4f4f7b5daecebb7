import unittest

from program_pipeline.exercise_normalizer import ExerciseNormalizer
from program_pipeline.muscle_map import ExerciseMuscleMap
from program_pipeline.program_types import Cohort, ExercisePrescription, ProgramDay, TrainingProgramDraft
from program_pipeline.split_enforcer import PPL_TEMPLATE, canonical_label, classify_day_content, enforce_split


def _ex(name, sets=3, reps=10, category=None):
    return ExercisePrescription(name=name, sets=sets, reps=reps, category=category)


def _leg_day(label="Legs"):
    return ProgramDay(label=label, exercises=[_ex("Back Squat", 4, 5, "compound"), _ex("Leg Curl", 3, 12)])


def _upper_day(label="Upper"):
    return ProgramDay(label=label, exercises=[_ex("Barbell Bench Press", 4, 6, "compound"), _ex("Barbell Row", 4, 8)])


class SplitEnforcerTests(unittest.TestCase):
    def setUp(self):
        self.muscle_map = ExerciseMuscleMap(ExerciseNormalizer())
        self.ppl_cohort = Cohort("hypertrophy", "advanced", days_per_week=6)
        self.hypertrophy = Cohort("hypertrophy", "intermediate", days_per_week=4)

    def test_ppl_cohort_gets_exact_template(self):
        draft = TrainingProgramDraft(
            days=[_upper_day("Upper A"), _leg_day("Lower A"), _upper_day("Upper B"), _leg_day("Lower B")]
        )
        result, notes = enforce_split(draft, self.ppl_cohort, self.muscle_map)
        self.assertEqual(result.labels, PPL_TEMPLATE)
        self.assertEqual([day.day_of_week for day in result.days], [1, 2, 3, 4, 5, 6])
        self.assertEqual(result.days[0].day_name, "Monday")
        self.assertTrue(any("Copied the last day" in note for note in notes))

    def test_ppl_cohort_trims_extra_days(self):
        draft = TrainingProgramDraft(days=[_upper_day(f"Day {i}") for i in range(7)])
        result, notes = enforce_split(draft, self.ppl_cohort, self.muscle_map)
        self.assertEqual(result.labels, PPL_TEMPLATE)
        self.assertTrue(any("Trimmed extra days" in note for note in notes))

    def test_input_draft_not_mutated(self):
        draft = TrainingProgramDraft(days=[_upper_day("Upper A")])
        enforce_split(draft, self.ppl_cohort, self.muscle_map)
        self.assertEqual(draft.labels, ["Upper A"])
        self.assertEqual(len(draft.days), 1)

    def test_lower_body_strength_maps_to_legs_for_hypertrophy(self):
        draft = TrainingProgramDraft(days=[_leg_day("Lower Body Strength"), _upper_day("Upper Body")])
        result, notes = enforce_split(draft, self.hypertrophy, self.muscle_map)
        self.assertEqual(result.labels, ["Legs", "Upper Body"])
        self.assertEqual(notes, ['Relabeled focus "Lower Body Strength" -> "Legs" on day 1'])

    def test_strength_label_kept_for_strength_focus(self):
        cohort = Cohort("strength", "intermediate", days_per_week=4)
        day = _leg_day("Lower Body Strength")
        self.assertEqual(canonical_label(day.label, day, cohort, self.muscle_map), "Strength")

    def test_ppl_cohort_pads_short_draft_with_last_day(self):
        draft = TrainingProgramDraft(
            days=[_upper_day("Chest Day"), _upper_day("Back Day"), _leg_day("Leg Day"), _upper_day("Arms")]
        )
        result, notes = enforce_split(draft, self.ppl_cohort, self.muscle_map)

        self.assertEqual(len(result.days), 6)
        self.assertEqual(result.labels, ["Push", "Pull", "Legs", "Push", "Pull", "Legs"])
        self.assertEqual([day.day_of_week for day in result.days], [1, 2, 3, 4, 5, 6])
        padding = [note for note in notes if "Copied the last day" in note]
        self.assertEqual(len(padding), 2)
        self.assertIn("day 5", padding[0])
        self.assertIn("day 6", padding[1])
        for filler in result.days[4:]:
            self.assertEqual(
                [ex.name for ex in filler.exercises],
                [ex.name for ex in draft.days[3].exercises],
            )

    def test_exact_strength_label_uses_content_for_hypertrophy(self):
        day = _leg_day("Strength")
        self.assertEqual(canonical_label(day.label, day, self.hypertrophy, self.muscle_map), "Legs")
        strength = Cohort("powerlifting", "advanced", days_per_week=4)
        self.assertEqual(canonical_label(day.label, day, strength, self.muscle_map), "Strength")

    def test_synonyms_and_tags(self):
        day = _upper_day()
        self.assertEqual(canonical_label("push day", day, self.hypertrophy, self.muscle_map), "Push")
        self.assertEqual(canonical_label("Chest & Triceps", day, self.hypertrophy, self.muscle_map), "Push")
        self.assertEqual(canonical_label("upper body", day, self.hypertrophy, self.muscle_map), "Upper Body")
        self.assertEqual(canonical_label("Active Recovery", day, self.hypertrophy, self.muscle_map), "Recovery/Mobility")

    def test_ambiguous_label_uses_day_content(self):
        self.assertEqual(
            canonical_label("Chest and Back", _upper_day(), self.hypertrophy, self.muscle_map),
            "Upper Body",
        )
        self.assertEqual(canonical_label("Day A", _leg_day(), self.hypertrophy, self.muscle_map), "Legs")

    def test_unknown_label_without_known_exercises(self):
        day = ProgramDay(label="Mystery", exercises=[_ex("Turkish Get-Up")])
        self.assertEqual(canonical_label("Mystery", day, self.hypertrophy, self.muscle_map), "Full Body")

    def test_non_ppl_cohort_keeps_day_count_and_order(self):
        draft = TrainingProgramDraft(days=[_upper_day("Upper"), _leg_day("Lower"), _upper_day("Full")])
        result, _ = enforce_split(draft, self.hypertrophy, self.muscle_map)
        self.assertEqual(result.labels, ["Upper Body", "Lower Body", "Full Body"])
        self.assertEqual([day.day_of_week for day in result.days], [None, None, None])

    def test_classify_day_content(self):
        self.assertEqual(classify_day_content(_leg_day(), self.muscle_map), "Legs")
        self.assertEqual(classify_day_content(_upper_day(), self.muscle_map), "Upper Body")
        push = ProgramDay(label="x", exercises=[_ex("Bench Press", 4), _ex("Tricep Pushdown", 3)])
        self.assertEqual(classify_day_content(push, self.muscle_map), "Push")


if __name__ == "__main__":
    unittest.main()
