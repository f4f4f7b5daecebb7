import unittest

from program_pipeline.errors import ConfigurationError
from program_pipeline.signature import build_cache_key, canonicalize_facts


class CacheKeyTests(unittest.TestCase):
    def test_key_ignores_fact_insertion_order(self):
        first = {"goal": "hypertrophy", "days": 4, "equipment": {"barbell": True, "cable": False}}
        second = {"equipment": {"cable": False, "barbell": True}, "days": 4, "goal": "hypertrophy"}
        self.assertEqual(
            build_cache_key("u-1", True, first),
            build_cache_key("u-1", True, second),
        )

    def test_key_changes_with_facts_tier_and_user(self):
        facts = {"goal": "hypertrophy"}
        base = build_cache_key("u-1", True, facts)
        self.assertNotEqual(base, build_cache_key("u-1", True, {"goal": "strength"}))
        self.assertNotEqual(base, build_cache_key("u-1", False, facts))
        self.assertNotEqual(base, build_cache_key("u-2", True, facts))

    def test_key_format(self):
        key = build_cache_key("u-1", False, {"goal": "strength"})
        prefix = "program:v1:user=u-1:tier=free:facts="
        self.assertTrue(key.startswith(prefix))
        self.assertEqual(len(key) - len(prefix), 16)

    def test_none_facts_match_empty_facts(self):
        self.assertEqual(
            build_cache_key("u-1", True, None),
            build_cache_key("u-1", True, {}),
        )

    def test_missing_user_id_rejected(self):
        for user_id in (None, "", "   "):
            with self.assertRaises(ConfigurationError):
                build_cache_key(user_id, True, {"goal": "strength"})

    def test_non_mapping_facts_rejected(self):
        with self.assertRaises(ConfigurationError):
            canonicalize_facts(["goal", "strength"])


if __name__ == "__main__":
    unittest.main()
