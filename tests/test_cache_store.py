import os
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from program_pipeline.cache_store import CacheStore
from program_pipeline.errors import CacheError
from program_pipeline.program_db import ProgramDB
from program_pipeline.program_types import ProgramDay, ExercisePrescription, TrainingProgramDraft, WeeklyProgram


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def _program():
    draft = TrainingProgramDraft(
        days=[ProgramDay("Legs", [ExercisePrescription("Back Squat", 5, 5, rpe=8, load_text="185x5")], day_of_week=1)],
        program_name="Test Week",
    )
    return WeeklyProgram(draft=draft, generated_at="2025-03-03T09:00:00+00:00")


class CacheStoreTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db = ProgramDB(os.path.join(self.tmp.name, "programs.db"))
        self.db.init_schema()
        self.clock = FakeClock(datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc))
        self.store = CacheStore(self.db, clock=self.clock)

    def tearDown(self):
        self.db.close()
        self.tmp.cleanup()

    def test_round_trip_within_ttl(self):
        program = _program()
        self.assertTrue(self.store.put("k1", program.to_json(), ttl_seconds=24 * 3600))

        self.clock.advance(hours=23, minutes=59)
        cached = self.store.get_program("k1")
        self.assertEqual(cached.to_dict(), program.to_dict())

    def test_expired_entry_is_a_miss(self):
        self.store.put("k1", _program().to_json(), ttl_seconds=24 * 3600)
        self.clock.advance(hours=24)
        self.assertIsNone(self.store.get("k1"))
        self.assertIsNone(self.store.get_program("k1"))

    def test_missing_key_is_a_miss(self):
        self.assertIsNone(self.store.get("nope"))

    def test_undecodable_entry_is_a_miss(self):
        self.store.put("k1", "{not json", ttl_seconds=60)
        with self.assertLogs("program_pipeline.cache_store", level="WARNING"):
            self.assertIsNone(self.store.get_program("k1"))

    def test_backend_read_failure_is_a_miss(self):
        backend = MagicMock()
        backend.get_cache_entry.side_effect = CacheError("disk I/O error")
        store = CacheStore(backend, clock=self.clock)
        with self.assertLogs("program_pipeline.cache_store", level="WARNING"):
            self.assertIsNone(store.get("k1"))

    def test_backend_write_failure_is_swallowed(self):
        backend = MagicMock()
        backend.upsert_cache_entry.side_effect = CacheError("database is locked")
        store = CacheStore(backend, clock=self.clock)
        with self.assertLogs("program_pipeline.cache_store", level="WARNING"):
            self.assertFalse(store.put("k1", "{}", ttl_seconds=60))

    def test_put_sets_expiry_from_ttl(self):
        self.store.put("k1", "{}", ttl_seconds=3600)
        entry = self.db.get_cache_entry("k1")
        self.assertEqual(entry.expires_at - entry.created_at, timedelta(hours=1))


if __name__ == "__main__":
    unittest.main()
