"""
Cache adapter with availability-first semantics.

Expiry is a predicate evaluated on read; nothing is ever evicted here.
Backend failures never block generation: a failed read is a miss and a
failed write is logged and dropped.
"""

import logging
from datetime import datetime, timedelta, timezone

from program_pipeline.errors import CacheError
from program_pipeline.program_types import CachedProgramEntry, WeeklyProgram


logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


def utc_now():
    return datetime.now(timezone.utc)


class CacheStore:
    """Key -> serialized program store over a backend with get/upsert methods."""

    def __init__(self, backend, clock=utc_now):
        self.backend = backend
        self.clock = clock

    def get(self, key):
        """Return a live CachedProgramEntry, or None on miss, expiry or error."""
        try:
            entry = self.backend.get_cache_entry(key)
        except CacheError as exc:
            logger.warning("Cache read failed for %s, treating as miss: %s", key, exc)
            return None

        if entry is None:
            logger.info("Cache miss for %s", key)
            return None
        if entry.is_expired(self.clock()):
            logger.info("Cache entry for %s expired at %s", key, entry.expires_at.isoformat())
            return None

        logger.info("Cache hit for %s", key)
        return entry

    def get_program(self, key):
        """Return the decoded WeeklyProgram for a live entry, or None."""
        entry = self.get(key)
        if entry is None:
            return None
        try:
            return WeeklyProgram.from_json(entry.program)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Cached program for %s could not be decoded, treating as miss: %s", key, exc)
            return None

    def put(self, key, program, ttl_seconds=DEFAULT_TTL_SECONDS):
        """
        Replace the entry for `key`. `program` is the serialized program text.

        Returns True when written, False when the write failed (logged).
        """
        created_at = self.clock()
        entry = CachedProgramEntry(
            key=key,
            program=program,
            created_at=created_at,
            expires_at=created_at + timedelta(seconds=ttl_seconds),
        )
        try:
            self.backend.upsert_cache_entry(entry)
        except CacheError as exc:
            logger.warning("Cache write failed for %s, continuing without cache: %s", key, exc)
            return False
        return True
