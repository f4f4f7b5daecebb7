"""
Persistence writer: one history row per returned program, plus a cache
upsert for freshly generated programs.
"""

import logging

from program_pipeline.cache_store import DEFAULT_TTL_SECONDS, utc_now
from program_pipeline.errors import PersistenceError
from program_pipeline.program_types import SOURCE_CACHE_HIT, SOURCE_FRESH


logger = logging.getLogger(__name__)


class PersistenceWriter:
    """
    Writes program history and refreshes the cache.

    The history row is the system of record; the cache write is an
    optimization and can fail without failing the request.
    """

    def __init__(self, history_store, cache_store, ttl_seconds=DEFAULT_TTL_SECONDS, clock=utc_now):
        self.history_store = history_store
        self.cache_store = cache_store
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def persist(self, program, user_id, source, cache_key=None):
        """
        Record one returned program.

        Args:
            program: WeeklyProgram being returned to the user
            user_id: Owner of the program
            source: "fresh" or "cache-hit"
            cache_key: Key for the cache upsert (required for fresh programs)

        Returns:
            id of the new history row

        Raises:
            PersistenceError when the history row could not be written
        """
        if source not in (SOURCE_FRESH, SOURCE_CACHE_HIT):
            raise ValueError(f"Unknown program source: {source!r}")

        program_json = program.to_json()
        history_error = None
        record_id = None
        try:
            record_id = self.history_store.append_history(
                user_id=user_id,
                source=source,
                program_json=program_json,
                created_at=self.clock(),
                cache_key=cache_key,
            )
        except PersistenceError as exc:
            logger.error("History append failed for user %s: %s", user_id, exc)
            history_error = exc

        # A fresh program has already been paid for; cache it even if the
        # history write failed.
        if source == SOURCE_FRESH and cache_key:
            self.cache_store.put(cache_key, program_json, ttl_seconds=self.ttl_seconds)

        if history_error is not None:
            raise history_error
        return record_id
