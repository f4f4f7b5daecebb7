"""
SQLite persistence for cached programs and program history.

The cache table is replace-by-key; the history table is append-only.
"""

import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime

from program_pipeline.errors import CacheError, PersistenceError
from program_pipeline.program_types import CachedProgramEntry, TrainingProgramRecord


def _to_text(value):
    return value.isoformat()


def _from_text(value):
    return datetime.fromisoformat(value)


class ProgramDB:
    """Small SQLite wrapper for the program cache and history tables."""

    def __init__(self, db_path):
        self.db_path = db_path
        parent = os.path.dirname(db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        self.conn = sqlite3.connect(db_path)
        self.conn.row_factory = sqlite3.Row

    def close(self):
        self.conn.close()

    @contextmanager
    def transaction(self):
        """Context manager for atomic write operations."""
        try:
            yield
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise

    def init_schema(self):
        """Create core schema if it does not already exist."""
        self.conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS program_cache (
                cache_key TEXT PRIMARY KEY,
                program_json TEXT NOT NULL,
                created_at TEXT NOT NULL,
                expires_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS program_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                source TEXT NOT NULL CHECK (source IN ('fresh', 'cache-hit')),
                cache_key TEXT,
                program_json TEXT NOT NULL,
                created_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_program_history_user
                ON program_history(user_id, created_at);
            """
        )
        self.conn.commit()

    # ------------------------------------------------------------------
    # Cache table
    # ------------------------------------------------------------------

    def get_cache_entry(self, cache_key):
        """Return the stored entry for a key (expired or not), or None."""
        try:
            row = self.conn.execute(
                """
                SELECT cache_key, program_json, created_at, expires_at
                FROM program_cache
                WHERE cache_key = ?
                """,
                (cache_key,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise CacheError(f"Cache read failed: {exc}") from exc

        if row is None:
            return None
        try:
            return CachedProgramEntry(
                key=row["cache_key"],
                program=row["program_json"],
                created_at=_from_text(row["created_at"]),
                expires_at=_from_text(row["expires_at"]),
            )
        except (TypeError, ValueError) as exc:
            raise CacheError(f"Corrupt cache row for {cache_key}: {exc}") from exc

    def upsert_cache_entry(self, entry):
        """Insert or replace the cache row for entry.key."""
        try:
            with self.transaction():
                self.conn.execute(
                    """
                    INSERT INTO program_cache (cache_key, program_json, created_at, expires_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(cache_key) DO UPDATE SET
                        program_json = excluded.program_json,
                        created_at = excluded.created_at,
                        expires_at = excluded.expires_at
                    """,
                    (entry.key, entry.program, _to_text(entry.created_at), _to_text(entry.expires_at)),
                )
        except sqlite3.Error as exc:
            raise CacheError(f"Cache write failed: {exc}") from exc

    # ------------------------------------------------------------------
    # History table
    # ------------------------------------------------------------------

    def append_history(self, user_id, source, program_json, created_at, cache_key=None):
        """Append one history row and return its id."""
        try:
            with self.transaction():
                cursor = self.conn.execute(
                    """
                    INSERT INTO program_history (user_id, source, cache_key, program_json, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (user_id, source, cache_key, program_json, _to_text(created_at)),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"History write failed for user {user_id}: {exc}") from exc
        return int(cursor.lastrowid)

    def list_history(self, user_id, limit=None):
        """Return a user's history rows, newest first."""
        query = """
            SELECT id, user_id, source, cache_key, program_json, created_at
            FROM program_history
            WHERE user_id = ?
            ORDER BY created_at DESC, id DESC
        """
        params = [user_id]
        if limit is not None:
            query += " LIMIT ?"
            params.append(int(limit))

        try:
            rows = self.conn.execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(f"History read failed for user {user_id}: {exc}") from exc

        return [
            TrainingProgramRecord(
                id=int(row["id"]),
                user_id=row["user_id"],
                created_at=_from_text(row["created_at"]),
                source=row["source"],
                cache_key=row["cache_key"],
                program=row["program_json"],
            )
            for row in rows
        ]

    def count_summary(self):
        """Return high-level row counts for quick sanity checks."""
        cache_count = self.conn.execute("SELECT COUNT(*) AS c FROM program_cache").fetchone()["c"]
        history_count = self.conn.execute("SELECT COUNT(*) AS c FROM program_history").fetchone()["c"]
        cache_hits = self.conn.execute(
            "SELECT COUNT(*) AS c FROM program_history WHERE source = 'cache-hit'"
        ).fetchone()["c"]
        return {
            "cache_entries": int(cache_count),
            "history_rows": int(history_count),
            "cache_hit_rows": int(cache_hits),
        }
