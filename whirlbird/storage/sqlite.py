"""
SQLite-backed store for score persistence.
Keeps string keys in `kv` and sorted sets in `zset`.
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

from .base import SortedEntry, from_millis, slice_bounds, to_millis


class SQLiteStore:
    """Handles all interaction with the SQLite database."""

    def __init__(self, db_file: str | Path):
        # check_same_thread=False: request handlers run in worker threads
        self.conn = sqlite3.connect(str(db_file), check_same_thread=False)
        self._lock = threading.Lock()
        self.setup()
        print(f"[store] SQLite store opened at {db_file}", flush=True)

    def setup(self):
        """Creates tables if they don't exist."""
        with self._lock, self.conn:
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS zset (
                    key TEXT NOT NULL,
                    member TEXT NOT NULL,
                    score REAL NOT NULL,
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    UNIQUE(key, member)
                )
            """)

    def close(self):
        self.conn.close()

    # ---- key-value ----------------------------------------------------
    def get(self, key: str) -> str | None:
        with self._lock:
            row = self.conn.execute("SELECT value FROM kv WHERE key=?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._lock, self.conn:
            self.conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, str(value)),
            )

    def set_max(self, key: str, value: int) -> int:
        with self._lock, self.conn:
            row = self.conn.execute("SELECT value FROM kv WHERE key=?", (key,)).fetchone()
            prev = int(row[0]) if row else 0
            self.conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = MAX(CAST(value AS INTEGER), excluded.value)",
                (key, int(value)),
            )
            return prev

    def claim_window(self, key: str, now: float, window: float) -> bool:
        with self._lock, self.conn:
            row = self.conn.execute("SELECT value FROM kv WHERE key=?", (key,)).fetchone()
            last = from_millis(row[0]) if row else None
            if last is not None and now - last < window:
                return False
            self.conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, to_millis(now)),
            )
            return True

    # ---- sorted sets --------------------------------------------------
    def z_range(self, key: str, start: int, stop: int, *, reverse: bool = False) -> list[SortedEntry]:
        with self._lock:
            rows = self.conn.execute(
                "SELECT member, score FROM zset WHERE key=? ORDER BY score, seq", (key,)
            ).fetchall()
        if reverse:
            rows.reverse()
        lo, hi = slice_bounds(len(rows), start, stop)
        return [SortedEntry(member, score) for member, score in rows[lo:hi]]

    def z_score(self, key: str, member: str) -> float | None:
        with self._lock:
            row = self.conn.execute(
                "SELECT score FROM zset WHERE key=? AND member=?", (key, member)
            ).fetchone()
        return row[0] if row else None

    def z_add(self, key: str, member: str, score: float) -> None:
        with self._lock, self.conn:
            self.conn.execute(
                "INSERT INTO zset (key, member, score) VALUES (?, ?, ?) "
                "ON CONFLICT(key, member) DO UPDATE SET score = excluded.score",
                (key, member, float(score)),
            )

    def z_add_gt(self, key: str, member: str, score: float) -> bool:
        with self._lock, self.conn:
            cur = self.conn.execute(
                "INSERT INTO zset (key, member, score) VALUES (?, ?, ?) "
                "ON CONFLICT(key, member) DO UPDATE SET score = excluded.score "
                "WHERE excluded.score > zset.score",
                (key, member, float(score)),
            )
            return cur.rowcount > 0
