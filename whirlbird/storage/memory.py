from __future__ import annotations

import threading

from .base import SortedEntry, from_millis, slice_bounds, to_millis


class InMemoryStore:
    """Process-local store. One lock makes every primitive atomic."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._kv: dict[str, str] = {}
        # key -> member -> (score, insertion seq)
        self._zsets: dict[str, dict[str, tuple[float, int]]] = {}
        self._seq = 0

    # ---- key-value ----------------------------------------------------
    def get(self, key: str) -> str | None:
        with self._lock:
            return self._kv.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._kv[key] = str(value)

    def set_max(self, key: str, value: int) -> int:
        with self._lock:
            raw = self._kv.get(key)
            prev = int(raw) if raw is not None else 0
            if value > prev:
                self._kv[key] = str(value)
            return prev

    def claim_window(self, key: str, now: float, window: float) -> bool:
        with self._lock:
            last = from_millis(self._kv.get(key))
            if last is not None and now - last < window:
                return False
            self._kv[key] = to_millis(now)
            return True

    # ---- sorted sets --------------------------------------------------
    def z_range(self, key: str, start: int, stop: int, *, reverse: bool = False) -> list[SortedEntry]:
        with self._lock:
            items = sorted(self._zsets.get(key, {}).items(), key=lambda kv: kv[1])
        if reverse:
            items.reverse()
        lo, hi = slice_bounds(len(items), start, stop)
        return [SortedEntry(member, score) for member, (score, _) in items[lo:hi]]

    def z_score(self, key: str, member: str) -> float | None:
        with self._lock:
            entry = self._zsets.get(key, {}).get(member)
        return entry[0] if entry is not None else None

    def z_add(self, key: str, member: str, score: float) -> None:
        with self._lock:
            self._z_write(key, member, score)

    def z_add_gt(self, key: str, member: str, score: float) -> bool:
        with self._lock:
            current = self._zsets.get(key, {}).get(member)
            if current is not None and score <= current[0]:
                return False
            self._z_write(key, member, score)
            return True

    def _z_write(self, key: str, member: str, score: float) -> None:
        zset = self._zsets.setdefault(key, {})
        if member in zset:
            seq = zset[member][1]
        else:
            self._seq += 1
            seq = self._seq
        zset[member] = (float(score), seq)
