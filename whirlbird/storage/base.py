from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class SortedEntry:
    member: str
    score: float


class ScoreStore(Protocol):
    """Key-value strings plus sorted sets.

    The `set_max`, `z_add_gt` and `claim_window` primitives must be atomic
    per key; callers rely on them instead of taking their own locks.
    """

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...

    def z_range(self, key: str, start: int, stop: int, *, reverse: bool = False) -> list[SortedEntry]: ...
    def z_score(self, key: str, member: str) -> float | None: ...
    def z_add(self, key: str, member: str, score: float) -> None: ...

    def set_max(self, key: str, value: int) -> int: ...
    def z_add_gt(self, key: str, member: str, score: float) -> bool: ...
    def claim_window(self, key: str, now: float, window: float) -> bool: ...


def to_millis(ts: float) -> str:
    return str(int(ts * 1000))


def from_millis(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        return int(raw) / 1000.0
    except ValueError:
        return None


def slice_bounds(length: int, start: int, stop: int) -> tuple[int, int]:
    """Inclusive start/stop with negative indices, as sorted-set range calls use."""
    if start < 0:
        start = max(0, length + start)
    if stop < 0:
        stop = length + stop
    return start, min(stop, length - 1) + 1
