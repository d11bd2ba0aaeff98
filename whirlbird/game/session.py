"""Game session state machine.

Owns score, best score and the idle/running/game-over state, and drives the
obstacle engine once per frame. Score submission happens on an executor;
results are applied at frame boundaries by `poll()` and only when they belong
to the current run.
"""

from __future__ import annotations

import enum
import json
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

from game_engine import ObstacleCallbacks, ObstacleManager, Player
from whirlbird.config.schema import GameTuning


class SessionState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    GAME_OVER = "game_over"


class InvalidTransition(RuntimeError):
    pass


@dataclass(frozen=True)
class Controls:
    left: bool = False
    right: bool = False
    up: bool = False
    down: bool = False

    @property
    def dx(self) -> int:
        return int(self.right) - int(self.left)

    @property
    def dy(self) -> int:
        return int(self.up) - int(self.down)


@dataclass(frozen=True)
class ScoreReceipt:
    new_best: bool
    best_score: int


@dataclass(frozen=True)
class GameOverSummary:
    score: int
    best: int
    new_best: bool
    generation: int


class ScoreReporter(Protocol):
    def submit(self, score: int) -> ScoreReceipt: ...


class BestScoreCache(Protocol):
    def load(self) -> int: ...
    def save(self, best: int) -> None: ...


class MemoryBestCache:
    def __init__(self, best: int = 0):
        self.best = best

    def load(self) -> int:
        return self.best

    def save(self, best: int) -> None:
        self.best = best


class FileBestCache:
    """Best score cached in a small JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> int:
        if not self.path.exists():
            return 0
        try:
            with open(self.path, "r") as f:
                return int(json.load(f).get("best", 0))
        except (ValueError, TypeError, OSError, AttributeError):
            return 0

    def save(self, best: int) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump({"best": int(best)}, f)


class GameSession:
    def __init__(
        self,
        engine: ObstacleManager,
        tuning: GameTuning,
        *,
        player: Player | None = None,
        reporter: ScoreReporter | None = None,
        best_cache: BestScoreCache | None = None,
        executor: Executor | None = None,
        on_game_over: Callable[[GameOverSummary], None] | None = None,
    ):
        self.engine = engine
        self.tuning = tuning
        self.player = player or Player()
        self.reporter = reporter
        self.best_cache = best_cache or MemoryBestCache()
        self.on_game_over = on_game_over

        self._owns_executor = executor is None and reporter is not None
        self._executor = executor
        if self._owns_executor:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ScoreReporter")
        self._pending: list[tuple[int, Future]] = []

        self.state = SessionState.IDLE
        self.score = 0
        self.best = self.best_cache.load()
        self.generation = 0
        self.frame = 0
        self.elapsed = 0.0
        self.last_summary: GameOverSummary | None = None

        self._callbacks = ObstacleCallbacks(on_pass=self._on_pass, on_miss=self.game_over)

    @property
    def running(self) -> bool:
        return self.state is SessionState.RUNNING

    # ---- transitions --------------------------------------------------
    def start(self):
        if self.state is SessionState.RUNNING:
            raise InvalidTransition("session is already running")
        self.generation += 1
        self.score = 0
        self.frame = 0
        self.elapsed = 0.0
        self.player.reset()
        self.engine.reset()
        self.engine.set_speed(self.tuning.base_speed)
        self.state = SessionState.RUNNING

    def restart(self):
        if self.state is not SessionState.GAME_OVER:
            raise InvalidTransition(f"cannot restart from {self.state.value}")
        self.start()

    def game_over(self):
        if self.state is not SessionState.RUNNING:
            return
        self.state = SessionState.GAME_OVER

        new_best = self.score > self.best
        if new_best:
            self.best = self.score
            self.best_cache.save(self.best)

        self.last_summary = GameOverSummary(self.score, self.best, new_best, self.generation)
        self._dispatch_submission(self.score, self.generation)
        if self.on_game_over is not None:
            self.on_game_over(self.last_summary)

    # ---- per-frame ----------------------------------------------------
    def tick(self, dt: float, controls: Controls | None = None):
        """Advance one rendered frame."""
        self.poll()
        if self.state is not SessionState.RUNNING:
            return

        dt = min(max(dt, 0.0), self.tuning.max_frame_delta)
        self.frame += 1
        self.elapsed += dt

        if controls is not None:
            self.player.steer(controls.dx, controls.dy, dt)
        self.player.update(dt)

        self.engine.set_speed(self.tuning.speed_for(self.score))
        self.engine.set_difficulty(self.tuning.difficulty_for(self.score))
        self.engine.update(dt, self.player.position, self._callbacks)

        if self.state is SessionState.RUNNING:
            if self.engine.check_collision(self.player.box(self.tuning.hit_margin)):
                self.game_over()

    def _on_pass(self):
        if self.state is SessionState.RUNNING:
            self.score += 1

    # ---- score submission ---------------------------------------------
    def _dispatch_submission(self, score: int, generation: int):
        if self.reporter is None or self._executor is None:
            return
        future = self._executor.submit(self.reporter.submit, score)
        self._pending.append((generation, future))

    def poll(self):
        """Apply finished submissions. Results from an earlier run are dropped."""
        still_pending = []
        for generation, future in self._pending:
            if not future.done():
                still_pending.append((generation, future))
                continue
            try:
                receipt = future.result()
            except Exception as exc:
                print(f"[session] Score submission failed, keeping local best ({exc})", flush=True)
                continue
            if generation != self.generation:
                print(f"[session] Discarding stale score response from run {generation}", flush=True)
                continue
            if receipt.best_score > self.best:
                self.best = receipt.best_score
                self.best_cache.save(self.best)
        self._pending = still_pending

    @property
    def pending_submissions(self) -> int:
        return len(self._pending)

    def close(self):
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
        self.poll()
