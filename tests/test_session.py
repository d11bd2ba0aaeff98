"""Tests for whirlbird/game/session.py — state machine, scoring and score submission."""

import random
import sys
from concurrent.futures import Executor, Future
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from game_engine import GATE_Y, LANES, HeadlessScene, ObstacleManager, ObstacleOptions, ObstacleType
from whirlbird.config.loader import load_settings
from whirlbird.game.session import (
    Controls, FileBestCache, GameSession, InvalidTransition, MemoryBestCache,
    ScoreReceipt, SessionState,
)

TUNING = load_settings().game


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


class ManualExecutor(Executor):
    """Holds submitted work until complete() is called."""

    def __init__(self):
        self.queued = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self.queued.append((future, fn, args))
        return future

    def complete(self):
        for future, fn, args in self.queued:
            future.set_result(fn(*args))
        self.queued = []


class FakeReporter:
    def __init__(self, best=0, fail=False):
        self.best = best
        self.fail = fail
        self.submitted = []

    def submit(self, score):
        self.submitted.append(score)
        if self.fail:
            raise ConnectionError("offline")
        new_best = score > self.best
        self.best = max(self.best, score)
        return ScoreReceipt(new_best=new_best, best_score=self.best)


def make_session(**kwargs):
    engine = ObstacleManager(HeadlessScene(), options=ObstacleOptions(), rng=random.Random(0))
    return GameSession(engine, TUNING, **kwargs)


def gate_ahead(session, lane, z=-0.2):
    session.engine._spawn(ObstacleType.GATE, lane, GATE_Y, set())
    session.engine.obstacles[-1].handle.position.z = z


class TestTransitions:
    def test_initial_state_idle(self):
        """A new session is idle with score 0."""
        s = make_session()
        assert s.state is SessionState.IDLE
        assert s.score == 0

    def test_start_from_idle(self):
        """start() moves idle -> running and bumps the generation."""
        s = make_session()
        s.start()
        assert s.state is SessionState.RUNNING
        assert s.generation == 1

    def test_start_while_running_rejected(self):
        """start() is not allowed while a run is in progress."""
        s = make_session()
        s.start()
        with pytest.raises(InvalidTransition):
            s.start()

    def test_restart_only_from_game_over(self):
        """restart() is rejected from idle and running."""
        s = make_session()
        with pytest.raises(InvalidTransition):
            s.restart()
        s.start()
        with pytest.raises(InvalidTransition):
            s.restart()
        s.game_over()
        s.restart()
        assert s.state is SessionState.RUNNING

    def test_start_resets_score_player_and_engine(self):
        """start() zeroes score, returns the player to the start pose and clears obstacles."""
        s = make_session()
        s.start()
        s.score = 7
        s.player.nudge(4.0, 2.0)
        s.player.update(0.04)
        s.engine.spawn_wave()
        s.game_over()
        s.start()
        assert s.score == 0
        assert s.player.position.x == 0.0
        assert s.engine.obstacles == ()
        assert s.engine.wave_index == 0

    def test_game_over_idempotent(self):
        """A second game_over() does nothing."""
        reporter = FakeReporter()
        s = make_session(reporter=reporter, executor=InlineExecutor())
        s.start()
        s.score = 3
        s.game_over()
        s.game_over()
        assert reporter.submitted == [3]

    def test_game_over_ignored_when_idle(self):
        """game_over() before start leaves the session idle."""
        s = make_session()
        s.game_over()
        assert s.state is SessionState.IDLE


class TestScoring:
    def test_gate_pass_scores(self):
        """Flying through a gate adds one point."""
        s = make_session()
        s.start()
        s.player.position.set(LANES[2], GATE_Y + 1.0, 0.0)
        s.player.target.set(LANES[2], GATE_Y + 1.0, 0.0)
        gate_ahead(s, LANES[2])
        s.tick(0.02)
        assert s.score == 1
        assert s.running

    def test_gate_miss_ends_run(self):
        """Missing a gate is game over."""
        s = make_session()
        s.start()
        gate_ahead(s, LANES[0])
        s.tick(0.02)
        assert s.state is SessionState.GAME_OVER

    def test_hazard_collision_ends_run(self):
        """Hitting a hazard is game over."""
        s = make_session()
        s.start()
        s.engine._spawn_ahead(ObstacleType.RING, 0.0, 1.5, 0)
        s.engine.obstacles[-1].handle.position.z = -0.3
        s.tick(0.02)
        assert s.state is SessionState.GAME_OVER

    def test_delta_is_clamped(self):
        """A long frame stall advances the world by at most the frame cap."""
        s = make_session()
        s.start()
        s.tick(5.0)
        assert s.elapsed == pytest.approx(TUNING.max_frame_delta)
        s.tick(-1.0)
        assert s.elapsed == pytest.approx(TUNING.max_frame_delta)

    def test_speed_and_difficulty_follow_score(self):
        """Speed and difficulty are pushed from the score every frame."""
        s = make_session()
        s.start()
        s.score = 12
        s.tick(0.01)
        assert s.engine.options.speed == pytest.approx(min(18 + 12 * 0.2, 38))
        assert s.engine.difficulty == 2
        s.score = 500
        s.tick(0.01)
        assert s.engine.options.speed == pytest.approx(38)

    def test_controls_move_player(self):
        """Held controls steer the player."""
        s = make_session()
        s.start()
        for _ in range(10):
            s.tick(0.02, Controls(right=True, up=True))
        assert s.player.position.x > 0
        assert s.player.position.y > 1.5

    def test_frozen_after_game_over(self):
        """Ticks after game over do not move anything."""
        s = make_session()
        s.start()
        s.engine.spawn_wave()
        s.game_over()
        z = s.engine.obstacles[0].z
        s.tick(0.02)
        assert s.engine.obstacles[0].z == z


class TestBestScore:
    def test_best_updates_only_when_greater(self):
        """Local best rises on a strictly greater score and persists to the cache."""
        cache = MemoryBestCache(best=5)
        s = make_session(best_cache=cache)
        s.start()
        s.score = 5
        s.game_over()
        assert s.last_summary.new_best is False
        s.restart()
        s.score = 8
        s.game_over()
        assert s.best == 8
        assert cache.best == 8
        assert s.last_summary.new_best is True

    def test_file_cache_roundtrip(self, tmp_path):
        """FileBestCache reads back what it saved and defaults to 0."""
        cache = FileBestCache(tmp_path / "nested" / "best.json")
        assert cache.load() == 0
        cache.save(42)
        assert FileBestCache(tmp_path / "nested" / "best.json").load() == 42

    def test_file_cache_corrupt_is_zero(self, tmp_path):
        """A corrupt cache file reads as 0."""
        path = tmp_path / "best.json"
        path.write_text("not json")
        assert FileBestCache(path).load() == 0

    @pytest.mark.parametrize("content", ['{"best": null}', '{"best": [1]}', "[]"])
    def test_file_cache_bad_value_is_zero(self, tmp_path, content):
        """A cache file with a malformed best reads as 0 and the session still starts."""
        path = tmp_path / "best.json"
        path.write_text(content)
        assert FileBestCache(path).load() == 0
        assert make_session(best_cache=FileBestCache(path)).best == 0


class TestScoreSubmission:
    def test_server_best_reconciled(self):
        """A higher best from the server raises the local best."""
        reporter = FakeReporter(best=50)
        s = make_session(reporter=reporter, executor=InlineExecutor())
        s.start()
        s.score = 10
        s.game_over()
        s.poll()
        assert s.best == 50

    def test_stale_response_discarded(self):
        """A response arriving after a restart does not touch the new run."""
        executor = ManualExecutor()
        reporter = FakeReporter(best=99)
        s = make_session(reporter=reporter, executor=executor)
        s.start()
        s.score = 4
        s.game_over()
        s.restart()
        executor.complete()
        s.poll()
        assert s.best == 4
        assert s.score == 0
        assert s.pending_submissions == 0

    def test_submission_failure_keeps_state(self):
        """Network failure leaves score and best untouched."""
        s = make_session(reporter=FakeReporter(fail=True), executor=InlineExecutor())
        s.start()
        s.score = 6
        s.game_over()
        s.poll()
        assert s.best == 6
        assert s.score == 6
        assert s.state is SessionState.GAME_OVER

    def test_submission_captures_final_score(self):
        """The submitted score is the one at game over, not later values."""
        executor = ManualExecutor()
        reporter = FakeReporter()
        s = make_session(reporter=reporter, executor=executor)
        s.start()
        s.score = 9
        s.game_over()
        s.restart()
        s.score = 1
        executor.complete()
        assert reporter.submitted == [9]

    def test_on_game_over_listener(self):
        """The game-over listener receives the run summary."""
        seen = []
        s = make_session(on_game_over=seen.append)
        s.start()
        s.score = 2
        s.game_over()
        assert len(seen) == 1
        assert seen[0].score == 2
        assert seen[0].generation == 1
