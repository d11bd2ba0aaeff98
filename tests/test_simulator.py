"""Tests for simulator.py — headless game simulation."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from game_engine import GATE_Y, LANES, ObstacleType
from simulator import Autopilot, build_session, simulate, simulate_batch, summarize_runs


class TestSimulate:
    def test_simulate_basic(self):
        """A short run completes and reports time alive."""
        result = simulate(seed=42, seconds=5)
        assert result["alive_time"] > 0
        assert result["seed"] == 42

    def test_simulate_deterministic(self):
        """Same seed = same run."""
        r1 = simulate(seed=123, seconds=20)
        r2 = simulate(seed=123, seconds=20)
        assert r1["score"] == r2["score"]
        assert r1["alive_time"] == r2["alive_time"]
        assert r1["frames"] == r2["frames"]

    def test_autopilot_clears_first_gate(self):
        """The autopilot flies through at least the opening gate."""
        result = simulate(seed=0, seconds=20)
        assert result["score"] >= 1

    def test_simulate_returns_frames(self):
        """Result contains snapshots with expected keys."""
        result = simulate(seed=42, seconds=5, record_every=30)
        assert len(result["frames"]) > 0
        frame = result["frames"][0]
        for key in ("frame", "x", "y", "score", "obstacles"):
            assert key in frame

    def test_time_limit_respected(self):
        """A run never outlasts the requested time."""
        result = simulate(seed=1, seconds=3)
        assert result["alive_time"] <= 3.0 + 1e-6
        assert result["game_over"] is False


class TestAutopilot:
    def test_no_gate_no_input(self):
        """With nothing on screen the autopilot holds still."""
        session = build_session(seed=0)
        session.start()
        c = Autopilot().controls(session)
        assert (c.dx, c.dy) == (0, 0)

    def test_steers_toward_gate(self):
        """The autopilot heads for the gate lane and down into the opening."""
        session = build_session(seed=0)
        session.start()
        session.engine._spawn(ObstacleType.GATE, LANES[4], GATE_Y, set())
        c = Autopilot().controls(session)
        assert c.dx == 1
        assert c.dy == -1


class TestSummarize:
    def test_empty(self):
        assert summarize_runs([]) == {"runs": 0}

    def test_stats(self):
        """Aggregates match hand-computed values."""
        runs = [
            {"score": 2, "alive_time": 10.0},
            {"score": 4, "alive_time": 20.0},
        ]
        s = summarize_runs(runs)
        assert s["runs"] == 2
        assert s["avg_score"] == 3.0
        assert s["min_score"] == 2
        assert s["max_score"] == 4
        assert s["avg_alive"] == 15.0
        assert s["std_score"] == 1.0

    def test_batch(self):
        """simulate_batch runs one session per seed."""
        runs = simulate_batch([0, 1], seconds=2)
        assert [r["seed"] for r in runs] == [0, 1]
