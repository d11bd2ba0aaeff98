#!/usr/bin/env python3
"""Headless game simulator — runs full sessions with an autopilot, records replay data."""

import random

import numpy as np

from game_engine import GATE_OPEN_H, HeadlessScene, ObstacleManager, ObstacleOptions, ObstacleType
from whirlbird.config.loader import load_settings
from whirlbird.game.session import Controls, GameSession

# Safety limit on simulated time per run (seconds)
MAX_SECONDS = 180.0


class Autopilot:
    """Steers toward the opening of the nearest gate that has not been judged yet."""

    def __init__(self, deadband=0.2):
        self.deadband = deadband

    def next_gate(self, session):
        ahead = [
            o for o in session.engine.obstacles
            if o.type is ObstacleType.GATE and not o.passed
        ]
        return max(ahead, key=lambda o: o.z, default=None)

    def controls(self, session):
        gate = self.next_gate(session)
        if gate is None:
            return Controls()
        target = session.player.target
        want_x = gate.lane
        want_y = gate.open_min_y + GATE_OPEN_H / 2
        dx = want_x - target.x
        dy = want_y - target.y
        return Controls(
            left=dx < -self.deadband,
            right=dx > self.deadband,
            down=dy < -self.deadband,
            up=dy > self.deadband,
        )


def build_session(seed=0, settings=None, reporter=None, executor=None, best_cache=None):
    settings = settings or load_settings()
    tuning = settings.game
    engine = ObstacleManager(
        HeadlessScene(),
        options=ObstacleOptions(
            speed=tuning.base_speed,
            spawn_distance=tuning.spawn_distance,
            despawn_distance=tuning.despawn_distance,
            spawn_interval=tuning.spawn_interval,
        ),
        rng=random.Random(seed),
    )
    return GameSession(engine, tuning, reporter=reporter, executor=executor, best_cache=best_cache)


def simulate(seed=0, seconds=MAX_SECONDS, fps=None, reporter=None, executor=None, best_cache=None,
             record_every=10):
    """
    Run one headless session until game over or the time limit.

    Returns:
        dict: {
            'seed': int,
            'score': int,
            'best': int (local best after the run, reconciled with the server if reporting),
            'alive_time': float (seconds survived),
            'waves': int (waves spawned),
            'game_over': bool,
            'frames': list of {frame, x, y, score, obstacles} snapshots
        }
    """
    settings = load_settings()
    fps = fps or settings.game.fps
    dt = 1.0 / fps
    session = build_session(seed, settings, reporter=reporter, executor=executor, best_cache=best_cache)
    pilot = Autopilot()
    frames = []

    session.start()
    max_frames = int(seconds * fps)
    while session.running and session.frame < max_frames:
        session.tick(dt, pilot.controls(session))
        if session.frame % record_every == 0:
            frames.append({
                "frame": session.frame,
                "x": round(session.player.position.x, 3),
                "y": round(session.player.position.y, 3),
                "score": session.score,
                "obstacles": len(session.engine.obstacles),
            })

    session.close()
    return {
        "seed": seed,
        "score": session.score,
        "best": session.best,
        "alive_time": round(session.elapsed, 4),
        "waves": session.engine.wave_index,
        "game_over": not session.running,
        "frames": frames,
    }


def simulate_batch(seeds, **kwargs):
    """Run several seeds sequentially."""
    return [simulate(seed, **kwargs) for seed in seeds]


def summarize_runs(runs):
    """Aggregate stats over simulate() results."""
    if not runs:
        return {"runs": 0}
    scores = np.array([r["score"] for r in runs], dtype=float)
    alive = np.array([r["alive_time"] for r in runs], dtype=float)
    return {
        "runs": len(runs),
        "avg_score": round(float(np.mean(scores)), 2),
        "std_score": round(float(np.std(scores)), 2),
        "min_score": int(np.min(scores)),
        "max_score": int(np.max(scores)),
        "avg_alive": round(float(np.mean(alive)), 2),
        "std_alive": round(float(np.std(alive)), 2),
    }


if __name__ == "__main__":
    result = simulate(seed=42)
    print(f"Score: {result['score']}  alive: {result['alive_time']:.1f} sec  waves: {result['waves']}")
    print(f"Frames recorded: {len(result['frames'])}")
