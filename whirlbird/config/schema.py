from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Literal

StoreBackendName = Literal["memory", "sqlite"]


@dataclass(frozen=True)
class Paths:
    project_dir: Path
    data_dir: Path

    store_db: Path
    best_score_file: Path
    sim_results: Path

    def ensure_dirs(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class GameTuning:
    base_speed: float
    max_speed: float
    speed_per_point: float
    points_per_level: int
    max_frame_delta: float
    hit_margin: float
    spawn_distance: float
    despawn_distance: float
    spawn_interval: float
    fps: int

    def speed_for(self, score: int) -> float:
        return min(self.base_speed + score * self.speed_per_point, self.max_speed)

    def difficulty_for(self, score: int) -> int:
        return score // self.points_per_level


@dataclass(frozen=True)
class ApiLimits:
    max_score: int
    leaderboard_size: int
    rate_window_sec: float
    publish_cooldown_sec: float
    max_body_bytes: int
    username_max_length: int
    placeholder_username: str


@dataclass(frozen=True)
class Settings:
    store_backend: StoreBackendName
    paths: Paths
    game: GameTuning
    api: ApiLimits

    game_title: str
    api_url: str
    public_url: str
    server_host: str
    server_port: int

    def with_overrides(self, **kwargs) -> "Settings":
        return replace(self, **kwargs)
