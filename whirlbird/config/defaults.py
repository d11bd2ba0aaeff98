from __future__ import annotations

from pathlib import Path

import config as legacy_config

from .schema import ApiLimits, GameTuning, Paths, Settings


def from_legacy_config() -> Settings:
    project_dir = Path(getattr(legacy_config, "PROJECT_DIR", Path(__file__).resolve().parents[2]))
    paths = Paths(
        project_dir=project_dir,
        data_dir=Path(legacy_config.DATA_DIR),
        store_db=Path(legacy_config.STORE_DB),
        best_score_file=Path(legacy_config.BEST_SCORE_FILE),
        sim_results=Path(legacy_config.SIM_RESULTS),
    )
    game = GameTuning(
        base_speed=float(getattr(legacy_config, "BASE_SPEED", 18.0)),
        max_speed=float(getattr(legacy_config, "MAX_SPEED", 38.0)),
        speed_per_point=float(getattr(legacy_config, "SPEED_PER_POINT", 0.2)),
        points_per_level=int(getattr(legacy_config, "POINTS_PER_LEVEL", 5)),
        max_frame_delta=float(getattr(legacy_config, "MAX_FRAME_DELTA", 0.04)),
        hit_margin=float(getattr(legacy_config, "HIT_MARGIN", 0.08)),
        spawn_distance=float(getattr(legacy_config, "SPAWN_DISTANCE", 100.0)),
        despawn_distance=float(getattr(legacy_config, "DESPAWN_DISTANCE", 14.0)),
        spawn_interval=float(getattr(legacy_config, "SPAWN_INTERVAL", 2.2)),
        fps=int(getattr(legacy_config, "FPS", 60)),
    )
    api = ApiLimits(
        max_score=int(getattr(legacy_config, "MAX_SCORE", 9999)),
        leaderboard_size=int(getattr(legacy_config, "LEADERBOARD_SIZE", 3)),
        rate_window_sec=float(getattr(legacy_config, "RATE_WINDOW_SECONDS", 2.0)),
        publish_cooldown_sec=float(getattr(legacy_config, "PUBLISH_COOLDOWN_SECONDS", 10.0)),
        max_body_bytes=int(getattr(legacy_config, "MAX_BODY_BYTES", 256)),
        username_max_length=int(getattr(legacy_config, "USERNAME_MAX_LENGTH", 30)),
        placeholder_username=str(getattr(legacy_config, "PLACEHOLDER_USERNAME", "anonymous")),
    )
    return Settings(
        store_backend=str(getattr(legacy_config, "STORE_BACKEND", "memory")),
        paths=paths,
        game=game,
        api=api,
        game_title=str(getattr(legacy_config, "GAME_TITLE", "Whirlbird")),
        api_url=str(getattr(legacy_config, "API_URL", "http://127.0.0.1:8000")),
        public_url=str(getattr(legacy_config, "PUBLIC_URL", "https://whirlbird.local")),
        server_host=str(getattr(legacy_config, "SERVER_HOST", "0.0.0.0")),
        server_port=int(getattr(legacy_config, "SERVER_PORT", 8000)),
    )
