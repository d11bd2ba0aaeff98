"""Shared configuration for Whirlbird."""
from pathlib import Path

from game_engine import BASE_SPEED, SPAWN_DISTANCE, DESPAWN_DISTANCE, SPAWN_INTERVAL  # noqa: F401

# Directories
PROJECT_DIR = Path(__file__).parent
DATA_DIR = PROJECT_DIR / "data"

GAME_TITLE = "Whirlbird on Steroids"

# ── Game tuning ──
# Spawn/despawn distances and interval come from the engine constants to avoid drift.
MAX_SPEED = 38.0
SPEED_PER_POINT = 0.2
POINTS_PER_LEVEL = 5
MAX_FRAME_DELTA = 0.04  # seconds; caps tunnelling on frame stalls
HIT_MARGIN = 0.08
FPS = 60

# ── Score API ──
MAX_SCORE = 9999
LEADERBOARD_SIZE = 3
RATE_WINDOW_SECONDS = 2.0
PUBLISH_COOLDOWN_SECONDS = 10.0
MAX_BODY_BYTES = 256
USERNAME_MAX_LENGTH = 30
PLACEHOLDER_USERNAME = "anonymous"

# ── Store backend: "memory" or "sqlite" ──
STORE_BACKEND = "memory"

# ── Server ──
SERVER_HOST = "0.0.0.0"
SERVER_PORT = 8000
API_URL = f"http://127.0.0.1:{SERVER_PORT}"
PUBLIC_URL = "https://whirlbird.local"

# File paths
STORE_DB = DATA_DIR / "whirlbird.db"
BEST_SCORE_FILE = DATA_DIR / "best.json"
SIM_RESULTS = DATA_DIR / "sim_results.json"
