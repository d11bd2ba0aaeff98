from __future__ import annotations

import importlib.util
from dataclasses import dataclass

from whirlbird.config.schema import Settings
from whirlbird.storage.registry import available_stores


@dataclass(frozen=True)
class Check:
    name: str
    ok: bool
    detail: str


def _has_module(name: str) -> bool:
    return importlib.util.find_spec(name) is not None


def run_doctor(settings: Settings) -> list[Check]:
    checks: list[Check] = []
    checks.append(Check("store_backend", settings.store_backend in available_stores(),
                        f"store={settings.store_backend}"))
    checks.append(Check("fastapi", _has_module("fastapi"), "required for the HTTP API"))
    checks.append(Check("pydantic", _has_module("pydantic"), "required for API schemas"))
    checks.append(Check("uvicorn", _has_module("uvicorn"), "required for `whirlbird serve`"))
    checks.append(Check("numpy", _has_module("numpy"), "required for simulation summaries"))
    checks.append(Check("requests", _has_module("requests"), "required for HTTP score reporting"))

    game = settings.game
    checks.append(Check("speed_range", 0 < game.base_speed <= game.max_speed,
                        f"base={game.base_speed} max={game.max_speed}"))
    checks.append(Check("frame_delta", 0 < game.max_frame_delta < game.spawn_interval,
                        f"max_frame_delta={game.max_frame_delta}"))

    paths = settings.paths
    if settings.store_backend == "sqlite":
        checks.append(Check("data_dir", paths.data_dir.exists(), str(paths.data_dir)))
    return checks
