from __future__ import annotations

from whirlbird.config.schema import Settings
from whirlbird.storage.base import ScoreStore
from whirlbird.storage.memory import InMemoryStore
from whirlbird.storage.sqlite import SQLiteStore


def _sqlite(settings: Settings) -> SQLiteStore:
    settings.paths.ensure_dirs()
    return SQLiteStore(settings.paths.store_db)


_STORES = {
    "memory": lambda settings: InMemoryStore(),
    "sqlite": _sqlite,
}


def load_store(settings: Settings) -> ScoreStore:
    try:
        factory = _STORES[settings.store_backend]
    except KeyError as exc:
        raise ValueError(
            f"Unknown store backend: {settings.store_backend!r}. Expected one of {sorted(_STORES)}"
        ) from exc
    return factory(settings)


def available_stores() -> list[str]:
    return sorted(_STORES)
