from __future__ import annotations

import os

from .defaults import from_legacy_config
from .schema import Settings


def load_settings(*, store_backend: str | None = None, api_url: str | None = None) -> Settings:
    """Load runtime settings from the legacy config module, then env, then keyword overrides."""
    settings = from_legacy_config()
    store_backend = store_backend or os.environ.get("WHIRLBIRD_STORE")
    api_url = api_url or os.environ.get("WHIRLBIRD_API_URL")
    if store_backend is not None:
        settings = settings.with_overrides(store_backend=store_backend)
    if api_url is not None:
        settings = settings.with_overrides(api_url=api_url)
    return settings
