from __future__ import annotations

import re
from typing import Protocol

PLACEHOLDER_USERNAME = "anonymous"
USERNAME_MAX_LENGTH = 30

_DISALLOWED = re.compile(r"[^\w\-]", re.ASCII)


class IdentityProvider(Protocol):
    def get_current_username(self) -> str | None: ...


class StaticIdentity:
    """Identity known up front, e.g. read from a request header."""

    def __init__(self, username: str | None):
        self.username = username

    def get_current_username(self) -> str | None:
        return self.username


def sanitize_username(raw: str | None, *, max_length: int = USERNAME_MAX_LENGTH,
                      placeholder: str = PLACEHOLDER_USERNAME) -> str:
    """Strip everything but word characters and hyphens, then truncate."""
    if raw is None:
        return placeholder
    return _DISALLOWED.sub("", str(raw))[:max_length] or placeholder


def resolve_username(provider: IdentityProvider | None, **kwargs) -> str:
    """Sanitized current username; resolution failures count as anonymous."""
    if provider is None:
        return sanitize_username(None, **kwargs)
    try:
        raw = provider.get_current_username()
    except Exception:
        raw = None
    return sanitize_username(raw, **kwargs)
