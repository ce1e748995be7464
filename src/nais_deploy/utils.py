"""Utility helpers shared across the nais-deploy package."""
from __future__ import annotations

import re

_INVALID_ENV_CHARS = re.compile(r"[^A-Za-z0-9_]")


def sanitize_env_name(value: str) -> str:
    """Replace every character not allowed in an environment variable name with ``_``."""

    return _INVALID_ENV_CHARS.sub("_", value)


def env_name(resource_name: str, key: str) -> str:
    """Name of the binding for ``key`` of the resource ``resource_name``."""

    return f"{sanitize_env_name(resource_name)}_{sanitize_env_name(key)}"
