"""Projection of resolved resources into container environment variables."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List

from ..registry import ResolvedResource
from ..utils import env_name

VERSION_ENV_NAME = "APP_VERSION"


def secret_key_ref(secret_name: str, key: str) -> Dict[str, Any]:
    return {"secretKeyRef": {"name": secret_name, "key": key}}


def project_environment(
    application: str,
    version: str,
    resources: Iterable[ResolvedResource],
) -> List[Dict[str, Any]]:
    """Build the container ``env`` list for ``application``.

    The version binding always comes first. Each resource then contributes its
    properties followed by its secrets, keys sorted within each group. Secrets
    are referenced from the application's Secret, never inlined.
    """

    env: List[Dict[str, Any]] = [{"name": VERSION_ENV_NAME, "value": version}]
    for resource in resources:
        for key in sorted(resource.properties):
            env.append({"name": env_name(resource.name, key), "value": resource.properties[key]})
        for key in sorted(resource.secrets):
            name = env_name(resource.name, key)
            env.append({"name": name, "valueFrom": secret_key_ref(application, name)})
    return env
