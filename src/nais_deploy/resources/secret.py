"""Secret resource builder."""
from __future__ import annotations

import base64
from typing import Dict, Iterable

from pydantic import Field

from ..registry import ResolvedResource
from ..utils import env_name
from .base import ResourceDefinition, ResourceModel, object_metadata


def has_secret_data(resources: Iterable[ResolvedResource]) -> bool:
    return any(resource.secrets for resource in resources)


def _encode(value) -> str:
    raw = value if isinstance(value, bytes) else str(value).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


class SecretConfig(ResourceModel):
    """Secret holding every secret value resolved for an application."""

    name: str
    namespace: str
    type: str = "Opaque"
    data: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_resources(cls, application: str, namespace: str, resources: Iterable[ResolvedResource]) -> "SecretConfig":
        data: Dict[str, str] = {}
        for resource in resources:
            for key, value in resource.secrets.items():
                data[env_name(resource.name, key)] = _encode(value)
        return cls(name=application, namespace=namespace, data=data)

    def to_resource(self) -> ResourceDefinition:
        return ResourceDefinition(
            api_version="v1",
            kind="Secret",
            metadata=object_metadata(self.name, self.namespace),
            spec=None,
            extra={"type": self.type, "data": dict(self.data)},
        )
