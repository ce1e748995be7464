"""Shared resource definitions for the workload builders."""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class ResourceModel(BaseModel):
    """Shared base model for manifest and configuration objects."""

    model_config = ConfigDict(populate_by_name=True)


def object_metadata(name: str, namespace: str, labels: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Metadata shared by every object belonging to one application."""

    return {
        "name": name,
        "namespace": namespace,
        "labels": dict(labels) if labels is not None else {"app": name},
    }


@dataclass(frozen=True)
class ResourceDefinition:
    """A Kubernetes object body together with its type information."""

    api_version: str
    kind: str
    metadata: Dict[str, Any]
    spec: Optional[Dict[str, Any]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": copy.deepcopy(self.metadata),
        }
        if self.spec is not None:
            body["spec"] = copy.deepcopy(self.spec)
        if self.extra:
            body.update(copy.deepcopy(self.extra))
        return body

    @property
    def name(self) -> str:
        return self.metadata["name"]

    @property
    def namespace(self) -> str:
        return self.metadata["namespace"]
