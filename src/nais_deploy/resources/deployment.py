"""Deployment resource builder."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List

from pydantic import Field

from ..manifest import ApplicationManifest
from ..registry import ResolvedResource
from ..request import DeploymentRequest
from .base import ResourceDefinition, ResourceModel, object_metadata
from .environment import project_environment

PROBE_INITIAL_DELAY_SECONDS = 20
PORT_NAME = "http"


class DeploymentConfig(ResourceModel):
    """A single-container Deployment for one application version."""

    name: str
    namespace: str
    image: str
    version: str
    port: int
    replicas: int
    liveness_path: str
    readiness_path: str
    resources: Dict[str, Dict[str, str]]
    env: List[Dict[str, Any]] = Field(default_factory=list)
    annotations: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_manifest(
        cls,
        request: DeploymentRequest,
        manifest: ApplicationManifest,
        resources: Iterable[ResolvedResource],
    ) -> "DeploymentConfig":
        annotations: Dict[str, str] = {}
        if manifest.prometheus.enabled:
            annotations = {
                "prometheus.io/scrape": "true",
                "prometheus.io/path": manifest.prometheus.path,
                "prometheus.io/port": PORT_NAME,
            }
        return cls(
            name=request.application,
            namespace=request.namespace,
            image=manifest.image,
            version=request.version,
            port=manifest.port,
            replicas=manifest.replicas.min,
            liveness_path=manifest.healthcheck.liveness.path,
            readiness_path=manifest.healthcheck.readiness.path,
            resources={
                "requests": {
                    "cpu": manifest.resources.requests.cpu,
                    "memory": manifest.resources.requests.memory,
                },
                "limits": {
                    "cpu": manifest.resources.limits.cpu,
                    "memory": manifest.resources.limits.memory,
                },
            },
            env=project_environment(request.application, request.version, resources),
            annotations=annotations,
        )

    def _probe(self, path: str) -> Dict[str, Any]:
        return {
            "httpGet": {"path": path, "port": PORT_NAME},
            "initialDelaySeconds": PROBE_INITIAL_DELAY_SECONDS,
        }

    def to_resource(self) -> ResourceDefinition:
        container = {
            "name": self.name,
            "image": f"{self.image}:{self.version}",
            "ports": [{"name": PORT_NAME, "containerPort": self.port, "protocol": "TCP"}],
            "livenessProbe": self._probe(self.liveness_path),
            "readinessProbe": self._probe(self.readiness_path),
            "resources": {key: dict(value) for key, value in self.resources.items()},
            "env": [dict(entry) for entry in self.env],
            "imagePullPolicy": "IfNotPresent",
        }

        template_metadata: Dict[str, Any] = {"name": self.name, "labels": {"app": self.name}}
        if self.annotations:
            template_metadata["annotations"] = dict(self.annotations)

        spec = {
            "replicas": self.replicas,
            "selector": {"matchLabels": {"app": self.name}},
            "strategy": {
                "type": "RollingUpdate",
                "rollingUpdate": {"maxSurge": 1, "maxUnavailable": 0},
            },
            "template": {
                "metadata": template_metadata,
                "spec": {"containers": [container]},
            },
        }
        return ResourceDefinition(
            api_version="apps/v1",
            kind="Deployment",
            metadata=object_metadata(self.name, self.namespace),
            spec=spec,
        )
