"""Service resource builder."""
from __future__ import annotations

from .base import ResourceDefinition, ResourceModel, object_metadata

SERVICE_PORT = 80


class ServiceConfig(ResourceModel):
    """ClusterIP service routing port 80 to the application container."""

    name: str
    namespace: str
    target_port: int

    def to_resource(self) -> ResourceDefinition:
        spec = {
            "type": "ClusterIP",
            "selector": {"app": self.name},
            "ports": [
                {
                    "name": "http",
                    "protocol": "TCP",
                    "port": SERVICE_PORT,
                    "targetPort": self.target_port,
                }
            ],
        }
        return ResourceDefinition(
            api_version="v1",
            kind="Service",
            metadata=object_metadata(self.name, self.namespace),
            spec=spec,
        )
