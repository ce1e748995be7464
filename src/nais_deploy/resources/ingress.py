"""Ingress resource builder."""
from __future__ import annotations

from .base import ResourceDefinition, ResourceModel, object_metadata
from .service import SERVICE_PORT


class IngressConfig(ResourceModel):
    """Ingress exposing the application on ``<name>.<subdomain>``."""

    name: str
    namespace: str
    subdomain: str

    @property
    def host(self) -> str:
        return f"{self.name}.{self.subdomain}"

    def to_resource(self) -> ResourceDefinition:
        spec = {
            "rules": [
                {
                    "host": self.host,
                    "http": {
                        "paths": [
                            {
                                "path": "/",
                                "pathType": "Prefix",
                                "backend": {
                                    "service": {
                                        "name": self.name,
                                        "port": {"number": SERVICE_PORT},
                                    }
                                },
                            }
                        ]
                    },
                }
            ]
        }
        return ResourceDefinition(
            api_version="networking.k8s.io/v1",
            kind="Ingress",
            metadata=object_metadata(self.name, self.namespace),
            spec=spec,
        )
