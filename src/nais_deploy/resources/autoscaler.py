"""HorizontalPodAutoscaler resource builder."""
from __future__ import annotations

from pydantic import Field

from .base import ResourceDefinition, ResourceModel, object_metadata


class AutoscalerConfig(ResourceModel):
    """CPU based autoscaler targeting the application's Deployment."""

    name: str
    namespace: str
    min_replicas: int = Field(..., alias="minReplicas")
    max_replicas: int = Field(..., alias="maxReplicas")
    cpu_threshold_percentage: int = Field(..., alias="cpuThresholdPercentage")

    def to_resource(self) -> ResourceDefinition:
        spec = {
            "scaleTargetRef": {
                "apiVersion": "apps/v1",
                "kind": "Deployment",
                "name": self.name,
            },
            "minReplicas": self.min_replicas,
            "maxReplicas": self.max_replicas,
            "targetCPUUtilizationPercentage": self.cpu_threshold_percentage,
        }
        return ResourceDefinition(
            api_version="autoscaling/v1",
            kind="HorizontalPodAutoscaler",
            metadata=object_metadata(self.name, self.namespace),
            spec=spec,
        )
