"""Application manifest model and retrieval."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

import requests
import yaml
from pydantic import Field, ValidationError

from .errors import ManifestUnavailable
from .resources.base import ResourceModel

_LOG = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class LivenessProbe(ResourceModel):
    path: str = "isAlive"


class ReadinessProbe(ResourceModel):
    path: str = "isReady"


class Healthcheck(ResourceModel):
    liveness: LivenessProbe = Field(default_factory=LivenessProbe)
    readiness: ReadinessProbe = Field(default_factory=ReadinessProbe)


class ResourceRequests(ResourceModel):
    cpu: str = "200m"
    memory: str = "256Mi"


class ResourceLimits(ResourceModel):
    cpu: str = "500m"
    memory: str = "512Mi"


class ResourceRequirements(ResourceModel):
    """Container resource sizing, kept as Kubernetes quantity strings."""

    requests: ResourceRequests = Field(default_factory=ResourceRequests)
    limits: ResourceLimits = Field(default_factory=ResourceLimits)


class Replicas(ResourceModel):
    min: int = 2
    max: int = 4
    cpu_threshold_percentage: int = Field(default=50, alias="cpuThresholdPercentage")


class PrometheusConfig(ResourceModel):
    enabled: bool = False
    path: str = "/metrics"


class UsedResource(ResourceModel):
    """A registry resource the application depends on."""

    alias: str
    resource_type: str = Field(..., alias="resourceType")
    property_map: Optional[Dict[str, str]] = Field(default=None, alias="propertyMap")


class FasitResources(ResourceModel):
    used: List[UsedResource] = Field(default_factory=list)


class ApplicationManifest(ResourceModel):
    """Declarative description of how an application is run."""

    image: str
    port: int = 8080
    healthcheck: Healthcheck = Field(default_factory=Healthcheck)
    resources: ResourceRequirements = Field(default_factory=ResourceRequirements)
    replicas: Replicas = Field(default_factory=Replicas)
    prometheus: PrometheusConfig = Field(default_factory=PrometheusConfig)
    fasit_resources: FasitResources = Field(default_factory=FasitResources, alias="fasitResources")


def fetch_manifest(
    manifest_url: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> ApplicationManifest:
    """Download and parse the manifest at ``manifest_url``.

    Every failure, including a 4xx from the manifest host, is reported as
    :class:`ManifestUnavailable`.
    """

    http = session or requests.Session()
    _LOG.debug("Fetching manifest from %s", manifest_url)
    try:
        response = http.get(manifest_url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise ManifestUnavailable(manifest_url, str(exc)) from exc

    try:
        data = yaml.safe_load(response.text)
    except yaml.YAMLError as exc:
        raise ManifestUnavailable(manifest_url, f"invalid manifest: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestUnavailable(manifest_url, "manifest must contain a mapping at the top level")

    try:
        return ApplicationManifest.model_validate(data)
    except ValidationError as exc:
        raise ManifestUnavailable(manifest_url, f"invalid manifest: {exc}") from exc
