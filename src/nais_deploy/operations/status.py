"""Rollout status of a deployed application."""
from __future__ import annotations

import enum
import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..errors import DeploymentNotFound
from ..kube import ClusterObjectStore
from ..resources.environment import VERSION_ENV_NAME

_LOG = logging.getLogger(__name__)


class DeployStatus(str, enum.Enum):
    SUCCESS = "Success"
    IN_PROGRESS = "InProgress"
    FAILED = "Failed"


class DeploymentStatusView(BaseModel):
    """Snapshot of the replica counters a status verdict was derived from."""

    name: str
    desired: int = 0
    current: int = 0
    updated: int = 0
    ready: int = 0
    available: int = 0
    version: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    reason: Optional[str] = None


def _failure_reason(conditions: List[Dict[str, Any]]) -> Optional[str]:
    for condition in conditions:
        kind = condition.get("type")
        status = condition.get("status")
        reason = condition.get("reason")
        if kind == "ReplicaFailure" and status == "True":
            return condition.get("message") or reason or "replica failure"
        if kind == "Progressing" and reason == "ProgressDeadlineExceeded":
            return condition.get("message") or reason
    return None


def _version_of(containers: List[Dict[str, Any]]) -> Optional[str]:
    for container in containers:
        for entry in container.get("env") or []:
            if entry.get("name") == VERSION_ENV_NAME:
                return entry.get("value")
    return None


def classify_deployment(deployment: Dict[str, Any]) -> Tuple[DeployStatus, DeploymentStatusView]:
    """Derive the rollout verdict for a Deployment body."""

    metadata = deployment.get("metadata") or {}
    spec = deployment.get("spec") or {}
    status = deployment.get("status") or {}
    containers = ((spec.get("template") or {}).get("spec") or {}).get("containers") or []

    desired = spec.get("replicas")
    if desired is None:
        desired = 1
    ready = status.get("readyReplicas") or 0
    failure = _failure_reason(status.get("conditions") or [])

    view = DeploymentStatusView(
        name=metadata.get("name", ""),
        desired=desired,
        current=status.get("replicas") or 0,
        updated=status.get("updatedReplicas") or 0,
        ready=ready,
        available=status.get("availableReplicas") or 0,
        version=_version_of(containers),
        images=[container.get("image", "") for container in containers],
        reason=failure,
    )

    if failure:
        return DeployStatus.FAILED, view
    generation = metadata.get("generation")
    observed = status.get("observedGeneration")
    if generation is not None and (observed is None or observed < generation):
        return DeployStatus.IN_PROGRESS, view
    if view.updated < desired or view.available < desired:
        return DeployStatus.IN_PROGRESS, view
    if ready == desired:
        return DeployStatus.SUCCESS, view
    return DeployStatus.IN_PROGRESS, view


def deployment_status(
    store: ClusterObjectStore,
    namespace: str,
    application: str,
) -> Tuple[DeployStatus, DeploymentStatusView]:
    """Read the application's Deployment and classify its rollout."""

    deployment = store.get("apps/v1", "Deployment", application, namespace)
    if deployment is None:
        raise DeploymentNotFound(namespace, application)
    verdict, view = classify_deployment(deployment)
    _LOG.debug("Deployment %s/%s is %s", namespace, application, verdict.value)
    return verdict, view
