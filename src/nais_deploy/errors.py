"""Exception hierarchy for nais-deploy.

Each error carries the HTTP status code a calling API layer should respond
with, so the client/server fault distinction travels with the exception.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .operations.reconcile import DeploymentResult


class DeployError(Exception):
    """Base class for all deployment failures."""

    status_code = 500


class InvalidDeploymentRequest(DeployError):
    """The deployment request failed validation."""

    status_code = 400

    def __init__(self, errors: List[str]) -> None:
        super().__init__("invalid deployment request: " + "; ".join(errors))
        self.errors = list(errors)


class ManifestUnavailable(DeployError):
    """The application manifest could not be fetched or parsed."""

    def __init__(self, manifest_url: str, reason: str) -> None:
        super().__init__(f"unable to fetch manifest from {manifest_url}: {reason}")
        self.manifest_url = manifest_url


class ResourceNotFound(DeployError):
    """A declared resource does not exist in the resource registry."""

    status_code = 400

    def __init__(self, alias: str, resource_type: str) -> None:
        super().__init__(f"unable to get resource {alias} ({resource_type})")
        self.alias = alias
        self.resource_type = resource_type


class ResourceRegistryError(DeployError):
    """The resource registry failed for a reason other than a missing resource."""


class ClusterAPIError(DeployError):
    """A get, create or update against the cluster API failed."""

    def __init__(self, kind: str, name: str, namespace: str, reason: str) -> None:
        super().__init__(f"failed to reconcile {kind} {namespace}/{name}: {reason}")
        self.kind = kind
        self.name = name
        self.namespace = namespace
        self.result: Optional["DeploymentResult"] = None


class DeploymentNotFound(DeployError):
    """No deployment exists for the requested application."""

    status_code = 404

    def __init__(self, namespace: str, application: str) -> None:
        super().__init__(f"deployment {namespace}/{application} not found")
        self.namespace = namespace
        self.application = application
