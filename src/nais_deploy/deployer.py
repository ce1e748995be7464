"""Entry points for deploying applications and querying their rollout."""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import requests

from .config import DeployerConfig
from .errors import InvalidDeploymentRequest, ResourceRegistryError
from .kube import ClusterObjectStore
from .manifest import fetch_manifest
from .operations.reconcile import DeploymentResult, create_or_update_resources
from .operations.status import DeploymentStatusView, DeployStatus, deployment_status
from .registry import ResourceRegistry, ResourceScope, resolve_resources
from .request import DeploymentRequest, merge_deprecated_fields, validate_request

_LOG = logging.getLogger(__name__)


class Deployer:
    """Turn deployment requests into reconciled cluster objects."""

    def __init__(
        self,
        store: ClusterObjectStore,
        registry: ResourceRegistry,
        config: Optional[DeployerConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.store = store
        self.registry = registry
        self.config = config or DeployerConfig()
        self.session = session or requests.Session()

    def validate(self, request: DeploymentRequest) -> List[str]:
        """Return every problem with ``request`` after deprecated fields are merged."""

        merged, _ = merge_deprecated_fields(request)
        return validate_request(merged)

    def deploy(self, request: DeploymentRequest) -> Tuple[DeploymentResult, List[str]]:
        """Fetch the manifest, resolve resources and reconcile all objects.

        Returns the result together with any deprecation warnings.
        """

        merged, warnings = merge_deprecated_fields(request)
        errors = validate_request(merged)
        if errors:
            raise InvalidDeploymentRequest(errors)

        _LOG.info(
            "Deploying %s:%s to %s (%s)",
            merged.application,
            merged.version,
            merged.namespace,
            merged.fasit_environment,
        )
        manifest = fetch_manifest(merged.manifest_url, self.session, timeout=self.config.http_timeout)

        scope = ResourceScope(
            environment=merged.fasit_environment,
            application=merged.application,
            zone=merged.zone,
            username=merged.fasit_username,
            password=merged.fasit_password,
        )
        environment_class = self.registry.environment_class(scope)
        self.registry.verify_application(scope)
        resources = resolve_resources(self.registry, manifest.fasit_resources.used, scope)

        result = create_or_update_resources(
            self.store,
            merged,
            manifest,
            resources,
            self.config.cluster_subdomain,
        )

        if manifest.fasit_resources.used and self.config.register_application_instances:
            try:
                self.registry.register_application_instance(
                    scope,
                    merged.version,
                    self.config.cluster_name,
                    environment_class,
                    resources,
                )
            except ResourceRegistryError as exc:
                _LOG.warning("Deployed %s but registry registration failed: %s", merged.application, exc)

        return result, warnings

    def deployment_status(self, namespace: str, application: str) -> Tuple[DeployStatus, DeploymentStatusView]:
        return deployment_status(self.store, namespace, application)
