"""Reconciliation of the workload objects belonging to one application."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..errors import ClusterAPIError
from ..kube import ClusterObjectStore
from ..manifest import ApplicationManifest
from ..registry import ResolvedResource
from ..request import DeploymentRequest
from ..resources.autoscaler import AutoscalerConfig
from ..resources.base import ResourceDefinition
from ..resources.deployment import DeploymentConfig
from ..resources.ingress import IngressConfig
from ..resources.secret import SecretConfig, has_secret_data
from ..resources.service import ServiceConfig

_LOG = logging.getLogger(__name__)

CREATED = "created"
UPDATED = "updated"


@dataclass(frozen=True)
class ReconcileInput:
    """Everything the builders need to compute the desired objects."""

    request: DeploymentRequest
    manifest: ApplicationManifest
    resources: Sequence[ResolvedResource]
    subdomain: str


@dataclass
class DeploymentResult:
    """Objects created or updated by one deploy, one optional entry per kind."""

    deployment: Optional[Dict[str, Any]] = None
    secret: Optional[Dict[str, Any]] = None
    service: Optional[Dict[str, Any]] = None
    ingress: Optional[Dict[str, Any]] = None
    autoscaler: Optional[Dict[str, Any]] = None
    actions: List[Tuple[str, str]] = field(default_factory=list)

    def record(self, key: str, obj: Dict[str, Any], action: str) -> None:
        setattr(self, key, obj)
        self.actions.append((action, key))


def _carry_resource_version(existing: Dict[str, Any], desired: Dict[str, Any]) -> None:
    resource_version = existing.get("metadata", {}).get("resourceVersion")
    if resource_version:
        desired["metadata"]["resourceVersion"] = resource_version


def _carry_service_address(existing: Dict[str, Any], desired: Dict[str, Any]) -> None:
    _carry_resource_version(existing, desired)
    existing_spec = existing.get("spec") or {}
    for address_field in ("clusterIP", "clusterIPs"):
        if existing_spec.get(address_field):
            desired["spec"][address_field] = existing_spec[address_field]


def _always(resources: Sequence[ResolvedResource]) -> bool:
    return True


@dataclass(frozen=True)
class KindPolicy:
    """How one object kind is created, updated and carried forward."""

    key: str
    api_version: str
    kind: str
    build: Callable[[ReconcileInput], ResourceDefinition]
    can_create: bool = True
    can_update: bool = True
    should_exist: Callable[[Sequence[ResolvedResource]], bool] = _always
    preserve: Callable[[Dict[str, Any], Dict[str, Any]], None] = _carry_resource_version


POLICIES: Tuple[KindPolicy, ...] = (
    KindPolicy(
        key="deployment",
        api_version="apps/v1",
        kind="Deployment",
        build=lambda inp: DeploymentConfig.from_manifest(inp.request, inp.manifest, inp.resources).to_resource(),
    ),
    KindPolicy(
        key="secret",
        api_version="v1",
        kind="Secret",
        build=lambda inp: SecretConfig.from_resources(
            inp.request.application, inp.request.namespace, inp.resources
        ).to_resource(),
        should_exist=has_secret_data,
    ),
    KindPolicy(
        key="service",
        api_version="v1",
        kind="Service",
        build=lambda inp: ServiceConfig(
            name=inp.request.application,
            namespace=inp.request.namespace,
            target_port=inp.manifest.port,
        ).to_resource(),
        preserve=_carry_service_address,
    ),
    KindPolicy(
        key="ingress",
        api_version="networking.k8s.io/v1",
        kind="Ingress",
        build=lambda inp: IngressConfig(
            name=inp.request.application,
            namespace=inp.request.namespace,
            subdomain=inp.subdomain,
        ).to_resource(),
        can_update=False,
    ),
    KindPolicy(
        key="autoscaler",
        api_version="autoscaling/v1",
        kind="HorizontalPodAutoscaler",
        build=lambda inp: AutoscalerConfig(
            name=inp.request.application,
            namespace=inp.request.namespace,
            min_replicas=inp.manifest.replicas.min,
            max_replicas=inp.manifest.replicas.max,
            cpu_threshold_percentage=inp.manifest.replicas.cpu_threshold_percentage,
        ).to_resource(),
    ),
)

POLICY_BY_KEY: Dict[str, KindPolicy] = {policy.key: policy for policy in POLICIES}


def reconcile_kind(
    store: ClusterObjectStore,
    policy: KindPolicy,
    inputs: ReconcileInput,
) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """Bring one object kind in line with ``inputs``.

    Returns the applied object and the action taken, or ``(None, None)`` when
    the policy decided nothing should be written.
    """

    if not policy.should_exist(inputs.resources):
        _LOG.debug("Skipping %s for %s: not needed", policy.kind, inputs.request.application)
        return None, None

    name, namespace = inputs.request.application, inputs.request.namespace
    existing = store.get(policy.api_version, policy.kind, name, namespace)

    if existing is None:
        if not policy.can_create:
            return None, None
        desired = policy.build(inputs).to_dict()
        _LOG.info("Creating %s %s/%s", policy.kind, namespace, name)
        return store.create(desired), CREATED

    if not policy.can_update:
        _LOG.info("%s %s/%s already exists, leaving it untouched", policy.kind, namespace, name)
        return None, None

    desired = policy.build(inputs).to_dict()
    policy.preserve(existing, desired)
    _LOG.info("Updating %s %s/%s", policy.kind, namespace, name)
    return store.replace(desired), UPDATED


def create_or_update_resources(
    store: ClusterObjectStore,
    request: DeploymentRequest,
    manifest: ApplicationManifest,
    resources: Sequence[ResolvedResource],
    subdomain: str,
) -> DeploymentResult:
    """Reconcile every kind in order, stopping at the first cluster failure.

    Kinds applied before a failure are not rolled back; the partial result is
    attached to the raised :class:`ClusterAPIError`.
    """

    inputs = ReconcileInput(request=request, manifest=manifest, resources=resources, subdomain=subdomain)
    result = DeploymentResult()
    for policy in POLICIES:
        try:
            obj, action = reconcile_kind(store, policy, inputs)
        except ClusterAPIError as exc:
            exc.result = result
            raise
        if obj is not None and action is not None:
            result.record(policy.key, obj, action)
    return result


def format_result_message(result: DeploymentResult, warnings: Sequence[str] = ()) -> str:
    """Human readable summary of a deploy, one line per applied kind."""

    lines = ["result: "]
    lines.extend(f"- {action} {key}" for action, key in result.actions)
    message = "\n".join(lines) + "\n"
    if warnings:
        message += "\nWarnings:\n" + "".join(f"- {warning}\n" for warning in warnings)
    return message
