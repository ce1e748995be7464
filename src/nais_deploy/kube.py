"""Cluster object store backed by the Kubernetes dynamic client."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from kubernetes import config
from kubernetes.client import ApiClient, ApiException
from kubernetes.dynamic import DynamicClient, ResourceInstance

from .config import ClusterContext
from .errors import ClusterAPIError

_LOG = logging.getLogger(__name__)


class ClusterObjectStore(Protocol):
    """Get/create/replace access to namespaced cluster objects.

    ``get`` returns ``None`` when the object does not exist. Every other
    failure is raised as :class:`ClusterAPIError`.
    """

    def get(self, api_version: str, kind: str, name: str, namespace: str) -> Optional[Dict[str, Any]]:
        ...

    def create(self, body: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def replace(self, body: Dict[str, Any]) -> Dict[str, Any]:
        ...


def _as_dict(value: Any) -> Dict[str, Any]:
    return value.to_dict() if isinstance(value, ResourceInstance) else value


class KubernetesObjectStore:
    """Wrapper around the Kubernetes dynamic client keyed by (name, namespace)."""

    def __init__(self, context: ClusterContext) -> None:
        self.context = context
        if context.in_cluster:
            config.load_incluster_config()
            api_client = ApiClient()
        else:
            api_client = config.new_client_from_config(
                config_file=context.kubeconfig,
                context=context.context,
            )
        api_client.configuration.verify_ssl = context.verify_ssl
        self.api_client = api_client
        self.dynamic = DynamicClient(api_client)

    def get(self, api_version: str, kind: str, name: str, namespace: str) -> Optional[Dict[str, Any]]:
        resource = self._resource(api_version, kind, name, namespace)
        try:
            existing = resource.get(name=name, namespace=namespace)
        except ApiException as exc:
            if exc.status == 404:
                _LOG.debug("%s %s/%s not found", kind, namespace, name)
                return None
            raise ClusterAPIError(kind, name, namespace, _reason(exc)) from exc
        return _as_dict(existing)

    def create(self, body: Dict[str, Any]) -> Dict[str, Any]:
        kind, name, namespace = _identity(body)
        resource = self._resource(body["apiVersion"], kind, name, namespace)
        _LOG.debug("Creating %s %s/%s", kind, namespace, name)
        try:
            created = resource.create(body=body, namespace=namespace)
        except ApiException as exc:
            raise ClusterAPIError(kind, name, namespace, _reason(exc)) from exc
        return _as_dict(created)

    def replace(self, body: Dict[str, Any]) -> Dict[str, Any]:
        kind, name, namespace = _identity(body)
        resource = self._resource(body["apiVersion"], kind, name, namespace)
        _LOG.debug("Updating %s %s/%s", kind, namespace, name)
        try:
            updated = resource.replace(name=name, namespace=namespace, body=body)
        except ApiException as exc:
            raise ClusterAPIError(kind, name, namespace, _reason(exc)) from exc
        return _as_dict(updated)

    def _resource(self, api_version: str, kind: str, name: str, namespace: str) -> Any:
        try:
            return self.dynamic.resources.get(api_version=api_version, kind=kind)
        except ApiException as exc:  # pragma: no cover - discovery failures are rare
            _LOG.error("Failed to discover resource %s %s: %s", api_version, kind, exc)
            raise ClusterAPIError(kind, name, namespace, _reason(exc)) from exc


def _identity(body: Dict[str, Any]):
    metadata = body.get("metadata", {})
    return body["kind"], metadata["name"], metadata["namespace"]


def _reason(exc: ApiException) -> str:
    return f"{exc.status} {exc.reason}"
