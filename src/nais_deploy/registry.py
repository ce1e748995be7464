"""Resolution of registry-managed resources into configuration and secrets."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

import requests

from .errors import ResourceNotFound, ResourceRegistryError
from .manifest import UsedResource

_LOG = logging.getLogger(__name__)

TRUSTSTORE_ALIAS = "nav_truststore"
TRUSTSTORE_TYPE = "Certificate"
TRUSTSTORE_FILE_KEY = "keystore"

SecretValue = Union[str, bytes]


@dataclass(frozen=True)
class ResourceScope:
    """Where a resource lookup happens and who performs it."""

    environment: str
    application: str
    zone: str
    username: str = ""
    password: str = ""


@dataclass
class ResolvedResource:
    """A registry resource expanded into plain configuration and secrets."""

    name: str
    resource_type: str
    properties: Dict[str, str] = field(default_factory=dict)
    secrets: Dict[str, SecretValue] = field(default_factory=dict)
    resource_id: Optional[int] = None
    files: List[str] = field(default_factory=list)

    def renamed(self, property_map: Optional[Dict[str, str]]) -> "ResolvedResource":
        """Return a copy with keys renamed according to ``property_map``."""

        if not property_map:
            return self
        return ResolvedResource(
            name=self.name,
            resource_type=self.resource_type,
            properties={property_map.get(k, k): v for k, v in self.properties.items()},
            secrets={property_map.get(k, k): v for k, v in self.secrets.items()},
            resource_id=self.resource_id,
            files=list(self.files),
        )


class ResourceRegistry(Protocol):
    """Lookup contract for the external resource registry."""

    def resolve(self, alias: str, resource_type: str, scope: ResourceScope) -> ResolvedResource:
        ...

    def fetch_file(self, resource_id: int, file_key: str, scope: ResourceScope) -> bytes:
        ...

    def environment_class(self, scope: ResourceScope) -> str:
        ...

    def verify_application(self, scope: ResourceScope) -> None:
        ...

    def register_application_instance(
        self,
        scope: ResourceScope,
        version: str,
        cluster_name: str,
        environment_class: str,
        resources: Iterable[ResolvedResource],
    ) -> None:
        ...


class FasitClient:
    """HTTP client for the Fasit resource registry."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 30) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def resolve(self, alias: str, resource_type: str, scope: ResourceScope) -> ResolvedResource:
        params = {
            "alias": alias,
            "type": resource_type,
            "environment": scope.environment,
            "application": scope.application,
            "zone": scope.zone,
        }
        _LOG.debug("Resolving resource %s (%s) in %s", alias, resource_type, scope.environment)
        response = self._get(f"{self.base_url}/api/v2/scopedresource", alias, resource_type, scope, params=params)
        try:
            payload: Dict[str, Any] = response.json()
        except ValueError as exc:
            raise ResourceRegistryError(f"invalid registry response for {alias} ({resource_type}): {exc}") from exc

        secrets: Dict[str, SecretValue] = {}
        for key, secret in (payload.get("secrets") or {}).items():
            ref = secret.get("ref") if isinstance(secret, dict) else None
            if not ref:
                continue
            secrets[key] = self._get(ref, alias, resource_type, scope).text

        return ResolvedResource(
            name=alias,
            resource_type=resource_type,
            properties={key: str(value) for key, value in (payload.get("properties") or {}).items()},
            secrets=secrets,
            resource_id=payload.get("id"),
            files=sorted((payload.get("files") or {}).keys()),
        )

    def fetch_file(self, resource_id: int, file_key: str, scope: ResourceScope) -> bytes:
        url = f"{self.base_url}/api/v2/resources/{resource_id}/file/{file_key}"
        return self._get(url, str(resource_id), file_key, scope).content

    def environment_class(self, scope: ResourceScope) -> str:
        """Return the class (u, t, q or p) of the scope's environment."""

        url = f"{self.base_url}/api/v2/environments/{scope.environment}"
        response = self._get(url, scope.environment, "environment", scope)
        try:
            payload = response.json()
        except ValueError as exc:
            raise ResourceRegistryError(f"invalid registry response for environment {scope.environment}: {exc}") from exc
        if not isinstance(payload, dict) or not payload.get("environmentclass"):
            raise ResourceRegistryError(f"environment {scope.environment} has no environment class")
        return str(payload["environmentclass"])

    def verify_application(self, scope: ResourceScope) -> None:
        url = f"{self.base_url}/api/v2/applications/{scope.application}"
        self._get(url, scope.application, "application", scope)

    def register_application_instance(
        self,
        scope: ResourceScope,
        version: str,
        cluster_name: str,
        environment_class: str,
        resources: Iterable[ResolvedResource],
    ) -> None:
        payload = {
            "application": scope.application,
            "environment": scope.environment,
            "environmentclass": environment_class,
            "version": version,
            "clustername": cluster_name,
            "exposedresources": [],
            "usedresources": [{"id": res.resource_id} for res in resources if res.resource_id is not None],
        }
        _LOG.info("Registering %s:%s in %s", scope.application, version, scope.environment)
        try:
            response = self.session.post(
                f"{self.base_url}/api/v2/applicationinstances/",
                json=payload,
                auth=self._auth(scope),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ResourceRegistryError(f"failed to register application instance: {exc}") from exc

    def _get(
        self,
        url: str,
        alias: str,
        resource_type: str,
        scope: ResourceScope,
        params: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        try:
            response = self.session.get(url, params=params, auth=self._auth(scope), timeout=self.timeout)
        except requests.RequestException as exc:
            raise ResourceRegistryError(f"resource registry unavailable: {exc}") from exc
        if response.status_code == 404:
            raise ResourceNotFound(alias, resource_type)
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise ResourceRegistryError(f"resource registry error for {alias} ({resource_type}): {exc}") from exc
        return response

    @staticmethod
    def _auth(scope: ResourceScope):
        if scope.username:
            return (scope.username, scope.password)
        return None


def resolve_resources(
    registry: ResourceRegistry,
    declarations: Iterable[UsedResource],
    scope: ResourceScope,
) -> List[ResolvedResource]:
    """Resolve every declared resource plus the mandatory trust store.

    The first resource that cannot be resolved aborts the whole resolution.
    """

    resolved: List[ResolvedResource] = []
    for used in declarations:
        resource = registry.resolve(used.alias, used.resource_type, scope)
        resolved.append(resource.renamed(used.property_map))

    truststore = registry.resolve(TRUSTSTORE_ALIAS, TRUSTSTORE_TYPE, scope)
    if truststore.resource_id is None:
        raise ResourceNotFound(TRUSTSTORE_ALIAS, TRUSTSTORE_TYPE)
    try:
        keystore = registry.fetch_file(truststore.resource_id, TRUSTSTORE_FILE_KEY, scope)
    except ResourceNotFound as exc:
        raise ResourceNotFound(TRUSTSTORE_ALIAS, TRUSTSTORE_TYPE) from exc
    truststore.secrets[TRUSTSTORE_FILE_KEY] = keystore
    resolved.append(truststore)

    _LOG.info("Resolved %d resources for %s", len(resolved), scope.application)
    return resolved
