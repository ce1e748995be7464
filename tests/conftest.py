"""Shared test doubles for the cluster and the resource registry."""
import copy
from typing import Any, Dict, List, Optional, Tuple

import pytest

from nais_deploy.errors import ClusterAPIError, ResourceNotFound
from nais_deploy.manifest import ApplicationManifest
from nais_deploy.registry import TRUSTSTORE_ALIAS, TRUSTSTORE_TYPE, ResolvedResource
from nais_deploy.request import DeploymentRequest


class FakeObjectStore:
    """In-memory cluster keyed by (kind, namespace, name)."""

    def __init__(self, *objects: Dict[str, Any]) -> None:
        self.objects: Dict[Tuple[str, str, str], Dict[str, Any]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.fail_on: set = set()
        for obj in objects:
            self.objects[self._key(obj)] = copy.deepcopy(obj)

    @staticmethod
    def _key(body: Dict[str, Any]) -> Tuple[str, str, str]:
        return body["kind"], body["metadata"]["namespace"], body["metadata"]["name"]

    def _maybe_fail(self, operation: str, kind: str, name: str, namespace: str) -> None:
        if (operation, kind) in self.fail_on:
            raise ClusterAPIError(kind, name, namespace, "500 Internal Server Error")

    def get(self, api_version: str, kind: str, name: str, namespace: str) -> Optional[Dict[str, Any]]:
        self.calls.append(("get", kind))
        self._maybe_fail("get", kind, name, namespace)
        found = self.objects.get((kind, namespace, name))
        return copy.deepcopy(found) if found is not None else None

    def create(self, body: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("create", body["kind"]))
        self._maybe_fail("create", body["kind"], body["metadata"]["name"], body["metadata"]["namespace"])
        self.objects[self._key(body)] = copy.deepcopy(body)
        return copy.deepcopy(body)

    def replace(self, body: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("replace", body["kind"]))
        self._maybe_fail("replace", body["kind"], body["metadata"]["name"], body["metadata"]["namespace"])
        assert self._key(body) in self.objects
        self.objects[self._key(body)] = copy.deepcopy(body)
        return copy.deepcopy(body)


class FakeRegistry:
    """Resource registry serving a fixed set of resources."""

    def __init__(
        self,
        resources: Optional[List[ResolvedResource]] = None,
        keystore: Optional[bytes] = b"keystore-bytes",
        environment_class: str = "u",
    ) -> None:
        self.resources = {(res.name, res.resource_type): res for res in resources or []}
        truststore = ResolvedResource(
            name=TRUSTSTORE_ALIAS,
            resource_type=TRUSTSTORE_TYPE,
            properties={"keystorealias": "app-key"},
            secrets={"keystorepassword": "changeit"},
            resource_id=3024713,
            files=["keystore"],
        )
        self.resources.setdefault((TRUSTSTORE_ALIAS, TRUSTSTORE_TYPE), truststore)
        self.keystore = keystore
        self.env_class = environment_class
        self.missing: set = set()
        self.lookups: List[Tuple[str, str]] = []
        self.registrations: List[Dict[str, Any]] = []

    def resolve(self, alias, resource_type, scope):
        self.lookups.append((alias, resource_type))
        try:
            found = self.resources[(alias, resource_type)]
        except KeyError:
            raise ResourceNotFound(alias, resource_type) from None
        return copy.deepcopy(found)

    def fetch_file(self, resource_id, file_key, scope):
        if self.keystore is None:
            raise ResourceNotFound(str(resource_id), file_key)
        return self.keystore

    def environment_class(self, scope):
        self.lookups.append((scope.environment, "environment"))
        if (scope.environment, "environment") in self.missing:
            raise ResourceNotFound(scope.environment, "environment")
        return self.env_class

    def verify_application(self, scope):
        self.lookups.append((scope.application, "application"))
        if (scope.application, "application") in self.missing:
            raise ResourceNotFound(scope.application, "application")

    def register_application_instance(self, scope, version, cluster_name, environment_class, resources):
        self.registrations.append(
            {
                "application": scope.application,
                "version": version,
                "cluster": cluster_name,
                "environment_class": environment_class,
            }
        )


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def deployment_request() -> DeploymentRequest:
    return DeploymentRequest(
        application="appname",
        version="13",
        fasit_environment="t1",
        namespace="namespace",
        zone="fss",
        manifest_url="http://repo.com/app",
        fasit_username="user",
        fasit_password="password",
    )


@pytest.fixture
def manifest() -> ApplicationManifest:
    return ApplicationManifest.model_validate(
        {
            "image": "docker.hub/app",
            "port": 6900,
            "healthcheck": {"liveness": {"path": "isAlive"}, "readiness": {"path": "isReady"}},
            "resources": {
                "requests": {"cpu": "100m", "memory": "200Mi"},
                "limits": {"cpu": "200m", "memory": "400Mi"},
            },
            "replicas": {"min": 2, "max": 4, "cpuThresholdPercentage": 69},
            "prometheus": {"enabled": True, "path": "/path"},
        }
    )


@pytest.fixture
def resolved_resources() -> List[ResolvedResource]:
    return [
        ResolvedResource("r1", "db", {"key1": "value1"}, {"password": "secret"}),
        ResolvedResource("r2", "db", {"key2": "value2"}, {"password": "anothersecret"}),
    ]


@pytest.fixture
def store_with():
    """Build a FakeObjectStore preloaded with the given objects."""

    return FakeObjectStore


@pytest.fixture
def registry_with():
    """Build a FakeRegistry serving the given resources."""

    return FakeRegistry
