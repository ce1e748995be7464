from unittest.mock import MagicMock

import pytest
import requests
import yaml

from nais_deploy.config import DeployerConfig
from nais_deploy.deployer import Deployer
from nais_deploy.errors import InvalidDeploymentRequest, ManifestUnavailable, ResourceNotFound, ResourceRegistryError
from nais_deploy.operations.reconcile import format_result_message
from nais_deploy.registry import ResolvedResource
from nais_deploy.request import DeploymentRequest

MANIFEST_URL = "http://repo.com/app"


def _manifest_session(manifest=None, status=200):
    session = MagicMock()
    response = MagicMock()
    response.status_code = status
    response.text = yaml.safe_dump(manifest or {"image": "name/Container", "port": 321})
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} Client Error")
    session.get.return_value = response
    return session


def _deployer(store, registry, session):
    config = DeployerConfig(cluster_subdomain="nais.example.tk", cluster_name="test-cluster")
    return Deployer(store, registry, config, session=session)


def test_deploy_creates_all_resources(store, registry, deployment_request):
    deployer = _deployer(store, registry, _manifest_session())

    result, warnings = deployer.deploy(deployment_request)

    assert warnings == []
    assert format_result_message(result, warnings) == (
        "result: \n- created deployment\n- created secret\n- created service\n"
        "- created ingress\n- created autoscaler\n"
    )
    assert result.ingress["spec"]["rules"][0]["host"] == "appname.nais.example.tk"
    assert registry.registrations == []


def test_deploy_with_deprecated_fields_reports_warnings(store, registry):
    request = DeploymentRequest.model_validate(
        {
            "application": "appname",
            "version": "123",
            "environment": "environmentName",
            "username": "user",
            "password": "password",
            "manifestUrl": MANIFEST_URL,
            "zone": "fss",
            "namespace": "namespace",
        }
    )
    deployer = _deployer(store, registry, _manifest_session())

    result, warnings = deployer.deploy(request)

    assert format_result_message(result, warnings) == (
        "result: \n- created deployment\n- created secret\n- created service\n"
        "- created ingress\n- created autoscaler\n\nWarnings:\n"
        "- Deployment request property 'environment' is deprecated. Use 'fasitEnvironment' instead\n"
        "- Deployment request property 'username' is deprecated. Use 'fasitUsername' instead\n"
        "- Deployment request property 'password' is deprecated. Use 'fasitPassword' instead\n"
    )


def test_deploy_resolves_declared_resources_and_registers(store, registry_with, deployment_request):
    registry = registry_with([ResolvedResource("alias1", "db", {"url": "jdbc"}, {"password": "pw"}, resource_id=7)])
    manifest = {
        "image": "name/Container",
        "port": 321,
        "fasitResources": {"used": [{"alias": "alias1", "resourceType": "db"}]},
    }
    deployer = _deployer(store, registry, _manifest_session(manifest))

    result, _ = deployer.deploy(deployment_request)

    env = result.deployment["spec"]["template"]["spec"]["containers"][0]["env"]
    assert env[0] == {"name": "APP_VERSION", "value": "13"}
    assert env[1] == {"name": "alias1_url", "value": "jdbc"}
    assert "alias1_password" in result.secret["data"]
    assert "nav_truststore_keystore" in result.secret["data"]
    assert registry.lookups == [
        ("t1", "environment"),
        ("appname", "application"),
        ("alias1", "db"),
        ("nav_truststore", "Certificate"),
    ]
    assert registry.registrations == [
        {"application": "appname", "version": "13", "cluster": "test-cluster", "environment_class": "u"}
    ]


def test_failed_registration_does_not_fail_deploy(store, registry_with, deployment_request):
    registry = registry_with([ResolvedResource("alias1", "db", {"url": "jdbc"})])
    registry.register_application_instance = MagicMock(side_effect=ResourceRegistryError("down"))
    manifest = {"image": "img", "fasitResources": {"used": [{"alias": "alias1", "resourceType": "db"}]}}
    deployer = _deployer(store, registry, _manifest_session(manifest))

    result, _ = deployer.deploy(deployment_request)

    assert result.deployment is not None
    registry.register_application_instance.assert_called_once()


def test_invalid_request_is_rejected_before_any_call(store, registry):
    session = _manifest_session()
    deployer = _deployer(store, registry, session)

    with pytest.raises(InvalidDeploymentRequest) as excinfo:
        deployer.deploy(DeploymentRequest(application="appname"))

    assert excinfo.value.status_code == 400
    assert "version is required and is empty" in excinfo.value.errors
    session.get.assert_not_called()
    assert store.calls == []
    assert registry.lookups == []


def test_unavailable_manifest_is_a_server_error(store, registry, deployment_request):
    deployer = _deployer(store, registry, _manifest_session(status=400))

    with pytest.raises(ManifestUnavailable) as excinfo:
        deployer.deploy(deployment_request)

    assert excinfo.value.status_code == 500
    assert MANIFEST_URL in str(excinfo.value)
    assert store.calls == []


def test_missing_resource_is_a_client_error(store, registry, deployment_request):
    manifest = {"image": "img", "fasitResources": {"used": [{"alias": "alias1", "resourceType": "db"}]}}
    deployer = _deployer(store, registry, _manifest_session(manifest))

    with pytest.raises(ResourceNotFound) as excinfo:
        deployer.deploy(deployment_request)

    assert excinfo.value.status_code == 400
    assert "unable to get resource alias1 (db)" in str(excinfo.value)
    assert store.calls == []


def test_missing_truststore_is_a_client_error(store, registry, deployment_request):
    del registry.resources[("nav_truststore", "Certificate")]
    deployer = _deployer(store, registry, _manifest_session())

    with pytest.raises(ResourceNotFound) as excinfo:
        deployer.deploy(deployment_request)

    assert excinfo.value.status_code == 400
    assert "unable to get resource nav_truststore (Certificate)" in str(excinfo.value)
    assert store.calls == []


def test_missing_keystore_file_is_a_client_error(store, registry_with, deployment_request):
    registry = registry_with(keystore=None)
    deployer = _deployer(store, registry, _manifest_session())

    with pytest.raises(ResourceNotFound) as excinfo:
        deployer.deploy(deployment_request)

    assert excinfo.value.status_code == 400
    assert "unable to get resource nav_truststore (Certificate)" in str(excinfo.value)
    assert store.calls == []


def test_unknown_environment_stops_before_resolving(store, registry, deployment_request):
    registry.missing.add(("t1", "environment"))
    deployer = _deployer(store, registry, _manifest_session())

    with pytest.raises(ResourceNotFound) as excinfo:
        deployer.deploy(deployment_request)

    assert excinfo.value.status_code == 400
    assert registry.lookups == [("t1", "environment")]
    assert store.calls == []


def test_unknown_application_stops_before_resolving(store, registry, deployment_request):
    registry.missing.add(("appname", "application"))
    deployer = _deployer(store, registry, _manifest_session())

    with pytest.raises(ResourceNotFound, match=r"appname \(application\)"):
        deployer.deploy(deployment_request)

    assert registry.lookups == [("t1", "environment"), ("appname", "application")]
    assert store.calls == []

def test_validate_merges_deprecated_fields(store, registry):
    deployer = _deployer(store, registry, _manifest_session())
    request = DeploymentRequest.model_validate(
        {
            "application": "a",
            "version": "1",
            "environment": "t1",
            "username": "u",
            "password": "p",
            "zone": "iapp",
            "namespace": "default",
        }
    )
    assert deployer.validate(request) == []


def test_deployment_status_reads_store(store, registry, deployment_request):
    deployer = _deployer(store, registry, _manifest_session())
    deployer.deploy(deployment_request)

    verdict, view = deployer.deployment_status("namespace", "appname")

    assert verdict.value == "InProgress"
    assert view.desired == 2
