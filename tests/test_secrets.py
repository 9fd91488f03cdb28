import pytest

from scanoperator.constants import DOCKER_CONFIG_JSON_KEY, SECRET_TYPE_DOCKER_CONFIG_JSON
from scanoperator.docker import DEFAULT_REGISTRY, Auth, BasicAuth, DockerConfig
from scanoperator.kube.client import InMemoryClient, NotFoundError
from scanoperator.kube.secrets import (
    SecretsReader,
    aggregate_image_pull_secrets_data,
    map_container_names_to_docker_auths,
    map_registry_servers_to_auths,
    new_image_pull_secret,
)

HARBOR = "core.harbor.domain:8443"
password = "password"


def _make_pull(name, server, username="user"):
    return new_image_pull_secret({"name": name, "namespace": "default"}, server, username, password)


def _expected_auth(username="user"):
    return Auth(
        auth=BasicAuth.from_credentials(username, password),
        username=username,
        password=password,
    )


def test_new_image_pull_secret_round_trip():
    pull = _make_pull("regcred", HARBOR)
    assert pull["type"] == SECRET_TYPE_DOCKER_CONFIG_JSON
    assert pull["metadata"] == {"name": "regcred", "namespace": "default"}
    config = DockerConfig.read(pull["data"][DOCKER_CONFIG_JSON_KEY])
    assert config.auths == {HARBOR: _expected_auth()}


def test_map_registry_servers_normalises_url_keys():
    config = DockerConfig({"https://" + HARBOR: _expected_auth()})
    pull = {
        "kind": "Secret",
        "metadata": {"name": "s", "namespace": "default"},
        "type": SECRET_TYPE_DOCKER_CONFIG_JSON,
        "data": {DOCKER_CONFIG_JSON_KEY: config.write()},
    }
    assert map_registry_servers_to_auths([pull]) == {HARBOR: _expected_auth()}


def test_map_registry_servers_skips_other_secrets():
    legacy = {"type": "kubernetes.io/dockercfg", "data": {".dockercfg": b"{}"}}
    without_config = {"type": SECRET_TYPE_DOCKER_CONFIG_JSON, "data": {}}
    assert map_registry_servers_to_auths([legacy, without_config]) == {}


def test_map_registry_servers_rejects_invalid_config():
    bad = {
        "metadata": {"name": "bad", "namespace": "default"},
        "type": SECRET_TYPE_DOCKER_CONFIG_JSON,
        "data": {DOCKER_CONFIG_JSON_KEY: b"not json"},
    }
    with pytest.raises(ValueError, match='reading .dockerconfigjson field of "default/bad" secret'):
        map_registry_servers_to_auths([bad])


def test_map_container_names_to_docker_auths():
    images = {"nginx": "nginx:1.16", "redis": HARBOR + "/library/redis:5"}
    pulls = [_make_pull("harbor", HARBOR, "harbor-user"), _make_pull("hub", DEFAULT_REGISTRY)]
    mapping = map_container_names_to_docker_auths(images, pulls)
    assert mapping == {"nginx": _expected_auth(), "redis": _expected_auth("harbor-user")}


def test_map_container_names_without_matching_registry():
    images = {"nginx": "nginx:1.16"}
    assert map_container_names_to_docker_auths(images, [_make_pull("harbor", HARBOR)]) == {}


def test_aggregate_image_pull_secrets_data():
    images = {"nginx": "nginx:1.16", "sidecar": "sidecar:1.32.7"}
    data = aggregate_image_pull_secrets_data(images, {"nginx": _expected_auth()})
    assert data == {"nginx.username": b"user", "nginx.password": password.encode()}


def _reader():
    account = {
        "kind": "ServiceAccount",
        "metadata": {"name": "default", "namespace": "default"},
        "imagePullSecrets": [{"name": "sa-secret"}],
    }
    return SecretsReader(
        InMemoryClient(
            account,
            _make_pull("pod-secret", HARBOR, "harbor-user"),
            _make_pull("sa-secret", DEFAULT_REGISTRY),
        )
    )


def test_list_image_pull_secrets_by_pod_spec_order():
    spec = {"imagePullSecrets": [{"name": "pod-secret"}]}
    found = _reader().list_image_pull_secrets_by_pod_spec(spec, "default")
    assert [item["metadata"]["name"] for item in found] == ["pod-secret", "sa-secret"]


def test_list_by_local_object_references_missing_secret():
    with pytest.raises(NotFoundError):
        _reader().list_by_local_object_references([{"name": "absent"}], "default")


def test_list_by_service_account_missing_account():
    with pytest.raises(NotFoundError):
        _reader().list_by_service_account("absent", "default")


def test_credentials_by_workload():
    deployment = {
        "kind": "Deployment",
        "metadata": {"name": "app", "namespace": "default"},
        "spec": {
            "template": {
                "spec": {
                    "imagePullSecrets": [{"name": "pod-secret"}],
                    "containers": [
                        {"name": "nginx", "image": "nginx:1.16"},
                        {"name": "redis", "image": HARBOR + "/library/redis:5"},
                    ],
                }
            }
        },
    }
    credentials = _reader().credentials_by_workload(deployment)
    assert credentials == {"nginx": _expected_auth(), "redis": _expected_auth("harbor-user")}


def test_credentials_by_unsupported_workload():
    service = {"kind": "Service", "metadata": {"name": "svc", "namespace": "default"}}
    with pytest.raises(ValueError, match="getting Pod template: unsupported workload: Service"):
        _reader().credentials_by_workload(service)