"""Image pull secrets and the registry credentials they hold."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from scanoperator.constants import (
    DOCKER_CONFIG_JSON_KEY,
    SECRET_TYPE_DOCKER_CONFIG_JSON,
    SERVICE_ACCOUNT_DEFAULT,
)
from scanoperator.docker import (
    Auth,
    BasicAuth,
    DockerConfig,
    get_server_from_docker_auth_key,
    get_server_from_image_ref,
)
from scanoperator.kube.client import InMemoryClient
from scanoperator.kube.objects import get_pod_spec
from scanoperator.kube.resources import ContainerImages, get_container_images_from_pod_spec


def _metadata(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    return obj.get("metadata") or {}


def new_image_pull_secret(
    meta: Mapping[str, Any], server: str, username: str, password: str
) -> dict[str, Any]:
    """Build an image pull Secret holding basic credentials for ``server``."""
    config = DockerConfig(
        {
            server: Auth(
                auth=BasicAuth.from_credentials(username, password),
                username=username,
                password=password,
            )
        }
    )
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": dict(meta),
        "type": SECRET_TYPE_DOCKER_CONFIG_JSON,
        "data": {DOCKER_CONFIG_JSON_KEY: config.write()},
    }


def map_registry_servers_to_auths(
    secrets: Iterable[Mapping[str, Any]],
) -> dict[str, Auth]:
    """Map registry servers to the credentials found in image pull secrets.

    Secrets of other types, including the legacy ``dockercfg`` type, and
    secrets without the ``.dockerconfigjson`` key are skipped.
    """
    auths: dict[str, Auth] = {}
    for secret in secrets:
        if secret.get("type") != SECRET_TYPE_DOCKER_CONFIG_JSON:
            continue
        data = (secret.get("data") or {}).get(DOCKER_CONFIG_JSON_KEY)
        if data is None:
            continue
        try:
            config = DockerConfig.read(data)
        except ValueError as exc:
            meta = _metadata(secret)
            raise ValueError(
                f"reading {DOCKER_CONFIG_JSON_KEY} field of "
                f'"{meta.get("namespace") or ""}/{meta.get("name") or ""}" secret: {exc}'
            ) from exc
        for auth_key, auth in config.auths.items():
            auths[get_server_from_docker_auth_key(auth_key)] = auth
    return auths


def map_container_names_to_docker_auths(
    images: Mapping[str, str], secrets: Iterable[Mapping[str, Any]]
) -> dict[str, Auth]:
    """Map container names to the credentials of their images' registries."""
    auths = map_registry_servers_to_auths(secrets)
    mapping: dict[str, Auth] = {}
    for container_name, image_ref in images.items():
        server = get_server_from_image_ref(image_ref)
        if server in auths:
            mapping[container_name] = auths[server]
    return mapping


def aggregate_image_pull_secrets_data(
    images: Mapping[str, str], credentials: Mapping[str, Auth]
) -> dict[str, bytes]:
    """Flatten per-container credentials into ``<container>.username/password`` keys."""
    data: dict[str, bytes] = {}
    for container_name in images:
        auth = credentials.get(container_name)
        if auth is None:
            continue
        data[f"{container_name}.username"] = auth.username.encode()
        data[f"{container_name}.password"] = auth.password.encode()
    return data


@dataclass
class SecretsReader:
    """Reads image pull secrets through a client."""

    client: InMemoryClient

    def list_by_local_object_references(
        self, refs: Iterable[Mapping[str, Any]], namespace: str
    ) -> list[dict[str, Any]]:
        """Fetch the secrets named by ``refs`` in ``namespace``."""
        return [self.client.get("Secret", namespace, ref.get("name", "")) for ref in refs]

    def list_by_service_account(self, name: str, namespace: str) -> list[dict[str, Any]]:
        """Fetch the image pull secrets of a service account."""
        account = self.client.get("ServiceAccount", namespace, name)
        return self.list_by_local_object_references(
            account.get("imagePullSecrets") or [], namespace
        )

    def list_image_pull_secrets_by_pod_spec(
        self, spec: Mapping[str, Any], namespace: str
    ) -> list[dict[str, Any]]:
        """Fetch the pod's own pull secrets followed by its service account's."""
        secrets = self.list_by_local_object_references(
            spec.get("imagePullSecrets") or [], namespace
        )
        account = spec.get("serviceAccountName") or SERVICE_ACCOUNT_DEFAULT
        return secrets + self.list_by_service_account(account, namespace)

    def credentials_by_workload(self, workload: Mapping[str, Any]) -> dict[str, Auth]:
        """Map the workload's container names to registry credentials."""
        try:
            spec = get_pod_spec(workload)
        except ValueError as exc:
            raise ValueError(f"getting Pod template: {exc}") from exc
        namespace = _metadata(workload).get("namespace") or ""
        secrets = self.list_image_pull_secrets_by_pod_spec(spec, namespace)
        images: ContainerImages = get_container_images_from_pod_spec(spec)
        return map_container_names_to_docker_auths(images, secrets)