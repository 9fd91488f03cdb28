"""Kinds of Kubernetes objects and references to them.

Objects are plain mappings shaped like Kubernetes manifests, with
``kind``, ``metadata`` and ``spec`` keys.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from scanoperator.constants import (
    LABEL_RESOURCE_KIND,
    LABEL_RESOURCE_NAME,
    LABEL_RESOURCE_NAME_HASH,
    LABEL_RESOURCE_NAMESPACE,
)
from scanoperator.kube.resources import compute_hash

_LABEL_VALUE_MAX_LENGTH = 63
_LABEL_VALUE = re.compile(r"(([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9])?")


class Kind(str, Enum):
    """Type of a Kubernetes object."""

    UNKNOWN = "Unknown"

    NODE = "Node"
    NAMESPACE = "Namespace"

    POD = "Pod"
    REPLICA_SET = "ReplicaSet"
    REPLICATION_CONTROLLER = "ReplicationController"
    DEPLOYMENT = "Deployment"
    STATEFUL_SET = "StatefulSet"
    DAEMON_SET = "DaemonSet"
    CRON_JOB = "CronJob"
    JOB = "Job"
    SERVICE = "Service"
    CONFIG_MAP = "ConfigMap"
    ROLE = "Role"
    ROLE_BINDING = "RoleBinding"
    NETWORK_POLICY = "NetworkPolicy"
    INGRESS = "Ingress"
    RESOURCE_QUOTA = "ResourceQuota"
    LIMIT_RANGE = "LimitRange"

    CLUSTER_ROLE = "ClusterRole"
    CLUSTER_ROLE_BINDING = "ClusterRoleBinding"
    CUSTOM_RESOURCE_DEFINITION = "CustomResourceDefinition"
    POD_SECURITY_POLICY = "PodSecurityPolicy"

    def __str__(self) -> str:
        return self.value


_BUILT_IN_CONTROLLERS = frozenset(
    {Kind.REPLICA_SET, Kind.REPLICATION_CONTROLLER, Kind.STATEFUL_SET, Kind.DAEMON_SET, Kind.JOB}
)
_WORKLOADS = frozenset(
    {
        Kind.POD,
        Kind.DEPLOYMENT,
        Kind.REPLICA_SET,
        Kind.REPLICATION_CONTROLLER,
        Kind.STATEFUL_SET,
        Kind.DAEMON_SET,
        Kind.JOB,
        Kind.CRON_JOB,
    }
)
_CLUSTER_SCOPED = frozenset(
    {
        Kind.CLUSTER_ROLE,
        Kind.CLUSTER_ROLE_BINDING,
        Kind.CUSTOM_RESOURCE_DEFINITION,
        Kind.POD_SECURITY_POLICY,
    }
)
_HASHED_WHOLE = frozenset(
    {
        Kind.SERVICE,
        Kind.CONFIG_MAP,
        Kind.ROLE,
        Kind.ROLE_BINDING,
        Kind.NETWORK_POLICY,
        Kind.INGRESS,
        Kind.RESOURCE_QUOTA,
        Kind.LIMIT_RANGE,
        Kind.CLUSTER_ROLE,
        Kind.CLUSTER_ROLE_BINDING,
        Kind.CUSTOM_RESOURCE_DEFINITION,
        Kind.POD_SECURITY_POLICY,
    }
)
_TEMPLATE_PATHS: dict[str, tuple[str, ...]] = {
    Kind.POD: ("spec",),
    Kind.DEPLOYMENT: ("spec", "template", "spec"),
    Kind.REPLICA_SET: ("spec", "template", "spec"),
    Kind.REPLICATION_CONTROLLER: ("spec", "template", "spec"),
    Kind.STATEFUL_SET: ("spec", "template", "spec"),
    Kind.DAEMON_SET: ("spec", "template", "spec"),
    Kind.CRON_JOB: ("spec", "jobTemplate", "spec", "template", "spec"),
    Kind.JOB: ("spec", "template", "spec"),
}


def _to_kind(value: str) -> Kind | str:
    try:
        return Kind(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class ObjectRef:
    """Simplified reference to a Kubernetes object."""

    kind: Kind | str
    name: str
    namespace: str = ""


def _metadata(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    return obj.get("metadata") or {}


def is_valid_label_value(value: str) -> bool:
    """Return True if ``value`` may be used as a Kubernetes label value."""
    return len(value) <= _LABEL_VALUE_MAX_LENGTH and _LABEL_VALUE.fullmatch(value) is not None


def controller_of(obj: Mapping[str, Any]) -> Mapping[str, Any] | None:
    """Return the owner reference marked as controller, if any."""
    for ref in _metadata(obj).get("ownerReferences") or []:
        if ref.get("controller"):
            return ref
    return None


def is_built_in_workload(controller: Mapping[str, Any] | None) -> bool:
    """Return True if the owner reference is a built-in workload controller."""
    return controller is not None and controller.get("kind") in _BUILT_IN_CONTROLLERS


def is_workload(kind: str) -> bool:
    """Return True if ``kind`` is a Kubernetes workload."""
    return kind in _WORKLOADS


def is_cluster_scoped_kind(kind: str) -> bool:
    """Return True for the cluster-scoped kinds the operator handles."""
    return kind in _CLUSTER_SCOPED


def object_ref_to_labels(ref: ObjectRef) -> dict[str, str]:
    """Encode a reference as labels, hashing names that are invalid label values."""
    labels = {
        LABEL_RESOURCE_KIND: str(ref.kind),
        LABEL_RESOURCE_NAMESPACE: ref.namespace,
    }
    if is_valid_label_value(ref.name):
        labels[LABEL_RESOURCE_NAME] = ref.name
    else:
        labels[LABEL_RESOURCE_NAME_HASH] = compute_hash(ref.name)
    return labels


def object_to_object_meta(
    obj: Mapping[str, Any], meta: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Record ``obj``'s identity in the labels and annotations of ``meta``."""
    obj_meta = _metadata(obj)
    name = obj_meta.get("name", "")
    labels = meta.get("labels")
    if labels is None:
        labels = meta["labels"] = {}
    labels[LABEL_RESOURCE_KIND] = obj.get("kind", "")
    labels[LABEL_RESOURCE_NAMESPACE] = obj_meta.get("namespace", "")
    if is_valid_label_value(name):
        labels[LABEL_RESOURCE_NAME] = name
    else:
        labels[LABEL_RESOURCE_NAME_HASH] = compute_hash(name)
        annotations = meta.get("annotations")
        if annotations is None:
            annotations = meta["annotations"] = {}
        annotations[LABEL_RESOURCE_NAME] = name
    return meta


def object_ref_from_object_meta(meta: Mapping[str, Any]) -> ObjectRef:
    """Read back a reference recorded by :func:`object_to_object_meta`."""
    labels = meta.get("labels") or {}
    annotations = meta.get("annotations") or {}
    if LABEL_RESOURCE_KIND not in labels:
        raise ValueError(f"required label does not exist: {LABEL_RESOURCE_KIND}")
    if LABEL_RESOURCE_NAME in labels:
        name = labels[LABEL_RESOURCE_NAME]
    elif LABEL_RESOURCE_NAME in annotations:
        name = annotations[LABEL_RESOURCE_NAME]
    else:
        raise ValueError(f"required label does not exist: {LABEL_RESOURCE_NAME}")
    return ObjectRef(
        kind=_to_kind(labels[LABEL_RESOURCE_KIND]),
        name=name,
        namespace=labels.get(LABEL_RESOURCE_NAMESPACE, ""),
    )


def object_ref_from_kind_and_key(kind: Kind | str, namespace: str, name: str) -> ObjectRef:
    """Build a reference from a kind and a namespaced name."""
    return ObjectRef(kind=kind, name=name, namespace=namespace)


def get_pod_spec(obj: Mapping[str, Any]) -> dict[str, Any]:
    """Return the pod spec of a workload; raise ValueError for other kinds."""
    kind = obj.get("kind", "")
    path = _TEMPLATE_PATHS.get(kind)
    if path is None:
        raise ValueError(f"unsupported workload: {kind}")
    node: Any = obj
    for key in path:
        node = node.get(key) if isinstance(node, Mapping) else None
        if node is None:
            return {}
    return node


def compute_spec_hash(obj: Mapping[str, Any]) -> str:
    """Hash the part of ``obj`` whose change calls for a rescan."""
    kind = obj.get("kind", "")
    if kind in _WORKLOADS:
        return compute_hash(get_pod_spec(obj))
    if kind in _HASHED_WHOLE:
        return compute_hash(obj)
    raise ValueError(f"computing spec hash of unsupported object: {kind}")