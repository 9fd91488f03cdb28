"""Resolution of related Kubernetes objects: owners, replica sets and nodes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from scanoperator.constants import DEPLOYMENT_REVISION_ANNOTATION
from scanoperator.kube.client import InMemoryClient
from scanoperator.kube.objects import Kind, ObjectRef, controller_of

Object = dict[str, Any]

_RESOLVABLE_KINDS = frozenset(
    {
        Kind.POD,
        Kind.REPLICA_SET,
        Kind.REPLICATION_CONTROLLER,
        Kind.DEPLOYMENT,
        Kind.STATEFUL_SET,
        Kind.DAEMON_SET,
        Kind.CRON_JOB,
        Kind.JOB,
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
_MATCH_LABELS_SELECTOR_KINDS = frozenset(
    {Kind.REPLICA_SET, Kind.STATEFUL_SET, Kind.DAEMON_SET, Kind.JOB}
)


class ReplicaSetNotFoundError(LookupError):
    """The current revision of a Deployment has no ReplicaSet."""

    def __init__(self, message: str = "replicaset not found") -> None:
        super().__init__(message)


class NoRunningPodsError(LookupError):
    """A controller has no active pods."""

    def __init__(self, message: str = "no active pods for controller") -> None:
        super().__init__(message)


class UnsupportedKindError(ValueError):
    """The workload kind is not supported by the operation."""

    def __init__(self, message: str = "unsupported workload kind") -> None:
        super().__init__(message)


def _metadata(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    return obj.get("metadata") or {}


def _namespace(obj: Mapping[str, Any]) -> str:
    return _metadata(obj).get("namespace") or ""


def _name(obj: Mapping[str, Any]) -> str:
    return _metadata(obj).get("name") or ""


def _annotations(obj: Mapping[str, Any]) -> Mapping[str, str]:
    return _metadata(obj).get("annotations") or {}


def _spec(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    return obj.get("spec") or {}


def _match_labels_selector(obj: Mapping[str, Any]) -> Mapping[str, str]:
    return (_spec(obj).get("selector") or {}).get("matchLabels") or {}


def _with_kind(obj: Object, kind: Kind) -> Object:
    obj.setdefault("kind", str(kind))
    return obj


@dataclass
class ObjectResolver:
    """Looks up objects related to a given object through a client."""

    client: InMemoryClient

    def object_from_object_ref(self, ref: ObjectRef) -> Object:
        """Fetch the object a reference points to."""
        if ref.kind not in _RESOLVABLE_KINDS:
            raise ValueError(f"unknown kind: {ref.kind}")
        obj = self.client.get(ref.kind, ref.namespace, ref.name)
        return _with_kind(obj, Kind(ref.kind))

    def report_owner(self, obj: Object) -> Object:
        """Resolve the object that owns security reports of ``obj``."""
        kind = obj.get("kind")
        if kind == Kind.DEPLOYMENT:
            return self.replica_set_by_deployment(obj)
        if kind == Kind.JOB:
            controller = controller_of(obj)
            if controller is not None and controller.get("kind") == Kind.CRON_JOB:
                return self.cron_job_by_job(obj)
            return obj
        if kind == Kind.POD:
            controller = controller_of(obj)
            if controller is None:
                return obj
            if controller.get("kind") == Kind.REPLICA_SET:
                return self.replica_set_by_pod(obj)
            if controller.get("kind") == Kind.JOB:
                return self.report_owner(self.job_by_pod(obj))
            return obj
        return obj

    def replica_set_by_deployment_ref(self, ref: ObjectRef) -> Object:
        """Return the current ReplicaSet of the referenced Deployment."""
        deployment = self.client.get(Kind.DEPLOYMENT, ref.namespace, ref.name)
        return self.replica_set_by_deployment(deployment)

    def replica_set_by_deployment(self, deployment: Mapping[str, Any]) -> Object:
        """Return the ReplicaSet of the Deployment's current revision."""
        replica_sets = self.client.list(
            Kind.REPLICA_SET, _namespace(deployment), _match_labels_selector(deployment)
        )
        if not replica_sets:
            raise ReplicaSetNotFoundError()
        revision = _annotations(deployment).get(DEPLOYMENT_REVISION_ANNOTATION, "")
        for replica_set in replica_sets:
            if _annotations(replica_set).get(DEPLOYMENT_REVISION_ANNOTATION, "") == revision:
                return _with_kind(replica_set, Kind.REPLICA_SET)
        raise ReplicaSetNotFoundError()

    def replica_set_by_pod_ref(self, ref: ObjectRef) -> Object:
        """Return the controlling ReplicaSet of the referenced Pod."""
        pod = self.client.get(Kind.POD, ref.namespace, ref.name)
        return self.replica_set_by_pod(pod)

    def replica_set_by_pod(self, pod: Mapping[str, Any]) -> Object:
        """Return the ReplicaSet controlling ``pod``."""
        controller = controller_of(pod)
        if controller is None:
            raise ValueError(
                f'did not find a controller for pod "{_namespace(pod)}/{_name(pod)}"'
            )
        if controller.get("kind") != Kind.REPLICA_SET:
            raise ValueError(
                f'pod "{_name(pod)}" is controlled by a "{controller.get("kind", "")}", '
                "want replicaset"
            )
        replica_set = self.client.get(Kind.REPLICA_SET, _namespace(pod), controller.get("name", ""))
        return _with_kind(replica_set, Kind.REPLICA_SET)

    def cron_job_by_job(self, job: Mapping[str, Any]) -> Object:
        """Return the CronJob controlling ``job``."""
        controller = controller_of(job)
        if controller is None:
            raise ValueError(f'did not find a controller for job "{_name(job)}"')
        if controller.get("kind") != Kind.CRON_JOB:
            raise ValueError(
                f'pod "{_name(job)}" is controlled by a "{controller.get("kind", "")}", '
                "want CronJob"
            )
        cron_job = self.client.get(Kind.CRON_JOB, _namespace(job), controller.get("name", ""))
        return _with_kind(cron_job, Kind.CRON_JOB)

    def job_by_pod(self, pod: Mapping[str, Any]) -> Object:
        """Return the Job controlling ``pod``."""
        controller = controller_of(pod)
        if controller is None:
            raise ValueError(f'did not find a controller for pod "{_name(pod)}"')
        if controller.get("kind") != Kind.JOB:
            raise ValueError(
                f'pod "{_name(pod)}" is controlled by a "{controller.get("kind", "")}", '
                "want replicaset"
            )
        job = self.client.get(Kind.JOB, _namespace(pod), controller.get("name", ""))
        return _with_kind(job, Kind.JOB)

    def related_replica_set_name(self, ref: ObjectRef) -> str:
        """Return the name of the ReplicaSet related to a Deployment or Pod."""
        if ref.kind == Kind.DEPLOYMENT:
            return _name(self.replica_set_by_deployment_ref(ref))
        if ref.kind == Kind.POD:
            return _name(self.replica_set_by_pod_ref(ref))
        raise ValueError(
            f'can only get related ReplicaSet for Deployment or Pod, not "{ref.kind}"'
        )

    def get_node_name(self, obj: Mapping[str, Any]) -> str:
        """Return the node on which the workload's first active pod runs."""
        kind = obj.get("kind")
        namespace = _namespace(obj)
        if kind == Kind.POD:
            return _spec(obj).get("nodeName") or ""
        if kind == Kind.DEPLOYMENT:
            replica_set = self.replica_set_by_deployment(obj)
            selector = _match_labels_selector(replica_set)
        elif kind == Kind.REPLICATION_CONTROLLER:
            selector = _spec(obj).get("selector") or {}
        elif kind in _MATCH_LABELS_SELECTOR_KINDS:
            selector = _match_labels_selector(obj)
        else:
            raise UnsupportedKindError()
        pods = self._active_pods(namespace, selector)
        return _spec(pods[0]).get("nodeName") or ""

    def is_active_replica_set(
        self, workload: Mapping[str, Any], controller: Mapping[str, Any] | None
    ) -> bool:
        """Return False for a Deployment's ReplicaSet of an old revision."""
        if controller is None or controller.get("kind") != Kind.DEPLOYMENT:
            return True
        deployment = self.client.get(
            Kind.DEPLOYMENT, _namespace(workload), controller.get("name", "")
        )
        return _annotations(workload).get(DEPLOYMENT_REVISION_ANNOTATION, "") == _annotations(
            deployment
        ).get(DEPLOYMENT_REVISION_ANNOTATION, "")

    def get_pods_by_label_selector(
        self, namespace: str, selector: Mapping[str, str] | None
    ) -> list[Object]:
        """Return pods in ``namespace`` whose labels match ``selector``."""
        return self.client.list(Kind.POD, namespace, selector)

    def _active_pods(self, namespace: str, selector: Mapping[str, str]) -> list[Object]:
        pods = self.get_pods_by_label_selector(namespace, selector)
        if not pods:
            raise NoRunningPodsError()
        return pods