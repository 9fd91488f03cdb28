"""Reading logs and container states of the pods that run scan jobs."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import IO, Any

from scanoperator.kube.client import InMemoryClient
from scanoperator.kube.objects import Kind

_CONTROLLER_UID = "controller-uid"


class PodForJobNotFoundError(LookupError):
    """No pod controlled by the given job exists."""

    def __init__(self, message: str = "pod for job not found") -> None:
        super().__init__(message)


def _metadata(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    return obj.get("metadata") or {}


def _job_key(job: Mapping[str, Any]) -> str:
    meta = _metadata(job)
    return f"{meta.get('namespace') or ''}/{meta.get('name') or ''}"


def terminated_container_statuses_by_pod(
    pod: Mapping[str, Any] | None,
) -> dict[str, Mapping[str, Any]]:
    """Map container names to their terminated state, init containers first."""
    if pod is None:
        return {}
    status = pod.get("status") or {}
    states: dict[str, Mapping[str, Any]] = {}
    for key in ("initContainerStatuses", "containerStatuses"):
        for container in status.get(key) or []:
            terminated = (container.get("state") or {}).get("terminated")
            if terminated is None:
                continue
            states[container.get("name", "")] = terminated
    return states


@dataclass
class LogsReader:
    """Reads what the pods of scan jobs left behind."""

    client: InMemoryClient

    def logs_by_job_and_container_name(
        self, job: Mapping[str, Any], container_name: str
    ) -> IO[str]:
        """Return a stream over the logs of a container of the job's pod."""
        pod = self._pod_by_job(job)
        if pod is None:
            raise PodForJobNotFoundError(
                f'getting pod controlled by job: "{_job_key(job)}": pod for job not found'
            )
        meta = _metadata(pod)
        return self.client.read_logs(
            meta.get("namespace") or "", meta.get("name") or "", container_name
        )

    def terminated_container_statuses_by_job(
        self, job: Mapping[str, Any]
    ) -> dict[str, Mapping[str, Any]]:
        """Return the terminated container states of the job's pod."""
        return terminated_container_statuses_by_pod(self._pod_by_job(job))

    def _pod_by_job(self, job: Mapping[str, Any]) -> dict[str, Any] | None:
        meta = _metadata(job)
        namespace = meta.get("namespace") or ""
        refreshed = self.client.get(Kind.JOB, namespace, meta.get("name") or "")
        match_labels = ((refreshed.get("spec") or {}).get("selector") or {}).get(
            "matchLabels"
        ) or {}
        selector = {_CONTROLLER_UID: match_labels.get(_CONTROLLER_UID, "")}
        pods = self.client.list(Kind.POD, namespace, selector)
        return pods[0] if pods else None