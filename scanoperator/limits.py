"""Limit on the number of scan jobs running at once."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from scanoperator.constants import (
    APP_TRIVY_OPERATOR,
    KEY_VULNERABILITY_SCANS_IN_SAME_NAMESPACE,
    LABEL_K8S_APP_MANAGED_BY,
)
from scanoperator.kube.client import InMemoryClient
from scanoperator.settings import OperatorConfig


@dataclass
class LimitChecker:
    """Counts the operator's scan jobs against the configured limit."""

    config: OperatorConfig
    client: InMemoryClient
    operator_config_data: Mapping[str, str] = field(default_factory=dict)

    def check(self) -> tuple[bool, int]:
        """Return ``(limit exceeded, number of scan jobs)``."""
        count = self._count_scan_jobs()
        return count >= self.config.concurrent_scan_jobs_limit, count

    def _scan_jobs_in_same_namespace(self) -> bool:
        return self.operator_config_data.get(KEY_VULNERABILITY_SCANS_IN_SAME_NAMESPACE) == "true"

    def _count_scan_jobs(self) -> int:
        # Unless scans run beside their workloads, jobs live only in the operator namespace.
        namespace = None if self._scan_jobs_in_same_namespace() else self.config.namespace
        jobs = self.client.list(
            "Job", namespace, {LABEL_K8S_APP_MANAGED_BY: APP_TRIVY_OPERATOR}
        )
        return len(jobs)