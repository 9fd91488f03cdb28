"""Filters deciding which object events the operator reconciles."""

from __future__ import annotations

import fnmatch
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from scanoperator.constants import (
    APP_TRIVY_OPERATOR,
    LABEL_CONFIG_AUDIT_REPORT_SCANNER,
    LABEL_K8S_APP_MANAGED_BY,
    LABEL_OS_STABLE,
    LABEL_VULNERABILITY_REPORT_SCANNER,
    LEADER_ELECTION_RECORD_ANNOTATION,
)
from scanoperator.ext import contains_string
from scanoperator.settings import InstallMode, OperatorConfig

Object = Mapping[str, Any]


def _metadata(obj: Object) -> Mapping[str, Any]:
    return obj.get("metadata") or {}


def _labels(obj: Object) -> Mapping[str, str]:
    return _metadata(obj).get("labels") or {}


def _annotations(obj: Object) -> Mapping[str, str]:
    return _metadata(obj).get("annotations") or {}


@dataclass(frozen=True)
class Predicate:
    """Applies one filter to create, update, delete and generic events."""

    matches: Callable[[Object | None], bool]

    def create(self, obj: Object | None) -> bool:
        return self.matches(obj)

    def update(self, old: Object | None, new: Object | None) -> bool:
        return self.matches(new)

    def delete(self, obj: Object | None) -> bool:
        return self.matches(obj)

    def generic(self, obj: Object | None) -> bool:
        return self.matches(obj)

    def __invert__(self) -> Predicate:
        inner = self.matches
        return Predicate(lambda obj: not inner(obj))


def not_(predicate: Predicate) -> Predicate:
    """Return a predicate that negates ``predicate``."""
    return ~predicate


def install_mode_predicate(config: OperatorConfig) -> Predicate:
    """Select objects that should be scanned under the configured install mode.

    In single- and multi-namespace modes the operator namespace is cached too,
    but workloads there are only scanned when it is a target namespace.
    """
    mode, operator_namespace, targets = config.resolve_install_mode()
    excluded: list[str] = []
    if mode is InstallMode.ALL_NAMESPACES and config.exclude_namespaces.strip():
        excluded = [pattern.strip() for pattern in config.exclude_namespaces.split(",")]

    def accepts(obj: Object | None) -> bool:
        namespace = _metadata(obj or {}).get("namespace", "")
        if mode is InstallMode.SINGLE_NAMESPACE:
            return targets[0] == namespace and operator_namespace != namespace
        if mode is InstallMode.MULTI_NAMESPACE:
            return contains_string(targets, namespace)
        return not any(fnmatch.fnmatchcase(namespace, pattern) for pattern in excluded)

    return Predicate(accepts)


def has_name(name: str) -> Predicate:
    """Select objects with the given name."""
    return Predicate(lambda obj: _metadata(obj or {}).get("name", "") == name)


def in_namespace(namespace: str) -> Predicate:
    """Select objects in the given namespace."""
    return Predicate(lambda obj: _metadata(obj or {}).get("namespace", "") == namespace)


MANAGED_BY_TRIVY_OPERATOR = Predicate(
    lambda obj: _labels(obj or {}).get(LABEL_K8S_APP_MANAGED_BY) == APP_TRIVY_OPERATOR
)
"""Objects labelled as managed by the operator."""

IS_BEING_TERMINATED = Predicate(
    lambda obj: _metadata(obj or {}).get("deletionTimestamp") is not None
)
"""Objects with a deletion timestamp set."""

JOB_HAS_ANY_CONDITION = Predicate(
    lambda obj: obj is not None
    and obj.get("kind") == "Job"
    and bool((obj.get("status") or {}).get("conditions"))
)
"""Jobs that report at least one condition."""

IS_VULNERABILITY_REPORT_SCAN = Predicate(
    lambda obj: LABEL_VULNERABILITY_REPORT_SCANNER in _labels(obj or {})
)

IS_CONFIG_AUDIT_REPORT_SCAN = Predicate(
    lambda obj: LABEL_CONFIG_AUDIT_REPORT_SCANNER in _labels(obj or {})
)

IS_LINUX_NODE = Predicate(lambda obj: _labels(obj or {}).get(LABEL_OS_STABLE) == "linux")

IS_LEADER_ELECTION_RESOURCE = Predicate(
    lambda obj: LEADER_ELECTION_RECORD_ANNOTATION in _annotations(obj or {})
)
"""Resources annotated with a leader election record."""