"""Operator settings loaded from environment variables."""

from __future__ import annotations

import os
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from fractions import Fraction
from typing import Any

_NANOS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_NUMBER = re.compile(r"(\d*)(?:\.(\d*))?")
_UNIT = re.compile(r"[^\d.]*")
_MAX_NANOS = (1 << 63) - 1


def parse_duration(value: str) -> timedelta:
    """Parse a duration such as ``5m``, ``1h30m`` or ``-1.5s``."""
    invalid = ValueError(f'time: invalid duration "{value}"')
    text = value
    negative = False
    if text[:1] in ("+", "-"):
        negative = text[0] == "-"
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise invalid
    total = Fraction(0)
    pos = 0
    while pos < len(text):
        number = _NUMBER.match(text, pos)
        whole, frac = number.group(1), number.group(2)
        if not whole and not frac:
            raise invalid
        pos = number.end()
        unit_match = _UNIT.match(text, pos)
        unit = unit_match.group(0)
        if not unit:
            raise ValueError(f'time: missing unit in duration "{value}"')
        if unit not in _NANOS:
            raise ValueError(f'time: unknown unit "{unit}" in duration "{value}"')
        pos = unit_match.end()
        amount = Fraction(int(whole or "0"))
        if frac:
            amount += Fraction(int(frac), 10 ** len(frac))
        total += amount * _NANOS[unit]
        if total > _MAX_NANOS + 1:
            raise invalid
    nanos = int(total)
    if negative:
        nanos = -nanos
    if nanos > _MAX_NANOS:
        raise invalid
    micros = int(Fraction(nanos, 1000))
    return timedelta(microseconds=micros)


_BOOL_VALUES = {
    "1": True, "t": True, "T": True, "TRUE": True, "true": True, "True": True,
    "0": False, "f": False, "F": False, "FALSE": False, "false": False, "False": False,
}


def _parse_bool(value: str) -> bool:
    try:
        return _BOOL_VALUES[value]
    except KeyError:
        raise ValueError(f'strconv.ParseBool: parsing "{value}": invalid syntax') from None


def _parse_int(value: str) -> int:
    if not re.fullmatch(r"[+-]?\d+", value):
        raise ValueError(f'strconv.ParseInt: parsing "{value}": invalid syntax')
    number = int(value)
    if not -(1 << 63) <= number <= _MAX_NANOS:
        raise ValueError(f'strconv.ParseInt: parsing "{value}": value out of range')
    return number


class InstallMode(str, Enum):
    """Multitenancy modes defined by the Operator Lifecycle Manager."""

    OWN_NAMESPACE = "OwnNamespace"
    SINGLE_NAMESPACE = "SingleNamespace"
    MULTI_NAMESPACE = "MultiNamespace"
    ALL_NAMESPACES = "AllNamespaces"


@dataclass(frozen=True)
class _EnvField:
    attr: str
    env: str
    parse: Callable[[str], Any]
    default: str | None
    zero: Any


_FIELDS = (
    _EnvField("namespace", "OPERATOR_NAMESPACE", str, None, ""),
    _EnvField("target_namespaces_value", "OPERATOR_TARGET_NAMESPACES", str, None, ""),
    _EnvField("exclude_namespaces", "OPERATOR_EXCLUDE_NAMESPACES", str, None, ""),
    _EnvField("service_account", "OPERATOR_SERVICE_ACCOUNT", str, "trivy-operator", ""),
    _EnvField("log_dev_mode", "OPERATOR_LOG_DEV_MODE", _parse_bool, "false", False),
    _EnvField("scan_job_timeout", "OPERATOR_SCAN_JOB_TIMEOUT", parse_duration, "5m", timedelta(0)),
    _EnvField(
        "concurrent_scan_jobs_limit", "OPERATOR_CONCURRENT_SCAN_JOBS_LIMIT", _parse_int, "10", 0
    ),
    _EnvField(
        "scan_job_retry_after", "OPERATOR_SCAN_JOB_RETRY_AFTER", parse_duration, "30s", timedelta(0)
    ),
    _EnvField("batch_delete_limit", "OPERATOR_BATCH_DELETE_LIMIT", _parse_int, "10", 0),
    _EnvField(
        "batch_delete_delay", "OPERATOR_BATCH_DELETE_DELAY", parse_duration, "10s", timedelta(0)
    ),
    _EnvField("metrics_bind_address", "OPERATOR_METRICS_BIND_ADDRESS", str, ":8080", ""),
    _EnvField(
        "health_probe_bind_address", "OPERATOR_HEALTH_PROBE_BIND_ADDRESS", str, ":9090", ""
    ),
    _EnvField(
        "cis_kubernetes_benchmark_enabled",
        "OPERATOR_CIS_KUBERNETES_BENCHMARK_ENABLED",
        _parse_bool,
        "false",
        False,
    ),
    _EnvField(
        "vulnerability_scanner_enabled",
        "OPERATOR_VULNERABILITY_SCANNER_ENABLED",
        _parse_bool,
        "true",
        False,
    ),
    _EnvField(
        "vulnerability_scanner_scan_only_current_revisions",
        "OPERATOR_VULNERABILITY_SCANNER_SCAN_ONLY_CURRENT_REVISIONS",
        _parse_bool,
        "false",
        False,
    ),
    _EnvField(
        "vulnerability_scanner_report_ttl",
        "OPERATOR_VULNERABILITY_SCANNER_REPORT_TTL",
        parse_duration,
        None,
        None,
    ),
    _EnvField(
        "cluster_compliance_enabled",
        "OPERATOR_CLUSTER_COMPLIANCE_ENABLED",
        _parse_bool,
        "false",
        False,
    ),
    _EnvField(
        "config_audit_scanner_enabled",
        "OPERATOR_CONFIG_AUDIT_SCANNER_ENABLED",
        _parse_bool,
        "true",
        False,
    ),
    _EnvField(
        "config_audit_scanner_scan_only_current_revisions",
        "OPERATOR_CONFIG_AUDIT_SCANNER_SCAN_ONLY_CURRENT_REVISIONS",
        _parse_bool,
        "false",
        False,
    ),
    _EnvField(
        "leader_election_enabled", "OPERATOR_LEADER_ELECTION_ENABLED", _parse_bool, "false", False
    ),
    _EnvField(
        "leader_election_id", "OPERATOR_LEADER_ELECTION_ID", str, "trivyoperator-lock", ""
    ),
)


@dataclass
class OperatorConfig:
    """Parameters for running the operator."""

    namespace: str = ""
    target_namespaces_value: str = ""
    exclude_namespaces: str = ""
    service_account: str = "trivy-operator"
    log_dev_mode: bool = False
    scan_job_timeout: timedelta = timedelta(minutes=5)
    concurrent_scan_jobs_limit: int = 10
    scan_job_retry_after: timedelta = timedelta(seconds=30)
    batch_delete_limit: int = 10
    batch_delete_delay: timedelta = timedelta(seconds=10)
    metrics_bind_address: str = ":8080"
    health_probe_bind_address: str = ":9090"
    cis_kubernetes_benchmark_enabled: bool = False
    vulnerability_scanner_enabled: bool = True
    vulnerability_scanner_scan_only_current_revisions: bool = False
    vulnerability_scanner_report_ttl: timedelta | None = None
    cluster_compliance_enabled: bool = False
    config_audit_scanner_enabled: bool = True
    config_audit_scanner_scan_only_current_revisions: bool = False
    leader_election_enabled: bool = False
    leader_election_id: str = "trivyoperator-lock"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> OperatorConfig:
        """Load settings from ``environ`` (``os.environ`` by default)."""
        env = os.environ if environ is None else environ
        values = {}
        for spec in _FIELDS:
            raw = env.get(spec.env)
            if raw is None:
                raw = spec.default
            if raw is None:
                values[spec.attr] = spec.zero
                continue
            if raw == "":
                values[spec.attr] = spec.zero
                continue
            try:
                values[spec.attr] = spec.parse(raw)
            except ValueError as exc:
                raise ValueError(f"parsing {spec.env}: {exc}") from exc
        return cls(**values)

    def operator_namespace(self) -> str:
        """Return the namespace the operator runs in."""
        if self.namespace:
            return self.namespace
        raise ValueError("OPERATOR_NAMESPACE must be set")

    def target_namespaces(self) -> list[str]:
        """Return the namespaces the operator watches; empty means all."""
        if self.target_namespaces_value:
            return self.target_namespaces_value.split(",")
        return []

    def resolve_install_mode(self) -> tuple[InstallMode, str, list[str]]:
        """Return ``(mode, operator namespace, target namespaces)``."""
        operator_namespace = self.operator_namespace()
        targets = self.target_namespaces()
        if len(targets) == 1:
            if targets[0] == operator_namespace:
                return InstallMode.OWN_NAMESPACE, operator_namespace, targets
            return InstallMode.SINGLE_NAMESPACE, operator_namespace, targets
        if len(targets) > 1:
            return InstallMode.MULTI_NAMESPACE, operator_namespace, targets
        return InstallMode.ALL_NAMESPACES, operator_namespace, targets


@dataclass
class ScannerOptions:
    """Settings of the vulnerability scanner."""

    scan_job_timeout: timedelta = timedelta(0)
    delete_scan_job: bool = False


def get_operator_config(environ: Mapping[str, str] | None = None) -> OperatorConfig:
    """Load operator settings from environment variables."""
    return OperatorConfig.from_env(environ)