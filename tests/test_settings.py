from datetime import timedelta

import pytest

from scanoperator.settings import (
    InstallMode,
    OperatorConfig,
    get_operator_config,
    parse_duration,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("", []),
        ("operators", ["operators"]),
        ("foo,bar,baz", ["foo", "bar", "baz"]),
    ],
)
def test_target_namespaces(value, expected):
    assert OperatorConfig(target_namespaces_value=value).target_namespaces() == expected


@pytest.mark.parametrize(
    ("targets", "mode"),
    [
        ("operators", InstallMode.OWN_NAMESPACE),
        ("foo", InstallMode.SINGLE_NAMESPACE),
        ("foo,bar,baz", InstallMode.MULTI_NAMESPACE),
        ("", InstallMode.ALL_NAMESPACES),
    ],
)
def test_resolve_install_mode(targets, mode):
    config = OperatorConfig(namespace="operators", target_namespaces_value=targets)
    resolved, operator_namespace, _ = config.resolve_install_mode()
    assert resolved == mode
    assert operator_namespace == "operators"


def test_resolve_install_mode_requires_namespace():
    with pytest.raises(ValueError, match="OPERATOR_NAMESPACE must be set"):
        OperatorConfig(target_namespaces_value="foo").resolve_install_mode()


@pytest.mark.parametrize(
    ("targets", "value"),
    [
        ("operators", "OwnNamespace"),
        ("foo", "SingleNamespace"),
        ("foo,bar", "MultiNamespace"),
        ("", "AllNamespaces"),
    ],
)
def test_install_mode_values(targets, value):
    config = OperatorConfig(namespace="operators", target_namespaces_value=targets)
    mode, _, resolved_targets = config.resolve_install_mode()
    assert mode.value == value
    assert mode == value
    assert resolved_targets == config.target_namespaces()


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("5m", timedelta(minutes=5)),
        ("30s", timedelta(seconds=30)),
        ("10s", timedelta(seconds=10)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("1.5h", timedelta(minutes=90)),
        ("-2s", timedelta(seconds=-2)),
        ("250ms", timedelta(milliseconds=250)),
        ("0", timedelta(0)),
    ],
)
def test_parse_duration(value, expected):
    assert parse_duration(value) == expected


@pytest.mark.parametrize("value", ["", "5", "5x", ".s", "-"])
def test_parse_duration_rejects_invalid(value):
    with pytest.raises(ValueError, match="time:"):
        parse_duration(value)


def test_from_env_defaults():
    config = OperatorConfig.from_env({})
    assert config.service_account == "trivy-operator"
    assert config.scan_job_timeout == timedelta(minutes=5)
    assert config.concurrent_scan_jobs_limit == 10
    assert config.scan_job_retry_after == timedelta(seconds=30)
    assert config.batch_delete_delay == timedelta(seconds=10)
    assert config.metrics_bind_address == ":8080"
    assert config.health_probe_bind_address == ":9090"
    assert config.vulnerability_scanner_enabled is True
    assert config.config_audit_scanner_enabled is True
    assert config.vulnerability_scanner_report_ttl is None
    assert config.leader_election_id == "trivyoperator-lock"


def test_from_env_overrides():
    config = get_operator_config(
        {
            "OPERATOR_NAMESPACE": "trivy-operator",
            "OPERATOR_TARGET_NAMESPACES": "default,prod",
            "OPERATOR_CONCURRENT_SCAN_JOBS_LIMIT": "3",
            "OPERATOR_VULNERABILITY_SCANNER_ENABLED": "false",
            "OPERATOR_VULNERABILITY_SCANNER_REPORT_TTL": "24h",
        }
    )
    assert config.namespace == "trivy-operator"
    assert config.target_namespaces() == ["default", "prod"]
    assert config.concurrent_scan_jobs_limit == 3
    assert config.vulnerability_scanner_enabled is False
    assert config.vulnerability_scanner_report_ttl == timedelta(hours=24)


def test_from_env_empty_value_gives_zero():
    config = OperatorConfig.from_env({"OPERATOR_SERVICE_ACCOUNT": ""})
    assert config.service_account == ""


def test_from_env_rejects_invalid_bool():
    with pytest.raises(ValueError, match="OPERATOR_LOG_DEV_MODE"):
        OperatorConfig.from_env({"OPERATOR_LOG_DEV_MODE": "yes"})


def test_from_env_rejects_invalid_int():
    with pytest.raises(ValueError, match="OPERATOR_BATCH_DELETE_LIMIT"):
        OperatorConfig.from_env({"OPERATOR_BATCH_DELETE_LIMIT": "ten"})