# scanoperator

Building blocks for an operator that schedules security scans of Kubernetes
workloads. Kubernetes objects are plain dictionaries shaped like manifests
(`kind`, `metadata`, `spec`, `status`). The package has no dependencies
outside the standard library.

## Install

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `scanoperator.settings`: `OperatorConfig`, loaded from `OPERATOR_*`
  environment variables by `OperatorConfig.from_env()` or
  `get_operator_config()`; `resolve_install_mode()` returns one of the
  `InstallMode` values (`OwnNamespace`, `SingleNamespace`, `MultiNamespace`,
  `AllNamespaces`) together with the operator namespace and the target
  namespaces. `parse_duration()` reads durations such as `5m` or `1h30m`
  into a `timedelta`. `ScannerOptions` holds a scan job timeout and whether
  to delete scan jobs.
- `scanoperator.constants`: the label, annotation and key names used
  throughout the package.
- `scanoperator.ext`: `SystemClock` and `FixedClock`, `UUIDGenerator` and
  `SimpleIDGenerator` (which counts up from
  `00000000-0000-0000-0000-000000000001`), `contains_string()` and
  `min_int()`.
- `scanoperator.docker`: `DockerConfig`, `Auth` and `BasicAuth` for
  `config.json` style registry credentials, plus
  `get_server_from_image_ref()` and `get_server_from_docker_auth_key()`.
  `Auth` and `BasicAuth` print as `[REDACTED]`.
- `scanoperator.kube.objects`: the `Kind` values, `ObjectRef`, conversion
  between object references and report labels
  (`object_ref_to_labels()`, `object_to_object_meta()`,
  `object_ref_from_object_meta()`), `controller_of()`, `get_pod_spec()` and
  `compute_spec_hash()`.
- `scanoperator.kube.resources`: `ContainerImages` with JSON round trips,
  `compute_hash()`, and helpers that read container images from a pod spec
  or from a scan job's annotation.
- `scanoperator.kube.client`: `InMemoryClient`, an object store with
  `get`, `list` (by namespace and label selector), `create`, `update`,
  `delete` and per-container pod logs; it raises `NotFoundError` and
  `AlreadyExistsError`.
- `scanoperator.kube.resolver`: `ObjectResolver`, which finds the owner of a
  security report (for example the current ReplicaSet of a Deployment, or
  the CronJob behind a Job's pod), the node a workload runs on, and whether
  a ReplicaSet belongs to its Deployment's current revision.
- `scanoperator.kube.logs`: `LogsReader`, which returns the logs and the
  terminated container states of a scan job's pod.
- `scanoperator.kube.secrets`: `SecretsReader` and helpers that build image
  pull secrets and map container names to registry credentials.
- `scanoperator.predicates`: `Predicate` event filters such as
  `install_mode_predicate()`, `has_name()`, `in_namespace()` and
  `MANAGED_BY_TRIVY_OPERATOR`; negate one with `~` or `not_()`.
- `scanoperator.limits`: `LimitChecker`, which counts the operator's scan
  jobs against `concurrent_scan_jobs_limit`.

## Examples

```python
from scanoperator.settings import InstallMode, OperatorConfig

config = OperatorConfig(namespace="operators", target_namespaces_value="foo,bar")
mode, operator_ns, targets = config.resolve_install_mode()
assert mode is InstallMode.MULTI_NAMESPACE
assert targets == ["foo", "bar"]
```

```python
from scanoperator.kube.objects import Kind, ObjectRef, object_ref_to_labels

labels = object_ref_to_labels(ObjectRef(Kind.POD, "my-pod", "production"))
# {"trivy-operator.resource.kind": "Pod",
#  "trivy-operator.resource.namespace": "production",
#  "trivy-operator.resource.name": "my-pod"}
```

```python
from scanoperator.docker import DockerConfig

config = DockerConfig.read(
    b'{"auths": {"registry.example.com": {"username": "user", "password": "password"}}}'
)
assert config.auths["registry.example.com"].username == "user"
```

```python
from scanoperator.kube.client import InMemoryClient
from scanoperator.limits import LimitChecker
from scanoperator.settings import OperatorConfig

client = InMemoryClient(
    {"kind": "Job", "metadata": {"name": "scan-1", "namespace": "trivy-operator",
                                 "labels": {"app.kubernetes.io/managed-by": "trivy-operator"}}},
)
checker = LimitChecker(OperatorConfig(namespace="trivy-operator", concurrent_scan_jobs_limit=2), client)
assert checker.check() == (False, 1)
```

## What it does not do

The package does not talk to a Kubernetes API server: the only client is
`InMemoryClient`, and the readers and resolver work against it. It has no
reconciliation loops, does not create, run or watch scan jobs, does not
parse scanner output into reports or store reports, and has no
command-line entry point.