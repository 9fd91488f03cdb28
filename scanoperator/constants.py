"""Well-known label, annotation and key names shared across the package."""

LABEL_RESOURCE_KIND = "trivy-operator.resource.kind"
LABEL_RESOURCE_NAME = "trivy-operator.resource.name"
LABEL_RESOURCE_NAME_HASH = "trivy-operator.resource.name-hash"
LABEL_RESOURCE_NAMESPACE = "trivy-operator.resource.namespace"
LABEL_RESOURCE_SPEC_HASH = "resource-spec-hash"
LABEL_PLUGIN_CONFIG_HASH = "plugin-config-hash"
LABEL_VULNERABILITY_REPORT_SCANNER = "vulnerabilityReport.scanner"
LABEL_CONFIG_AUDIT_REPORT_SCANNER = "configAuditReport.scanner"

LABEL_K8S_APP_MANAGED_BY = "app.kubernetes.io/managed-by"
APP_TRIVY_OPERATOR = "trivy-operator"

ANNOTATION_CONTAINER_IMAGES = "trivy-operator.container-images"
DEPLOYMENT_REVISION_ANNOTATION = "deployment.kubernetes.io/revision"
LEADER_ELECTION_RECORD_ANNOTATION = "control-plane.alpha.kubernetes.io/leader"
LABEL_OS_STABLE = "kubernetes.io/os"

KEY_VULNERABILITY_SCANS_IN_SAME_NAMESPACE = "vulnerabilityReports.scanJobsInSameNamespace"

NAMESPACE_DEFAULT = "default"
SERVICE_ACCOUNT_DEFAULT = "default"

SECRET_TYPE_DOCKER_CONFIG_JSON = "kubernetes.io/dockerconfigjson"
DOCKER_CONFIG_JSON_KEY = ".dockerconfigjson"