"""Building blocks for a Kubernetes security-scanning operator: settings, registry credentials, predicates and scan job limits."""

__version__ = "0.1.0"