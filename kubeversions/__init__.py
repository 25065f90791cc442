"""Report workload versions across Kubernetes contexts and namespaces."""

__version__ = "1.2.0"
