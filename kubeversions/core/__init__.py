"""
Version resolution core (pure, no Kubernetes calls).

The provider layer feeds `PodRecord`s in; everything here is deterministic.
"""

from kubeversions.core.image import version_from_image
from kubeversions.core.resolver import WorkloadVersionCache, resolve_pod_version

__all__ = [
    "version_from_image",
    "resolve_pod_version",
    "WorkloadVersionCache",
]
