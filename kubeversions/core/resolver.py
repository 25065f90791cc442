"""Per-pod version resolution.

Resolution order is fixed and always terminates:
  1. pod label `app.kubernetes.io/version`
  2. pod label `version`
  3. pod annotation `app.kubernetes.io/version`
  4. owning workload's labels (same two keys), one lookup per owner per namespace pass
  5. image tag
  6. `unknown`
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from kubeversions.core.image import version_from_image
from kubeversions.core.models import UNKNOWN_VERSION, PodRecord, ResolvedVersion

logger = logging.getLogger(__name__)

VERSION_LABEL = "app.kubernetes.io/version"
LEGACY_VERSION_LABEL = "version"

# (kind, name) -> workload labels
OwnerLabelLookup = Callable[[str, str], Mapping[str, Any]]


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def version_from_labels(labels: Optional[Mapping[str, Any]]) -> str:
    """First non-empty of the two version labels, or ""."""
    if not labels:
        return ""
    return _clean(labels.get(VERSION_LABEL)) or _clean(labels.get(LEGACY_VERSION_LABEL))


class WorkloadVersionCache:
    """
    Memoizes owner-workload versions for one (context, namespace) pass.

    Entries are write-once: the first lookup result for an owner (including "" on failure)
    is what every later pod with the same owner sees.
    """

    def __init__(self, lookup: OwnerLabelLookup) -> None:
        self._lookup = lookup
        self._versions: Dict[str, str] = {}
        self.lookups = 0

    def __contains__(self, key: str) -> bool:
        return key in self._versions

    def __len__(self) -> int:
        return len(self._versions)

    def get(self, kind: str, name: str) -> str:
        key = f"{kind}/{name}"
        if key in self._versions:
            return self._versions[key]

        self.lookups += 1
        try:
            version = version_from_labels(self._lookup(kind, name))
        except Exception as e:
            logger.debug("Owner lookup failed for %s: %s", key, e)
            version = ""
        self._versions[key] = version
        return version


def resolve_pod_version(pod: PodRecord, cache: Optional[WorkloadVersionCache]) -> ResolvedVersion:
    """Resolve a version for one pod. Never raises; falls back to the `unknown` sentinel."""
    version = _clean(pod.label_version) or _clean(pod.legacy_label_version)
    if version:
        return ResolvedVersion(version=version, source="pod-label")

    version = _clean(pod.annotation_version)
    if version:
        return ResolvedVersion(version=version, source="pod-annotation")

    if cache is not None and pod.owner_kind and pod.owner_name:
        version = cache.get(pod.owner_kind, pod.owner_name)
        if version:
            return ResolvedVersion(version=version, source="workload-label")

    version = version_from_image(pod.image) or ""
    if version:
        return ResolvedVersion(version=version, source="image-tag")

    return ResolvedVersion(version=UNKNOWN_VERSION, source="none")
