"""Container image reference helpers.

Pods rarely carry an explicit version label, so the image tag is the last resort:
`quay.io/argoproj/argocd:v2.9.3` -> `v2.9.3`, `datadog/agent:7.50.1` -> `7.50.1`.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

# A semver-ish tag (optional "v", MAJOR.MINOR.PATCH, optional "-prerelease") or `latest`,
# directly after a ":" (tag) or "@" separator.
_IMAGE_VERSION_RE = re.compile(r"[:@](v?[0-9]+\.[0-9]+\.[0-9]+(?:-[a-zA-Z0-9.-]+)?|latest)")


def version_from_image(image: Optional[str]) -> Optional[str]:
    """
    Extract a version from an image reference, or None when the tag does not look like one.

    The rightmost match wins, so a registry port (`registry:5000/app:1.2.3`) never shadows the tag,
    and `app:1.2.3@sha256:...` still yields `1.2.3`.
    """
    raw = (image or "").strip()
    if not raw:
        return None
    matches = _IMAGE_VERSION_RE.findall(raw)
    if not matches:
        return None
    return matches[-1]


def distinct_image_versions(images: Iterable[Optional[str]]) -> List[str]:
    """Sorted, de-duplicated image-tag versions; images without a recognizable tag are dropped."""
    versions = {v for v in (version_from_image(i) for i in images) if v}
    return sorted(versions)
