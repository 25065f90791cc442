"""Pod name filters (per-namespace regex, `grep -E` search semantics)."""

from __future__ import annotations

import re
from typing import Iterable, Iterator, List, Optional, Pattern

from kubeversions.core.models import PodRecord


def compile_pod_filter(pattern: Optional[str]) -> Optional[Pattern[str]]:
    """Compile a filter pattern; empty/None means "keep everything". Raises re.error on bad input."""
    p = (pattern or "").strip()
    if not p:
        return None
    return re.compile(p)


def pod_matches(name: str, pod_filter: Optional[Pattern[str]]) -> bool:
    if pod_filter is None:
        return True
    return pod_filter.search(name or "") is not None


def filter_pods(pods: Iterable[PodRecord], pod_filter: Optional[Pattern[str]]) -> List[PodRecord]:
    return [p for p in pods if pod_matches(p.name, pod_filter)]


def collapse_show_once(pods: Iterable[PodRecord], show_once: Optional[Pattern[str]]) -> Iterator[PodRecord]:
    """Yield pods, keeping only the first pod whose name matches `show_once` (e.g. metrics replicas)."""
    seen = False
    for pod in pods:
        if show_once is not None and show_once.search(pod.name):
            if seen:
                continue
            seen = True
        yield pod
