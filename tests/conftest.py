"""
Pytest config.

Tests import the local `kubeversions/` package and `main.py` straight from the repo root,
so the root is pinned on sys.path even when the project is not installed.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()

from kubeversions.core.models import PodRecord, ReportWarning  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_logging(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """
    `main()` installs root handlers and a per-run log file. Point the file at tmp_path
    (never ~/logs) and restore the root logger afterwards.
    """
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "kube-versions.log"))
    monkeypatch.delenv("DEBUG", raising=False)
    monkeypatch.delenv("KUBE_VERSIONS_CONFIG", raising=False)

    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        if h not in saved_handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(saved_level)
    transcript = logging.getLogger("kubeversions.transcript")
    for h in list(transcript.handlers):
        transcript.removeHandler(h)
        h.close()


class FakeK8sProvider:
    """In-memory provider. Records every call so tests can assert on call counts."""

    def __init__(
        self,
        *,
        contexts: Optional[List[str]] = None,
        unreachable: Iterable[str] = (),
        namespaces: Optional[Dict[str, Iterable[str]]] = None,
        pods: Optional[Dict[Tuple[str, str], List[PodRecord]]] = None,
        workload_labels: Optional[Dict[Tuple[str, str, str, str], Dict[str, Any]]] = None,
        failing_pod_lists: Iterable[Tuple[str, str]] = (),
        failing_namespace_checks: Iterable[Tuple[str, str]] = (),
    ) -> None:
        self.contexts = list(contexts or [])
        self.unreachable = set(unreachable)
        self.namespaces = {ctx: set(ns) for ctx, ns in (namespaces or {}).items()}
        self.pods = dict(pods or {})
        self.workload_labels = dict(workload_labels or {})
        self.failing_pod_lists = set(failing_pod_lists)
        self.failing_namespace_checks = set(failing_namespace_checks)
        self.calls: List[Tuple[Any, ...]] = []

    def list_contexts(self) -> List[str]:
        self.calls.append(("list_contexts",))
        return list(self.contexts)

    def check_context(self, context):
        self.calls.append(("check_context", context))
        if context in self.unreachable:
            return ReportWarning(kind="ContextUnreachable", message=f"Cannot access context '{context}'")
        return None

    def namespace_exists(self, context, namespace) -> bool:
        self.calls.append(("namespace_exists", context, namespace))
        if (context, namespace) in self.failing_namespace_checks:
            raise Exception(f"Failed to read namespace {namespace}: (500) Internal Server Error")
        return namespace in self.namespaces.get(context, set())

    def list_pod_records(self, context, namespace) -> List[PodRecord]:
        self.calls.append(("list_pod_records", context, namespace))
        if (context, namespace) in self.failing_pod_lists:
            raise Exception("Failed to list pods: connection reset")
        return list(self.pods.get((context, namespace), []))

    def get_workload_labels(self, context, namespace, kind, name) -> Dict[str, Any]:
        self.calls.append(("get_workload_labels", context, namespace, kind, name))
        return dict(self.workload_labels.get((context, namespace, kind, name), {}))

    def count(self, method: str) -> int:
        return sum(1 for c in self.calls if c[0] == method)


@pytest.fixture
def fake_provider_cls():
    return FakeK8sProvider
