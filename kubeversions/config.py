from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

import yaml

from kubeversions.core.errors import ConfigError
from kubeversions.core.filters import compile_pod_filter

CONFIG_FILE_ENV = "KUBE_VERSIONS_CONFIG"


@dataclass(frozen=True)
class NamespaceTarget:
    namespace: str
    display_name: str
    pod_filter: Optional[str] = None  # regex, search semantics
    show_once: Optional[str] = None  # regex; only the first matching pod is listed

    @property
    def header(self) -> str:
        """Table column header, e.g. "Komodor agent" -> "KOMODOR_AGENT"."""
        return self.display_name.upper().replace(" ", "_")

    def compiled_filter(self) -> Optional[Pattern[str]]:
        return compile_pod_filter(self.pod_filter)

    def compiled_show_once(self) -> Optional[Pattern[str]]:
        return compile_pod_filter(self.show_once)


DEFAULT_NAMESPACE_TARGETS: Tuple[NamespaceTarget, ...] = (
    NamespaceTarget("argocd", "ArgoCD", pod_filter="argocd-server|argocd-repo-server"),
    NamespaceTarget("cribl", "Cribl edge", pod_filter="cribl-edge"),
    NamespaceTarget("datadog", "Datadog", pod_filter="datadog-agent|datadog-cluster-agent"),
    NamespaceTarget("komodor", "Komodor agent", pod_filter="komodor-agent", show_once="komodor-agent-metrics"),
    # kube-system is only interesting for the NFS/EFS CSI driver pods.
    NamespaceTarget("kube-system", "NFS/EFS CSI Driver", pod_filter="csi-nfs|nfs-csi|efs-csi|csi-efs"),
)


@dataclass(frozen=True)
class ReportConfig:
    targets: Tuple[NamespaceTarget, ...]
    context: Optional[str] = None  # None: every context in the kubeconfig
    table_mode: bool = False
    kubeconfig: Optional[str] = None
    dump_json: bool = False

    @property
    def all_contexts(self) -> bool:
        return self.context is None

    @property
    def namespaces(self) -> List[str]:
        return [t.namespace for t in self.targets]


def _validate_target(t: NamespaceTarget) -> NamespaceTarget:
    if not t.namespace:
        raise ConfigError("namespace descriptor without a namespace")
    for label, pattern in (("pod_filter", t.pod_filter), ("show_once", t.show_once)):
        try:
            compile_pod_filter(pattern)
        except re.error as e:
            raise ConfigError(f"Invalid {label} for namespace '{t.namespace}': {pattern!r} ({e})")
    return t


def load_targets_file(path: str) -> Tuple[NamespaceTarget, ...]:
    """
    Load namespace descriptors from YAML:

        namespaces:
          - namespace: komodor
            display_name: Komodor agent
            pod_filter: komodor-agent
            show_once: komodor-agent-metrics
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}")

    items = data.get("namespaces") if isinstance(data, dict) else None
    if not isinstance(items, list) or not items:
        raise ConfigError(f"{path}: expected a non-empty `namespaces:` list")

    targets: List[NamespaceTarget] = []
    for item in items:
        if isinstance(item, str):
            item = {"namespace": item}
        if not isinstance(item, dict):
            raise ConfigError(f"{path}: namespace entries must be mappings or strings")
        ns = str(item.get("namespace") or "").strip()
        targets.append(
            _validate_target(
                NamespaceTarget(
                    namespace=ns,
                    display_name=str(item.get("display_name") or ns).strip(),
                    pod_filter=(str(item.get("pod_filter") or "").strip() or None),
                    show_once=(str(item.get("show_once") or "").strip() or None),
                )
            )
        )
    return tuple(targets)


def target_for_namespace(namespace: str, known: Tuple[NamespaceTarget, ...]) -> NamespaceTarget:
    """Descriptor for a namespace; unknown namespaces display as themselves with no filter."""
    for t in known:
        if t.namespace == namespace:
            return t
    return NamespaceTarget(namespace=namespace, display_name=namespace)


def build_report_config(
    *,
    namespace: Optional[str] = None,
    context: Optional[str] = None,
    table_mode: bool = False,
    config_file: Optional[str] = None,
    kubeconfig: Optional[str] = None,
    dump_json: bool = False,
) -> ReportConfig:
    """
    Build the run configuration once at startup.

    Namespace descriptors come from `config_file` (or $KUBE_VERSIONS_CONFIG) when given,
    otherwise from the built-in list. A `namespace` override narrows the run to that one namespace.
    """
    path = (config_file or os.getenv(CONFIG_FILE_ENV, "") or "").strip()
    known = load_targets_file(path) if path else DEFAULT_NAMESPACE_TARGETS

    ns = (namespace or "").strip()
    targets = (target_for_namespace(ns, known),) if ns else known

    return ReportConfig(
        targets=tuple(_validate_target(t) for t in targets),
        context=(context or "").strip() or None,
        table_mode=table_mode,
        kubeconfig=(kubeconfig or "").strip() or None,
        dump_json=dump_json,
    )
