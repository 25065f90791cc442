"""Version collection: (context x namespace) -> reports.

Everything here is sequential and best-effort. Only context enumeration can fail the run;
per-namespace problems become warnings on the affected report.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import List, Optional, Sequence

from kubeversions.config import NamespaceTarget, ReportConfig
from kubeversions.core.errors import ContextUnreachableError, NoContextsError
from kubeversions.core.filters import collapse_show_once, filter_pods
from kubeversions.core.image import distinct_image_versions
from kubeversions.core.models import (
    NOT_AVAILABLE,
    ContextReport,
    NamespaceReport,
    PodRecord,
    PodVersionRow,
    TableColumn,
    TableRow,
    VersionTable,
)
from kubeversions.core.resolver import WorkloadVersionCache, resolve_pod_version
from kubeversions.providers.k8s_provider import K8sProvider

logger = logging.getLogger(__name__)

INACCESSIBLE = f"{NOT_AVAILABLE} (inaccessible)"
NO_NAMESPACE = f"{NOT_AVAILABLE} (no namespace)"
NO_PODS = f"{NOT_AVAILABLE} (no pods)"


def _label(context: Optional[str]) -> str:
    return context or "(current context)"


def _owner_cache(provider: K8sProvider, context: Optional[str], namespace: str) -> WorkloadVersionCache:
    return WorkloadVersionCache(partial(provider.get_workload_labels, context, namespace))


def workload_display(pod: PodRecord) -> str:
    if pod.owner_name:
        return f"{pod.owner_kind or 'pod'}/{pod.owner_name}"
    return pod.owner_kind or "standalone"


def resolve_contexts(provider: K8sProvider, config: ReportConfig) -> List[str]:
    """
    Contexts to report on.

    All kubeconfig contexts by default (NoContextsError if there are none). With an explicit
    context, only that one, and it must be reachable (ContextUnreachableError otherwise).
    """
    if config.context:
        warning = provider.check_context(config.context)
        if warning is not None:
            raise ContextUnreachableError(warning.message)
        return [config.context]

    contexts = provider.list_contexts()
    if not contexts:
        raise NoContextsError("No Kubernetes contexts found")
    logger.info("Found %d Kubernetes context(s) to check", len(contexts))
    return contexts


def _fetch_pods(
    provider: K8sProvider, context: Optional[str], namespace: str, report: NamespaceReport
) -> Optional[List[PodRecord]]:
    """Namespace existence check + one batched pod list. None means "skip this namespace"."""
    label = _label(context)
    try:
        exists = provider.namespace_exists(context, namespace)
    except Exception as e:
        logger.warning("Could not check namespace '%s' in %s: %s", namespace, label, e)
        report.status = "namespace_absent"
        report.warn("LookupFailure", f"Could not check namespace '{namespace}': {e}")
        return None
    if not exists:
        logger.warning("Namespace '%s' does not exist in context %s", namespace, label)
        report.status = "namespace_absent"
        report.warn("NamespaceAbsent", f"Namespace '{namespace}' does not exist in this context")
        return None

    try:
        pods = provider.list_pod_records(context, namespace)
    except Exception as e:
        logger.warning("Could not retrieve pods from namespace '%s' in %s: %s", namespace, label, e)
        report.status = "empty"
        report.warn("LookupFailure", f"Could not retrieve pods from namespace '{namespace}'")
        return None
    if not pods:
        logger.warning("No pods in namespace '%s' in %s", namespace, label)
        report.status = "empty"
        report.warn("EmptyResult", f"Could not retrieve pods from namespace '{namespace}'")
        return None

    logger.info("Retrieved %d pod(s) from namespace '%s'", len(pods), namespace)
    return pods


def collect_namespace_report(
    provider: K8sProvider,
    context: Optional[str],
    target: NamespaceTarget,
) -> NamespaceReport:
    """List-mode report for one namespace: a row per (filtered) pod plus the distinct image versions."""
    report = NamespaceReport(context=context, namespace=target.namespace, display_name=target.display_name)
    logger.info(
        "Getting %s versions from namespace: %s (context: %s)", target.display_name, target.namespace, _label(context)
    )

    pods = _fetch_pods(provider, context, target.namespace, report)
    if pods is None:
        return report

    selected = filter_pods(pods, target.compiled_filter())
    if not selected:
        logger.warning("No pods matching '%s' in namespace '%s'", target.pod_filter, target.namespace)
        report.status = "empty"
        report.warn("EmptyResult", f"No pods matching '{target.pod_filter}' in namespace '{target.namespace}'")
        return report

    cache = _owner_cache(provider, context, target.namespace)
    for pod in collapse_show_once(selected, target.compiled_show_once()):
        resolved = resolve_pod_version(pod, cache)
        report.rows.append(
            PodVersionRow(
                pod=pod.name,
                workload=workload_display(pod),
                version=resolved.version,
                source=resolved.source,
                image=pod.image,
            )
        )

    # Summary comes from image tags only, across every filtered pod (show-once collapsing excluded).
    report.distinct_versions = distinct_image_versions(p.image for p in selected)
    if report.distinct_versions:
        logger.info("Found %d unique version(s) in namespace '%s'", len(report.distinct_versions), target.namespace)
    else:
        logger.warning("Could not determine unique versions for namespace '%s'", target.namespace)
    return report


def collect_context_report(
    provider: K8sProvider,
    context: Optional[str],
    targets: Sequence[NamespaceTarget],
    *,
    verify_context: bool = True,
) -> ContextReport:
    """All configured namespaces for one context; an unreachable context yields no namespace reports."""
    if verify_context:
        warning = provider.check_context(context)
        if warning is not None:
            logger.error("Cannot access context '%s', skipping", _label(context))
            return ContextReport(context=context, reachable=False, warning=warning)

    report = ContextReport(context=context)
    for target in targets:
        report.namespaces.append(collect_namespace_report(provider, context, target))
    return report


def representative_version(provider: K8sProvider, context: Optional[str], target: NamespaceTarget) -> str:
    """
    One version for a (context, namespace) table cell: the first filtered pod whose resolution
    finds something, else an `N/A` sentinel.
    """
    scratch = NamespaceReport(context=context, namespace=target.namespace, display_name=target.display_name)
    pods = _fetch_pods(provider, context, target.namespace, scratch)
    if pods is None:
        return NO_NAMESPACE if scratch.status == "namespace_absent" else NO_PODS

    cache = _owner_cache(provider, context, target.namespace)
    for pod in filter_pods(pods, target.compiled_filter()):
        resolved = resolve_pod_version(pod, cache)
        if resolved.found:
            return resolved.version
    return NOT_AVAILABLE


def build_table_row(
    provider: K8sProvider,
    context: str,
    targets: Sequence[NamespaceTarget],
    *,
    verify_context: bool = True,
) -> TableRow:
    row = TableRow(context=context)
    if verify_context and provider.check_context(context) is not None:
        logger.warning("Context '%s' is inaccessible, marking as %s", context, NOT_AVAILABLE)
        for target in targets:
            row.cells[target.namespace] = INACCESSIBLE
        return row

    for target in targets:
        version = representative_version(provider, context, target)
        logger.debug("Version for '%s' in '%s': %s", target.namespace, context, version)
        row.cells[target.namespace] = version
    return row


def table_columns(targets: Sequence[NamespaceTarget]) -> List[TableColumn]:
    return [TableColumn(namespace=t.namespace, header=t.header) for t in targets]


def build_version_table(
    provider: K8sProvider,
    contexts: Sequence[str],
    targets: Sequence[NamespaceTarget],
    *,
    verify_context: bool = True,
) -> VersionTable:
    table = VersionTable(columns=table_columns(targets))
    for context in contexts:
        table.rows.append(build_table_row(provider, context, targets, verify_context=verify_context))
    return table
