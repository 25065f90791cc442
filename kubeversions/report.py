"""Plain-text rendering for list-mode reports, the context table and the run footer.

Rendering is deterministic and side-effect free; the CLI decides where lines go.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from kubeversions.core.models import ContextReport, NamespaceReport, VersionTable

POD_WIDTH = 30
WORKLOAD_WIDTH = 20
VERSION_WIDTH = 15
IMAGE_WIDTH = 40

CONTEXT_COLUMN_WIDTH = 40
NAMESPACE_COLUMN_WIDTH = 25

SECTION_RULE = "=" * 82
ROW_RULE = "-" * 80


def truncate(value: Optional[str], width: int) -> str:
    """Shorten to `width` characters, marking the cut with "..."."""
    s = value or ""
    if len(s) > width:
        return s[: width - 3] + "..."
    return s


def render_pod_row(pod: str, workload: str, version: str, image: Optional[str]) -> str:
    return (
        f"{truncate(pod, POD_WIDTH):<{POD_WIDTH}}  "
        f"{truncate(workload, WORKLOAD_WIDTH):<{WORKLOAD_WIDTH}}  "
        f"{version:<{VERSION_WIDTH}}  "
        f"{truncate(image, IMAGE_WIDTH)}"
    ).rstrip()


def render_namespace_report(report: NamespaceReport) -> str:
    ctx_label = f"context: {report.context}" if report.context else "current context"
    lines: List[str] = [f"Getting {report.display_name} versions from namespace: {report.namespace} ({ctx_label})", ""]

    if report.status != "ok" and not report.rows:
        for w in report.warnings:
            lines.append(f"Skipped: {w.message}")
        lines.extend(["", SECTION_RULE, ""])
        return "\n".join(lines)

    lines.append(render_pod_row("Pod Name", "Workload", "Version", "Image"))
    lines.append(ROW_RULE)
    for row in report.rows:
        lines.append(render_pod_row(row.pod, row.workload, row.version, row.image))
    lines.append("")

    lines.append("Summary:")
    if report.distinct_versions:
        lines.append("Unique versions found:")
        lines.extend(f"  - {v}" for v in report.distinct_versions)
    else:
        lines.append("Could not determine unique versions")
    lines.extend(["", SECTION_RULE, ""])
    return "\n".join(lines)


def render_context_report(report: ContextReport) -> str:
    if not report.reachable:
        message = report.warning.message if report.warning else f"Cannot access context '{report.context}'"
        return "\n".join([f"Skipped: {message}", "", ROW_RULE, ""])
    return "\n".join(render_namespace_report(ns) for ns in report.namespaces)


def render_table(table: VersionTable) -> List[str]:
    """Header, rule and one line per context; fixed-width columns."""

    def _line(first: str, cells: List[str]) -> str:
        parts = [f"{first:<{CONTEXT_COLUMN_WIDTH}}"]
        parts.extend(f"{c:<{NAMESPACE_COLUMN_WIDTH}}" for c in cells)
        return " ".join(parts).rstrip()

    lines = [
        _line("CONTEXT", [c.header for c in table.columns]),
        "-" * 120 + "-" * NAMESPACE_COLUMN_WIDTH * len(table.columns),
    ]
    for row in table.rows:
        lines.append(_line(row.context, [row.cells.get(c.namespace, "") for c in table.columns]))
    return lines


def render_timing(start: datetime, end: datetime) -> List[str]:
    elapsed = int((end - start).total_seconds())
    return [
        "",
        SECTION_RULE,
        "Execution completed",
        f"Start time: {start.strftime('%Y-%m-%d %H:%M:%S')}",
        f"End time:   {end.strftime('%Y-%m-%d %H:%M:%S')}",
        f"Elapsed:    {elapsed} second(s)",
        SECTION_RULE,
    ]
