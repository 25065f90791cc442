"""Canonical domain models for version reporting.

These are the shapes passed between:
- the Kubernetes provider (pod records)
- the resolver/pipeline (per-pod rows, namespace reports, the context table)
- rendering and JSON dumps
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_VERSION = "unknown"
NOT_AVAILABLE = "N/A"

VersionSource = Literal["pod-label", "pod-annotation", "workload-label", "image-tag", "none"]
ReportStatus = Literal["ok", "context_unreachable", "namespace_absent", "empty"]
WarningKind = Literal["AuthFailure", "ContextUnreachable", "NamespaceAbsent", "EmptyResult", "LookupFailure"]


class BaseModelStrict(BaseModel):
    model_config = ConfigDict(extra="forbid")


class PodRecord(BaseModelStrict):
    """The handful of pod fields needed for version resolution (one batched list call per namespace)."""

    name: str
    owner_kind: Optional[str] = None
    owner_name: Optional[str] = None
    label_version: Optional[str] = None
    legacy_label_version: Optional[str] = None
    annotation_version: Optional[str] = None
    image: Optional[str] = None

    @property
    def owner_key(self) -> Optional[str]:
        if self.owner_kind and self.owner_name:
            return f"{self.owner_kind}/{self.owner_name}"
        return None


class ResolvedVersion(BaseModelStrict):
    version: str = UNKNOWN_VERSION
    source: VersionSource = "none"

    @property
    def found(self) -> bool:
        return self.source != "none"


class PodVersionRow(BaseModelStrict):
    pod: str
    workload: str
    version: str
    source: VersionSource
    image: Optional[str] = None


class ReportWarning(BaseModelStrict):
    kind: WarningKind
    message: str


class NamespaceReport(BaseModelStrict):
    context: Optional[str] = None
    namespace: str
    display_name: str
    status: ReportStatus = "ok"
    rows: List[PodVersionRow] = Field(default_factory=list)
    distinct_versions: List[str] = Field(default_factory=list)
    warnings: List[ReportWarning] = Field(default_factory=list)

    def warn(self, kind: WarningKind, message: str) -> None:
        self.warnings.append(ReportWarning(kind=kind, message=message))


class ContextReport(BaseModelStrict):
    context: Optional[str] = None
    reachable: bool = True
    warning: Optional[ReportWarning] = None
    namespaces: List[NamespaceReport] = Field(default_factory=list)


class TableRow(BaseModelStrict):
    context: str
    # Keyed by namespace; insertion order follows the table columns.
    cells: Dict[str, str] = Field(default_factory=dict)


class TableColumn(BaseModelStrict):
    namespace: str
    header: str


class VersionTable(BaseModelStrict):
    columns: List[TableColumn] = Field(default_factory=list)
    rows: List[TableRow] = Field(default_factory=list)
