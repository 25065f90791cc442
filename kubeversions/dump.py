"""JSON dump helpers (CLI-friendly, testable).

We keep CLI printing logic out of core modules; these return plain dicts.
"""

from __future__ import annotations

from typing import Any, Dict, Sequence

from kubeversions.core.models import ContextReport, VersionTable


def context_reports_to_json_dict(reports: Sequence[ContextReport]) -> Dict[str, Any]:
    return {
        "mode": "list",
        # Pydantic v2: mode="json" produces JSON-serializable types.
        "contexts": [r.model_dump(mode="json") for r in reports],
    }


def version_table_to_json_dict(table: VersionTable) -> Dict[str, Any]:
    columns = [c.model_dump(mode="json") for c in table.columns]
    return {
        "mode": "table",
        "columns": columns,
        "rows": [r.model_dump(mode="json") for r in table.rows],
    }
