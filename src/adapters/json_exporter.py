"""JSON export of reports.

Why JSON:
- CI pipelines and dashboards consume health results without scraping tables.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel


def export_report_json(*, report: BaseModel, output_path: Path) -> Path:
    """Export a report model to UTF-8 JSON with stable formatting."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = report.model_dump(mode="json")
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
