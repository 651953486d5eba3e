"""JSON report output."""

from __future__ import annotations

import json
from pathlib import Path

from elcov.models.coverage import CoverageReport


def generate_json_report(report: CoverageReport, output_path: Path) -> None:
    """Write a machine-readable JSON report."""
    data = report.model_dump(mode="json")
    data["uncovered_selectors"] = [r.normalized for r in report.coverage.uncovered_elements]
    with open(output_path, "w") as f:
        json.dump(data, f, indent=2, default=str)
