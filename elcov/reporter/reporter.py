"""Report generation orchestration."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from rich.console import Console

from elcov.ai.client import AIClient
from elcov.models.config import CoverageConfig
from elcov.models.coverage import CoverageReport

from .console_report import render_console_report
from .json_report import generate_json_report

logger = logging.getLogger(__name__)

JSON_REPORT_NAME = "element-coverage.json"


class Reporter:
    """Renders a finished coverage report in every configured format."""

    def __init__(
        self,
        config: CoverageConfig,
        ai_client: AIClient | None = None,
        console: Console | None = None,
    ):
        self.config = config
        self.ai_client = ai_client
        self.console = console or Console()

    def generate_reports(self, report: CoverageReport, output_dir: Path | None = None) -> dict[str, str]:
        """Generate all configured report formats. Returns format -> file path."""
        out_dir = Path(output_dir or self.config.output_dir)
        generated = {}

        if self.ai_client and not report.ai_summary:
            logger.debug("Generating AI-powered coverage summary...")
            report.ai_summary = self._generate_summary(report)

        if "console" in self.config.report_formats:
            render_console_report(report, self.console)
            generated["console"] = "stdout"

        if "json" in self.config.report_formats:
            out_dir.mkdir(parents=True, exist_ok=True)
            path = out_dir / JSON_REPORT_NAME
            logger.debug("Generating JSON report...")
            generate_json_report(report, path)
            generated["json"] = str(path)
            logger.info("JSON report: %s", path)

        return generated

    def _generate_summary(self, report: CoverageReport) -> str:
        """Generate an AI-powered natural language summary."""
        if not self.ai_client:
            return self._generate_basic_summary(report)

        try:
            cov = report.coverage
            payload = {
                "coverage_percentage": cov.coverage_percentage,
                "threshold": report.threshold,
                "passed": report.passed,
                "total_elements": cov.total_elements,
                "covered_elements": cov.covered_elements,
                "by_type": {k: v.model_dump() for k, v in cov.coverage_by_type.items()},
                "top_gaps": [
                    {"selector": r.selector, "type": r.element_type, "priority": r.priority}
                    for r in report.uncovered.items
                ][:20],
            }
            return self.ai_client.summarize(json.dumps(payload, indent=2), report.summary)
        except Exception as e:
            logger.warning("AI summary generation failed: %s", e)
            return self._generate_basic_summary(report)

    def _generate_basic_summary(self, report: CoverageReport) -> str:
        """Generate a basic summary without AI."""
        cov = report.coverage
        parts = [
            f"{cov.covered_elements} of {cov.total_elements} interactive elements are covered "
            f"({cov.coverage_percentage}%, threshold {report.threshold}%).",
        ]
        high = [r for r in report.uncovered.items if r.priority == "high"]
        if high:
            parts.append(f"High-priority gaps: {', '.join(r.selector or '' for r in high[:5])}")
        return " ".join(parts)
