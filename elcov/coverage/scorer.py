"""Coverage percentages and text summaries."""

from __future__ import annotations

import logging

from elcov.models.coverage import AggregatedCoverage

logger = logging.getLogger(__name__)


def percentage(covered: int, total: int) -> int:
    """Whole-number percentage rounded half up; 0 when there is nothing to cover."""
    if total <= 0:
        return 0
    covered = max(0, min(covered, total))
    return int(covered * 100 / total + 0.5)


def coverage_summary_text(coverage: AggregatedCoverage, threshold: int | None = None) -> str:
    """Generate a human-readable coverage summary."""
    lines = [
        f"Element coverage: {coverage.covered_elements}/{coverage.total_elements} "
        f"({coverage.coverage_percentage}%)",
    ]
    if threshold is not None:
        verdict = "PASS" if coverage.coverage_percentage >= threshold else "FAIL"
        lines.append(f"  Threshold: {threshold}% ({verdict})")
    for type_name, tc in sorted(coverage.coverage_by_type.items()):
        lines.append(f"  {type_name}: {tc.covered}/{tc.total} ({tc.percentage}%)")
    if coverage.coverage_by_page:
        lines.append(f"  Pages: {len(coverage.coverage_by_page)}")
    if coverage.test_files:
        lines.append(f"  Test files: {len(coverage.test_files)}")
    if coverage.last_updated:
        lines.append(f"  Last updated: {coverage.last_updated}")
    return "\n".join(lines)
