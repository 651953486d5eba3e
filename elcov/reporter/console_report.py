"""Console report rendering with rich tables."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from elcov.models.coverage import CoverageReport

_PRIORITY_STYLES = {"high": "red", "medium": "yellow", "low": "dim"}


def _pct_style(pct: int, threshold: int) -> str:
    if pct >= threshold:
        return "green"
    if pct >= threshold / 2:
        return "yellow"
    return "red"


def render_console_report(report: CoverageReport, console: Console) -> None:
    cov = report.coverage
    style = _pct_style(cov.coverage_percentage, report.threshold)

    table = Table(title="Element Coverage")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Elements", str(cov.total_elements))
    table.add_row("Covered", f"[green]{cov.covered_elements}[/green]")
    table.add_row("Uncovered", f"[red]{len(cov.uncovered_elements)}[/red]")
    table.add_row("Coverage", f"[{style}]{cov.coverage_percentage}%[/{style}]")
    table.add_row("Threshold", f"{report.threshold}%")
    table.add_row("Test files", str(len(cov.test_files)))
    table.add_row("Selectors found", str(report.selector_stats.total))
    console.print(table)

    if cov.coverage_by_type:
        by_type = Table(title="Coverage by Element Type")
        by_type.add_column("Type", style="bold")
        by_type.add_column("Covered", justify="right")
        by_type.add_column("Total", justify="right")
        by_type.add_column("%", justify="right")
        for type_name, tc in sorted(cov.coverage_by_type.items()):
            s = _pct_style(tc.percentage, report.threshold)
            by_type.add_row(type_name, str(tc.covered), str(tc.total), f"[{s}]{tc.percentage}%[/{s}]")
        console.print(by_type)

    if report.uncovered.items:
        gaps = Table(title=f"Top Uncovered Elements ({report.uncovered.total_uncovered} total)")
        gaps.add_column("Priority")
        gaps.add_column("Type")
        gaps.add_column("Selector", overflow="fold")
        gaps.add_column("Recommendation", overflow="fold")
        for rec in report.uncovered.items:
            p = _PRIORITY_STYLES[rec.priority]
            gaps.add_row(f"[{p}]{rec.priority}[/{p}]", rec.element_type or "", rec.selector or "", rec.message)
        console.print(gaps)

    analysis = report.selector_analysis
    if analysis and analysis.mismatches:
        misses = Table(title=f"Unmatched Selectors ({analysis.unmatched_selectors} of {analysis.total_selectors})")
        misses.add_column("Dialect")
        misses.add_column("Selector", overflow="fold")
        misses.add_column("Score", justify="right")
        misses.add_column("Reason", overflow="fold")
        for m in analysis.mismatches[:10]:
            misses.add_row(m.selector.dialect.value, m.selector.raw, f"{m.match_score:.1f}", m.reason)
        console.print(misses)
        for rec in analysis.recommendations:
            console.print(f"  • {rec}")

    for rec in report.recommendations:
        if rec.selector is None:
            console.print(f"  • {rec.message}")

    if report.warnings:
        console.print(f"\n[yellow]{len(report.warnings)} warning(s) during analysis[/yellow]")
        for w in report.warnings[-5:]:
            console.print(f"  [dim]{w}[/dim]")

    if report.ai_summary:
        console.print(f"\n[bold]Summary:[/bold] {report.ai_summary}")

    verdict = "[bold green]PASSED[/bold green]" if report.passed else "[bold red]FAILED[/bold red]"
    console.print(f"\nCoverage threshold {report.threshold}%: {verdict}")
