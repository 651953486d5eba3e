"""CLI entry point for element coverage analysis."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from elcov.ai.client import AIClient
from elcov.analyzer.static_analyzer import StaticAnalyzer, selector_statistics
from elcov.discovery.inspector import snapshot_urls
from elcov.errors import ConfigurationError
from elcov.models.config import CoverageConfig
from elcov.reporter.reporter import Reporter
from elcov.session import CoverageSession

console = Console()
logger = logging.getLogger(__name__)

DEFAULT_CONFIG = "elcov-config.json"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(path: str) -> CoverageConfig:
    try:
        return CoverageConfig.load(path)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {path}[/red]")
        console.print("Run 'elcov init' to create a default config.")
        sys.exit(1)
    except ConfigurationError as e:
        console.print(f"[red]{e.describe()}[/red]")
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Interactive-element coverage for browser test suites"""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def init(config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    CoverageConfig().save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nYou can now customize this file and run:")
    console.print("  [blue]elcov coverage[/blue]")


@cli.command()
@click.argument("patterns", nargs=-1, required=True)
@click.option("--exclude", "-e", multiple=True, help="Glob of files to skip")
@click.option("--json", "as_json", is_flag=True, help="Print selectors as JSON")
def analyze(patterns: tuple[str, ...], exclude: tuple[str, ...], as_json: bool) -> None:
    """Extract selectors from test files matching PATTERNS."""
    analyzer = StaticAnalyzer()
    result = analyzer.analyze_files(list(patterns), list(exclude))

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    stats = selector_statistics(result.selectors)
    console.print(f"[green]Analyzed {len(result.files)} files:[/green] {stats.total} selectors")

    table = Table(title="Selectors by Dialect")
    table.add_column("Dialect", style="bold")
    table.add_column("Count", justify="right")
    for dialect, count in sorted(stats.by_dialect.items(), key=lambda kv: -kv[1]):
        table.add_row(dialect, str(count))
    console.print(table)

    if stats.most_common:
        common = Table(title="Most Used Selectors")
        common.add_column("Selector", overflow="fold")
        common.add_column("Files", justify="right")
        for selector, count in stats.most_common:
            common.add_row(selector, str(count))
        console.print(common)

    for warning in result.warnings:
        console.print(f"[yellow]{warning}[/yellow]")


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
@click.option("--threshold", "-t", type=click.IntRange(0, 100), help="Override the pass threshold")
@click.option("--discover/--no-discover", default=None, help="Inspect page_urls with a browser")
@click.option("--output-dir", "-o", help="Override the report output directory")
def coverage(config: str, threshold: int | None, discover: bool | None, output_dir: str | None) -> None:
    """Measure element coverage of the configured test files.

    Every discovered test file is treated as a passing test.
    """
    cfg = _load_config(config)
    if threshold is not None:
        cfg.threshold = threshold
    if output_dir:
        cfg.output_dir = output_dir
    run_discovery = cfg.runtime_discovery if discover is None else discover

    session = CoverageSession(cfg)
    files, _warnings = session.analyzer.find_test_files(cfg.include, cfg.exclude)
    if not files:
        console.print("[yellow]No test files matched the include patterns[/yellow]")

    session.begin(files)
    for path in files:
        session.test_end(path, Path(path).name, "passed")

    if run_discovery and cfg.page_urls:
        for url, descriptors in snapshot_urls(cfg.page_urls).items():
            session.record_page(descriptors, url)

    report = session.end()

    ai_client = None
    if cfg.ai_summary:
        try:
            ai_client = AIClient(model=cfg.ai_model, debug_dir=Path(cfg.output_dir) / "debug")
        except EnvironmentError as e:
            logger.warning("%s", e)

    generated = Reporter(cfg, ai_client=ai_client, console=console).generate_reports(report)
    for fmt, path in generated.items():
        if fmt != "console":
            console.print(f"  {fmt.upper()} report: [blue]{path}[/blue]")

    if not report.passed:
        sys.exit(1)


if __name__ == "__main__":
    cli()
