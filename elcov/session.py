"""Ties extraction, discovery and aggregation to a test run's lifecycle."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from elcov.analyzer.static_analyzer import StaticAnalyzer, selector_statistics
from elcov.coverage.aggregator import CoverageAggregator
from elcov.coverage.element_filter import ElementFilter, FilteringResult
from elcov.coverage.mismatch import analyze_selector_mismatch
from elcov.coverage.recommendations import generate_recommendations
from elcov.coverage.scorer import coverage_summary_text
from elcov.diagnostics import DiagnosticsLog
from elcov.discovery.element_normalizer import element_from_selector, normalize_element
from elcov.errors import EXTRACTION_WARNING, MALFORMED_ELEMENT, FileReadError, SessionStateError
from elcov.models.config import CoverageConfig
from elcov.models.coverage import CoverageReport, SelectorAnalysisReport
from elcov.models.element import DiscoverySource
from elcov.models.selector import ExtractionResult, TestSelector

logger = logging.getLogger(__name__)

PASSED_STATUSES = frozenset({"passed", "pass", "expected"})


class CoverageSession:
    """Host lifecycle adapter: ``begin`` → ``test_end``/``record_page`` … → ``end``."""

    def __init__(
        self,
        config: Optional[CoverageConfig] = None,
        diagnostics: Optional[DiagnosticsLog] = None,
    ):
        self.config = config or CoverageConfig()
        self.diagnostics = diagnostics or DiagnosticsLog(self.config.diagnostics_capacity)
        self.analyzer = StaticAnalyzer(diagnostics=self.diagnostics)
        self.aggregator = CoverageAggregator(diagnostics=self.diagnostics)
        self.element_filter = ElementFilter.from_config(self.config.filter, self.config.ignore_elements)
        for problem in self.element_filter.validate():
            logger.warning("Element filter: %s", problem)

        self._started = False
        self._selectors_by_file: dict[str, list[TestSelector]] = {}
        self._used: list[tuple[str, str, list[TestSelector]]] = []

    @property
    def started(self) -> bool:
        return self._started

    def _require_started(self, hook: str) -> None:
        if not self._started:
            raise SessionStateError(f"{hook}() called before begin()")

    def begin(self, test_files: Sequence[str]) -> ExtractionResult:
        """Scan the run's test files and register their selectors as static elements."""
        self._started = True
        result = ExtractionResult(files=sorted(set(test_files)))
        if not self.config.static_analysis:
            return result

        for path in result.files:
            try:
                selectors = self.analyzer.extract_from_file(path)
            except FileReadError as e:
                self.diagnostics.record(EXTRACTION_WARNING, str(e), operation="begin", source=path)
                result.warnings.append(str(e))
                continue
            self._selectors_by_file[path] = selectors
            result.selectors.extend(selectors)
            if self.config.static_elements:
                synthesized = [element_from_selector(s, DiscoverySource.STATIC_ANALYSIS, path) for s in selectors]
                self.aggregator.add_discovered_elements(
                    self.element_filter.filter_elements(synthesized).elements,
                    context_file=path,
                    context_label=path,
                    source=DiscoverySource.STATIC_ANALYSIS,
                )

        logger.info(
            "Coverage session started: %d selectors across %d test files",
            len(result.selectors), len(result.files),
        )
        return result

    def test_end(
        self,
        test_file: str,
        test_name: str,
        status: str,
        steps: Iterable[str] = (),
        error_text: str | None = None,
    ) -> int:
        """Record a finished test. Returns how many selectors it contributed."""
        self._require_started("test_end")
        if status.lower() not in PASSED_STATUSES and not self.config.count_failed_tests:
            logger.debug("Skipping %s (%s): only passing tests count toward coverage", test_name, status)
            return 0

        text = "\n".join(list(steps) + ([error_text] if error_text else []))
        selectors = list(self._selectors_by_file.get(test_file, []))
        if text:
            seen = {s.normalized for s in selectors}
            selectors.extend(s for s in self.analyzer.selectors_from_text(text, test_file) if s.normalized not in seen)

        elements = self.element_filter.filter_elements(
            element_from_selector(s, DiscoverySource.TEST_EXECUTION, test_file) for s in selectors
        ).elements
        self.aggregator.mark_elements_covered(
            elements, test_file, test_name, coverage_reason=f"test {status.lower()}",
        )
        self._used.append((test_file, test_name, selectors))
        return len(selectors)

    def record_page(self, descriptors: Iterable[dict], page_url: str) -> FilteringResult:
        """Add a live page snapshot, filtered by the configured element rules."""
        self._require_started("record_page")
        elements = []
        for descriptor in descriptors:
            element = normalize_element(descriptor, DiscoverySource.RUNTIME_DISCOVERY, page_url, page_url)
            if element is None:
                self.diagnostics.record(
                    MALFORMED_ELEMENT, f"Dropped element without a selector on {page_url}",
                    operation="record_page", source=page_url,
                )
                continue
            elements.append(element)
        filtered = self.element_filter.filter_elements(elements)
        self.aggregator.add_discovered_elements(
            filtered.elements, page_url, page_url, source=DiscoverySource.RUNTIME_DISCOVERY,
        )
        logger.info("Recorded %d of %d elements from %s", filtered.included, filtered.total, page_url)
        return filtered

    def end(self) -> CoverageReport:
        """Match used selectors against everything discovered and build the report."""
        self._require_started("end")
        for test_file, test_name, selectors in self._used:
            self.aggregator.apply_matches(selectors, test_file, test_name)
        all_selectors = [s for selectors in self._selectors_by_file.values() for s in selectors]
        distinct = _distinct(all_selectors + [s for _, _, selectors in self._used for s in selectors])
        self.aggregator.cleanup_duplicates(distinct)

        coverage = self.aggregator.generate_aggregated_coverage()
        limit = self.config.max_recommendations
        report = CoverageReport(
            coverage=coverage,
            recommendations=generate_recommendations(coverage, limit=limit),
            uncovered=self.aggregator.get_uncovered_elements_with_recommendations(limit=limit),
            selector_stats=selector_statistics(all_selectors),
            selector_analysis=self._analyze_selectors(distinct),
            warnings=self.diagnostics.warnings,
            threshold=self.config.threshold,
            passed=coverage.coverage_percentage >= self.config.threshold,
        )
        report.summary = coverage_summary_text(coverage, self.config.threshold)
        logger.info(
            "Coverage %d%% (%d/%d elements), threshold %d%%",
            coverage.coverage_percentage, coverage.covered_elements,
            coverage.total_elements, self.config.threshold,
        )
        return report

    def _analyze_selectors(self, selectors: list[TestSelector]) -> Optional[SelectorAnalysisReport]:
        if not self.config.selector_analysis:
            return None
        live = [
            r.element for r in self.aggregator.records()
            if r.element.discovery_source == DiscoverySource.RUNTIME_DISCOVERY
        ]
        if not live:
            return None
        analysis = analyze_selector_mismatch(selectors, live)
        logger.info(
            "%d of %d selectors match a live element",
            analysis.matched_selectors, analysis.total_selectors,
        )
        return analysis


def _distinct(selectors: Iterable[TestSelector]) -> list[TestSelector]:
    """First selector per normalized form, in order."""
    seen: dict[str, TestSelector] = {}
    for selector in selectors:
        seen.setdefault(selector.normalized, selector)
    return list(seen.values())

