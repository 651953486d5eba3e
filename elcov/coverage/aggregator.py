"""Run-wide store of discovered and covered elements."""

from __future__ import annotations

import logging
import threading
import time
from typing import Iterable, Optional, Sequence

from elcov.coverage.matcher import element_key, find_matches, selector_matches_element
from elcov.coverage.recommendations import uncovered_recommendations
from elcov.coverage.scorer import percentage
from elcov.diagnostics import DiagnosticsLog
from elcov.discovery.element_normalizer import normalize_element
from elcov.errors import MALFORMED_ELEMENT
from elcov.models.coverage import (
    AggregatedCoverage,
    CoverageHit,
    ElementRecord,
    PageCoverage,
    TypeCoverage,
    UncoveredRecommendations,
)
from elcov.models.element import DiscoverySource, PageElement
from elcov.models.selector import TestSelector

logger = logging.getLogger(__name__)


def _now() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ")


class CoverageAggregator:
    """Accumulates discovery and coverage events across a whole session.

    Records are keyed by (normalized selector, discovery source), so the same
    element reported twice by one source is stored once. Coverage is
    monotonic: nothing here ever clears a covered flag except ``clear()``.
    Mutating operations hold a re-entrant lock; projections copy state under
    the lock.
    """

    def __init__(self, diagnostics: Optional[DiagnosticsLog] = None):
        self.diagnostics = diagnostics
        self._records: dict[tuple[str, str], ElementRecord] = {}
        self._test_coverage: dict[str, set[str]] = {}
        self._last_updated = ""
        self._lock = threading.RLock()

    # -- mutation ------------------------------------------------------------

    def add_discovered_elements(
        self,
        elements: Iterable[PageElement | dict],
        context_file: str,
        context_label: str = "",
        source: DiscoverySource = DiscoverySource.RUNTIME_DISCOVERY,
    ) -> int:
        """Merge elements into the known set. Returns how many were new."""
        added = 0
        with self._lock:
            now = _now()
            for raw in elements:
                prepared = self._prepare(raw, source, context_file, "add_discovered_elements")
                if prepared is None:
                    continue
                element, normalized = prepared
                _record, is_new = self._upsert(element, normalized, context_label or context_file, now)
                added += is_new
            self._last_updated = now
        logger.debug("Added %d new elements from %s", added, context_file)
        return added

    def mark_elements_covered(
        self,
        elements: Iterable[PageElement | dict],
        context_file: str,
        context_label: str = "",
        coverage_reason: str = "",
        source: DiscoverySource = DiscoverySource.TEST_EXECUTION,
    ) -> int:
        """Mark every known record sharing an element's normalized selector as covered.

        Elements never seen before are first added as discovered. Returns how
        many records changed from uncovered to covered.
        """
        newly_covered = 0
        with self._lock:
            now = _now()
            covered_keys = self._test_coverage.setdefault(context_file, set())
            for raw in elements:
                prepared = self._prepare(raw, source, context_file, "mark_elements_covered")
                if prepared is None:
                    continue
                element, normalized = prepared
                targets = [r for r in self._records.values() if r.normalized == normalized]
                if not targets:
                    record, _ = self._upsert(element, normalized, context_label or context_file, now)
                    targets = [record]
                hit = CoverageHit(test_file=context_file, test_name=context_label, reason=coverage_reason, timestamp=now)
                for record in targets:
                    newly_covered += self._cover(record, hit)
                covered_keys.add(normalized)
            self._last_updated = now
        return newly_covered

    def apply_matches(
        self,
        selectors: Sequence[TestSelector],
        test_file: str,
        test_name: str = "",
        coverage_reason: str = "selector-match",
    ) -> int:
        """Cover every known element that one of the selectors matches."""
        if not selectors:
            return 0
        newly_covered = 0
        with self._lock:
            records = list(self._records.values())
            matches = find_matches([r.element for r in records], selectors)
            now = _now()
            covered_keys = self._test_coverage.setdefault(test_file, set())
            for record, match in zip(records, matches):
                if match is None:
                    continue
                hit = CoverageHit(
                    test_file=test_file,
                    test_name=test_name,
                    reason=f"{coverage_reason}: {match.normalized}",
                    timestamp=now,
                )
                newly_covered += self._cover(record, hit)
                covered_keys.add(record.normalized)
            self._last_updated = now
        logger.debug("Selector matching covered %d new elements for %s", newly_covered, test_file)
        return newly_covered

    def cleanup_duplicates(self, selectors: Sequence[TestSelector] = ()) -> int:
        """Collapse records that describe the same element.

        Records sharing (normalized selector, discovery context) collapse into
        the first seen. Records synthesized from test selectors fold into the
        live element with the same normalized selector or, given the run's
        ``selectors``, into the first live element their selector matches.
        Survivors absorb coverage and provenance. Returns how many records
        were removed.
        """
        with self._lock:
            alive = {id(r) for r in _collapse(list(self._records.values()), selectors)}
            kept = {key: r for key, r in self._records.items() if id(r) in alive}
            removed = len(self._records) - len(kept)
            self._records = kept
        if removed:
            logger.info("Removed %d duplicate element records", removed)
        return removed

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._test_coverage.clear()
            self._last_updated = ""

    # -- projections ---------------------------------------------------------

    def records(self) -> list[ElementRecord]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._records.values()]

    def generate_aggregated_coverage(self) -> AggregatedCoverage:
        """Pure projection of the current state; identities are counted once."""
        with self._lock:
            records = [r.model_copy(deep=True) for r in self._records.values()]
            test_files = sorted(self._test_coverage)
            last_updated = self._last_updated

        unique = _collapse(records)

        by_type: dict[str, TypeCoverage] = {}
        by_page: dict[str, PageCoverage] = {}
        uncovered: list[ElementRecord] = []
        covered = 0
        for record in unique:
            element = record.element
            type_bucket = by_type.setdefault(element.type.value, TypeCoverage())
            page_bucket = by_page.setdefault(
                element.page_url or element.discovery_context or "unknown", PageCoverage(),
            )
            type_bucket.total += 1
            page_bucket.total += 1
            if record.covered:
                covered += 1
                type_bucket.covered += 1
                page_bucket.covered += 1
            else:
                uncovered.append(record)
                page_bucket.uncovered.append(record)

        for bucket in by_type.values():
            bucket.percentage = percentage(bucket.covered, bucket.total)

        return AggregatedCoverage(
            total_elements=len(unique),
            covered_elements=covered,
            uncovered_elements=uncovered,
            coverage_percentage=percentage(covered, len(unique)),
            coverage_by_type=by_type,
            coverage_by_page=by_page,
            test_files=test_files,
            last_updated=last_updated,
        )

    def get_uncovered_elements_with_recommendations(self, limit: int = 20) -> UncoveredRecommendations:
        """Uncovered elements as recommendations, highest priority first, capped at ``limit``."""
        uncovered = self.generate_aggregated_coverage().uncovered_elements
        return UncoveredRecommendations(
            total_uncovered=len(uncovered),
            items=uncovered_recommendations(uncovered)[:limit],
        )

    def get_test_file_coverage(self, test_file: str) -> list[str]:
        """Normalized selectors a test file has covered."""
        with self._lock:
            return sorted(self._test_coverage.get(test_file, ()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    # -- internals -----------------------------------------------------------

    def _prepare(
        self, raw, source: DiscoverySource, context_file: str, operation: str,
    ) -> Optional[tuple[PageElement, str]]:
        element = normalize_element(raw, source, context_file)
        if element is None:
            message = f"Dropped element without a selector from {context_file}"
            if self.diagnostics is not None:
                self.diagnostics.record(MALFORMED_ELEMENT, message, operation=operation, source=context_file)
            else:
                logger.warning(message)
            return None
        normalized = element_key(element)
        if not normalized:
            return None
        return element, normalized

    def _upsert(
        self, element: PageElement, normalized: str, context: str, now: str,
    ) -> tuple[ElementRecord, bool]:
        key = (normalized, element.discovery_source.value)
        record = self._records.get(key)
        if record is not None:
            record.last_seen_at = now
            if context and context not in record.contexts:
                record.contexts.append(context)
            return record, False
        record = ElementRecord(
            element=element,
            normalized=normalized,
            sources=[element.discovery_source.value],
            contexts=[context] if context else [],
            first_seen_at=now,
            last_seen_at=now,
        )
        self._records[key] = record
        return record, True

    @staticmethod
    def _cover(record: ElementRecord, hit: CoverageHit) -> int:
        if not any(h.test_file == hit.test_file and h.test_name == hit.test_name for h in record.covered_by):
            record.covered_by.append(hit)
        if record.covered:
            return 0
        record.covered = True
        return 1


def _collapse(records: list[ElementRecord], selectors: Sequence[TestSelector] = ()) -> list[ElementRecord]:
    """Surviving records, in first-seen order. Merges happen in place."""
    unique: dict[tuple[str, str], ElementRecord] = {}
    for record in records:
        survivor = unique.get(record.identity)
        if survivor is None:
            unique[record.identity] = record
        else:
            _merge(survivor, record)

    live = [r for r in unique.values() if r.element.discovery_source == DiscoverySource.RUNTIME_DISCOVERY]
    if not live:
        return list(unique.values())
    live_by_key: dict[str, ElementRecord] = {}
    for record in live:
        live_by_key.setdefault(record.normalized, record)
    selector_by_key: dict[str, TestSelector] = {}
    for selector in selectors:
        selector_by_key.setdefault(selector.normalized, selector)

    survivors = []
    for record in unique.values():
        if record.element.discovery_source == DiscoverySource.RUNTIME_DISCOVERY:
            survivors.append(record)
            continue
        target = live_by_key.get(record.normalized)
        selector = selector_by_key.get(record.normalized)
        if target is None and selector is not None:
            target = next((r for r in live if selector_matches_element(selector, r.element, r.normalized)), None)
        if target is None:
            survivors.append(record)
        else:
            _merge(target, record)
    return survivors


def _merge(survivor: ElementRecord, other: ElementRecord) -> None:
    survivor.covered = survivor.covered or other.covered
    for hit in other.covered_by:
        if not any(h.test_file == hit.test_file and h.test_name == hit.test_name for h in survivor.covered_by):
            survivor.covered_by.append(hit)
    for source in other.sources:
        if source not in survivor.sources:
            survivor.sources.append(source)
    for context in other.contexts:
        if context not in survivor.contexts:
            survivor.contexts.append(context)
    survivor.last_seen_at = max(survivor.last_seen_at, other.last_seen_at)
