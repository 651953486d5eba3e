"""Decides which discovered elements are covered by which test selectors.

Structural dialects (CSS, XPath, test-id, placeholder, alt-text) compare
normalized selector strings exactly, falling back to the element's id or
class appearing in the selector. Semantic dialects (text, role, label)
compare visible text / roles case-insensitively in either direction. Any
single match covers an element; there is no ranking between selectors.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Callable, Iterable, Optional, Sequence

from elcov.analyzer.classifier import classify_selector
from elcov.analyzer.normalizer import extract_payload, normalize, replace_runtime_values
from elcov.coverage.scorer import percentage
from elcov.discovery.element_normalizer import implicit_role
from elcov.models.coverage import CoverageResult, PageBucket, TypeCoverage
from elcov.models.element import PageElement
from elcov.models.selector import SelectorDialect, TestSelector

logger = logging.getLogger(__name__)

WILDCARD = "..."
_NAME_OPTION = re.compile(r"""\bname\s*[:=]\s*(['"`])(.*?)\1""")
_TEST_ID_ATTRIBUTES = ("data-testid", "data-test-id", "data-test", "test-id")

MatchStrategy = Callable[[TestSelector, PageElement, str], bool]


def element_key(element: PageElement) -> str:
    """Normalized selector of an element under its own dialect."""
    dialect = element.dialect or classify_selector(element.selector)
    return normalize(element.selector, dialect)


@lru_cache(maxsize=4096)
def _payload(raw: str, dialect: SelectorDialect) -> str:
    return extract_payload(replace_runtime_values(raw), dialect)


def text_matches(payload: Optional[str], candidate: Optional[str]) -> bool:
    """Case-insensitive containment in either direction; ``...`` matches anything."""
    if not payload or not candidate:
        return False
    payload = payload.strip().lower()
    candidate = candidate.strip().lower()
    if not payload or not candidate:
        return False
    if WILDCARD in payload:
        parts = [re.escape(p.strip()) for p in payload.split(WILDCARD)]
        if not any(parts):
            return False
        return re.search(r".*".join(parts), candidate) is not None
    return payload in candidate or candidate in payload


def _token_in(needle: str, haystack: str) -> bool:
    return re.search(re.escape(needle) + r"(?![\w-])", haystack) is not None


def _structural_match(selector: TestSelector, element: PageElement, key: str) -> bool:
    target = selector.normalized
    if not target:
        return False
    if target == key:
        return True
    if element.id and (
        _token_in(f"#{element.id}", target)
        or f"[id={element.id}]" in target
        or re.search(r"""@id\s*=\s*["']""" + re.escape(element.id) + r"""["']""", target)
    ):
        return True
    classes = (element.class_name or "").split()
    return bool(classes) and _token_in(f".{classes[0]}", target)


def _attribute_strategy(*names: str) -> MatchStrategy:
    def match(selector: TestSelector, element: PageElement, key: str) -> bool:
        if _structural_match(selector, element, key):
            return True
        payload = _payload(selector.raw, selector.dialect).strip()
        if not payload:
            return False
        return any(element.attributes.get(n) == payload for n in names)
    return match


def _text_strategy(selector: TestSelector, element: PageElement, key: str) -> bool:
    payload = _payload(selector.raw, SelectorDialect.TEXT)
    return (
        text_matches(payload, element.text)
        or text_matches(payload, element.accessible_name)
        or (element.dialect == SelectorDialect.TEXT and selector.normalized == key)
    )


def _role_strategy(selector: TestSelector, element: PageElement, key: str) -> bool:
    payload = _payload(selector.raw, SelectorDialect.ROLE)
    if not text_matches(payload, implicit_role(element)):
        return False
    name = _NAME_OPTION.search(selector.context or "")
    if name:
        return text_matches(name.group(2), element.text) or text_matches(name.group(2), element.accessible_name)
    return True


def _label_strategy(selector: TestSelector, element: PageElement, key: str) -> bool:
    payload = _payload(selector.raw, SelectorDialect.LABEL)
    return (
        text_matches(payload, element.accessible_name)
        or text_matches(payload, element.attributes.get("aria-label"))
    )


MATCHERS: dict[SelectorDialect, MatchStrategy] = {
    SelectorDialect.CSS: _structural_match,
    SelectorDialect.XPATH: _structural_match,
    SelectorDialect.TEST_ID: _attribute_strategy(*_TEST_ID_ATTRIBUTES),
    SelectorDialect.PLACEHOLDER: _attribute_strategy("placeholder"),
    SelectorDialect.ALT_TEXT: _attribute_strategy("alt", "title"),
    SelectorDialect.TEXT: _text_strategy,
    SelectorDialect.ROLE: _role_strategy,
    SelectorDialect.LABEL: _label_strategy,
}


def selector_matches_element(
    selector: TestSelector, element: PageElement, key: str | None = None,
) -> bool:
    if key is None:
        key = element_key(element)
    return MATCHERS.get(selector.dialect, _structural_match)(selector, element, key)


def find_matches(
    elements: Sequence[PageElement], selectors: Sequence[TestSelector],
) -> list[Optional[TestSelector]]:
    """For each element, the first selector that covers it (or None)."""
    matches: list[Optional[TestSelector]] = []
    for element in elements:
        key = element_key(element)
        matches.append(next(
            (s for s in selectors if selector_matches_element(s, element, key)),
            None,
        ))
    return matches


def calculate_coverage(
    elements: Iterable[PageElement],
    selectors: Iterable[TestSelector],
    page_url: str | None = None,
) -> CoverageResult:
    """Covered/uncovered split with per-type and per-page breakdowns."""
    elements = list(elements)
    selectors = list(selectors)
    matches = find_matches(elements, selectors)

    by_type: dict[str, TypeCoverage] = {}
    by_page: dict[str, PageBucket] = {}
    uncovered: list[PageElement] = []
    covered = 0
    for element, match in zip(elements, matches):
        is_covered = match is not None
        bucket = by_type.setdefault(element.type.value, TypeCoverage())
        bucket.total += 1
        page_key = page_url or element.page_url
        if page_key:
            page = by_page.setdefault(page_key, PageBucket())
            page.total += 1
            page.elements.append(element)
        if is_covered:
            covered += 1
            bucket.covered += 1
            if page_key:
                page.covered += 1
        else:
            uncovered.append(element)

    for bucket in by_type.values():
        bucket.percentage = percentage(bucket.covered, bucket.total)

    logger.debug("Matched %d of %d elements against %d selectors", covered, len(elements), len(selectors))
    return CoverageResult(
        total_elements=len(elements),
        covered_elements=covered,
        uncovered_elements=uncovered,
        coverage_percentage=percentage(covered, len(elements)),
        coverage_by_type=by_type,
        elements_by_page=by_page,
    )
