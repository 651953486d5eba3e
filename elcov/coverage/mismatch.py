"""Explains test selectors that match none of the live page elements.

For each unmatched selector the analysis lists near-miss elements (sharing a
word of text or an id/class/attribute token with the selector), scores the
best of them between 0 and 1, and gives a dialect-specific reason.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Iterable, Sequence

from elcov.analyzer.normalizer import extract_payload
from elcov.coverage.matcher import selector_matches_element
from elcov.discovery.element_normalizer import implicit_role
from elcov.models.coverage import SelectorAnalysisReport, SelectorMismatch
from elcov.models.element import FORM_CONTROL_TYPES, ElementType, PageElement
from elcov.models.selector import SelectorDialect, TestSelector

logger = logging.getLogger(__name__)

TYPE_WEIGHT = 0.3
TEXT_WEIGHT = 0.4
ATTRIBUTE_WEIGHT = 0.3
MAX_POSSIBLE_MATCHES = 5
MANY_MISMATCHES = 10

_WORD = re.compile(r"[a-z0-9]+")
_NOISE = frozenset({"data", "testid", "test", "text", "role", "label", "name", "placeholder", "xpath", "has"})
_TEST_ID_ATTRIBUTES = ("data-testid", "data-test-id", "data-test")


def _tokens(*values: str | None) -> set[str]:
    words: set[str] = set()
    for value in values:
        if value:
            words.update(w for w in _WORD.findall(value.lower()) if len(w) > 2 and w not in _NOISE)
    return words


def _selector_tokens(selector: TestSelector) -> set[str]:
    return _tokens(selector.normalized, extract_payload(selector.raw, selector.dialect))


def _has_test_id(element: PageElement) -> bool:
    return any(a in element.attributes for a in _TEST_ID_ATTRIBUTES) or "data-testid" in element.selector


def type_compatible(dialect: SelectorDialect, element: PageElement) -> bool:
    """Whether a selector of this dialect could address the element at all."""
    if dialect == SelectorDialect.TEST_ID:
        return _has_test_id(element)
    if dialect == SelectorDialect.TEXT:
        return bool(element.text)
    if dialect == SelectorDialect.ROLE:
        return bool(implicit_role(element))
    if dialect == SelectorDialect.LABEL:
        return element.type in FORM_CONTROL_TYPES or bool(element.accessible_name)
    if dialect == SelectorDialect.PLACEHOLDER:
        return element.type in (ElementType.INPUT, ElementType.TEXTAREA)
    if dialect == SelectorDialect.ALT_TEXT:
        return "alt" in element.attributes
    return True


def _text_tokens(element: PageElement) -> set[str]:
    return _tokens(element.text, element.accessible_name)


def _attribute_tokens(element: PageElement) -> set[str]:
    return _tokens(
        element.id, element.class_name, element.tag_name, implicit_role(element),
        *element.attributes.values(),
    )


def similarity(selector: TestSelector, element: PageElement) -> float:
    """Weighted closeness of a selector to an element, 0 when nothing is shared."""
    words = _selector_tokens(selector)
    shares_text = bool(words & _text_tokens(element))
    shares_attribute = bool(words & _attribute_tokens(element))
    if not (shares_text or shares_attribute):
        return 0.0
    score = TYPE_WEIGHT if type_compatible(selector.dialect, element) else 0.0
    score += TEXT_WEIGHT if shares_text else 0.0
    score += ATTRIBUTE_WEIGHT if shares_attribute else 0.0
    return round(score, 2)


def mismatch_reason(selector: TestSelector, elements: Sequence[PageElement]) -> str:
    payload = extract_payload(selector.raw, selector.dialect)
    if selector.dialect == SelectorDialect.TEST_ID:
        if any(_has_test_id(e) for e in elements):
            return f"Test id '{payload}' not found. The page uses different test ids."
        return "No elements on the page have test ids. Consider adding data-testid attributes."
    if selector.dialect == SelectorDialect.TEXT:
        texts = [e.text for e in elements if e.text]
        if not texts:
            return f"Text '{payload}' not found. No element on the page has visible text."
        return f"Text '{payload}' not found. Visible text on the page: {', '.join(texts[:10])}"
    if selector.dialect == SelectorDialect.ROLE:
        roles = sorted({r for r in (implicit_role(e) for e in elements) if r})
        return f"Role '{payload}' not found. Available roles: {', '.join(roles) or 'none'}"
    if selector.dialect in (SelectorDialect.CSS, SelectorDialect.XPATH):
        return (
            f"Selector '{selector.raw}' matches no discovered element. "
            "Check the selector syntax or whether the element is rendered."
        )
    return f"{selector.dialect.value} selector '{selector.raw}' matches no discovered element."


def mismatch_recommendations(mismatches: Sequence[SelectorMismatch]) -> list[str]:
    counts = Counter(m.selector.dialect for m in mismatches)
    recs: list[str] = []
    if counts[SelectorDialect.TEST_ID]:
        recs.append("Add data-testid attributes to interactive elements for more reliable selectors")
        recs.append(
            f"{counts[SelectorDialect.TEST_ID]} test id selector(s) match no element; "
            "verify the ids against the page"
        )
    if counts[SelectorDialect.TEXT]:
        recs.append(f"{counts[SelectorDialect.TEXT]} text selector(s) match no element; the copy may have changed")
        recs.append("Prefer test ids over text selectors where the copy changes often")
    structural = counts[SelectorDialect.CSS] + counts[SelectorDialect.XPATH]
    if structural:
        recs.append(f"{structural} CSS/XPath selector(s) match no element; the DOM structure may have changed")
    if len(mismatches) > MANY_MISMATCHES:
        recs.append(f"{len(mismatches)} selectors match nothing; review the suite against the current pages")
    if mismatches:
        recs.append("Run with --verbose to log each unmatched selector and its closest elements")
    return recs


def analyze_selector_mismatch(
    selectors: Iterable[TestSelector], elements: Iterable[PageElement],
) -> SelectorAnalysisReport:
    """Split selectors into matched and unmatched against live elements.

    A selector counts as matched when the coverage matcher pairs it with at
    least one element. Unmatched selectors keep their closest elements, best
    first, with the best similarity as ``match_score``.
    """
    selectors = list(selectors)
    elements = list(elements)
    mismatches: list[SelectorMismatch] = []
    for selector in selectors:
        if any(selector_matches_element(selector, e) for e in elements):
            continue
        scored = sorted(
            ((similarity(selector, e), i) for i, e in enumerate(elements)),
            key=lambda pair: (-pair[0], pair[1]),
        )
        possible = [elements[i] for score, i in scored if score > 0][:MAX_POSSIBLE_MATCHES]
        mismatch = SelectorMismatch(
            selector=selector,
            possible_matches=possible,
            match_score=scored[0][0] if scored else 0.0,
            reason=mismatch_reason(selector, elements),
        )
        logger.debug(
            "Unmatched %s selector %s (score %.2f, %d near misses)",
            selector.dialect.value, selector.raw, mismatch.match_score, len(possible),
        )
        mismatches.append(mismatch)

    return SelectorAnalysisReport(
        total_selectors=len(selectors),
        matched_selectors=len(selectors) - len(mismatches),
        unmatched_selectors=len(mismatches),
        mismatches=mismatches,
        recommendations=mismatch_recommendations(mismatches),
    )
