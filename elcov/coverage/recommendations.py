"""Remediation guidance for coverage gaps."""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Iterable, Union

from elcov.models.coverage import (
    PRIORITY_ORDER,
    AggregatedCoverage,
    CoverageResult,
    ElementRecord,
    Recommendation,
)
from elcov.models.element import FORM_CONTROL_TYPES, DiscoverySource, ElementType, PageElement

logger = logging.getLogger(__name__)

PRIMARY_ACTIONS = re.compile(
    r"\b(submit|save|delete|remove|log ?in|sign ?in|sign ?up|register|checkout|pay|confirm|continue|buy)\b",
    re.IGNORECASE,
)
SENSITIVE_FIELDS = re.compile(r"email|password|login|user(name)?|card|phone", re.IGNORECASE)

LOW_TYPE_COVERAGE = 50
BULK_UNCOVERED = 5

TIERS: tuple[tuple[int, str], ...] = (
    (90, "Excellent: You have comprehensive element coverage ({pct}%)."),
    (75, "Good: Element coverage is {pct}%, but there is room for improvement."),
    (50, "Warning: Element coverage is {pct}%. Some interactive elements are not tested."),
    (0, "Critical: Element coverage is {pct}%. Consider adding more end-to-end tests."),
)

CoverageLike = Union[CoverageResult, AggregatedCoverage]


def _element(item: Union[PageElement, ElementRecord]) -> PageElement:
    return item.element if isinstance(item, ElementRecord) else item


def tier_message(pct: int, total: int) -> str:
    if total == 0:
        return "Critical: no interactive elements were discovered, so coverage is 0%."
    for floor, message in TIERS:
        if pct >= floor:
            return message.format(pct=pct)
    return TIERS[-1][1].format(pct=pct)


def generate_recommendations(coverage: CoverageLike, limit: int = 20) -> list[Recommendation]:
    """Tier message, per-type guidance, then per-element guidance (highest priority first)."""
    recs = [Recommendation(
        message=tier_message(coverage.coverage_percentage, coverage.total_elements),
        priority="low" if coverage.coverage_percentage >= 90 and coverage.total_elements else "high",
    )]

    for type_name, tc in sorted(coverage.coverage_by_type.items()):
        if tc.total and tc.percentage < LOW_TYPE_COVERAGE:
            recs.append(Recommendation(
                message=f"Low coverage for {type_name} elements ({tc.percentage}%). Consider adding tests for these.",
                priority="medium",
                element_type=type_name,
            ))

    grouped: dict[str, int] = defaultdict(int)
    for item in coverage.uncovered_elements:
        grouped[_element(item).type.value] += 1
    for type_name, count in sorted(grouped.items()):
        if count > BULK_UNCOVERED:
            recs.append(Recommendation(
                message=f"Consider testing the {count} {type_name} elements that are currently uncovered.",
                priority="medium",
                element_type=type_name,
            ))

    recs.extend(uncovered_recommendations(coverage.uncovered_elements)[:limit])
    return recs


def uncovered_recommendations(items: Iterable[Union[PageElement, ElementRecord]]) -> list[Recommendation]:
    """One recommendation per uncovered element, sorted high → low; ties keep input order."""
    recs = [recommend_for_element(_element(item)) for item in items]
    return sorted(recs, key=lambda r: PRIORITY_ORDER[r.priority], reverse=True)


def element_priority(element: PageElement) -> str:
    if element.discovery_source == DiscoverySource.RUNTIME_DISCOVERY and not (
        element.is_visible and element.is_enabled
    ):
        return "low"
    label = " ".join(filter(None, (element.text, element.accessible_name, element.id, element.selector)))
    if element.type in FORM_CONTROL_TYPES:
        return "high"
    if element.type == ElementType.BUTTON:
        return "high" if PRIMARY_ACTIONS.search(label) else "medium"
    if element.type == ElementType.LINK or _has_test_id(element):
        return "medium"
    return "low"


def _has_test_id(element: PageElement) -> bool:
    return "data-testid" in element.attributes or "data-testid" in element.selector


def recommend_for_element(element: PageElement) -> Recommendation:
    selector = element.selector
    name = (element.text or element.accessible_name or element.id or selector).strip()
    priority = element_priority(element)
    quoted = selector.replace("'", "\\'")

    if element.type == ElementType.BUTTON:
        if priority == "high":
            message = f'Critical button "{name}" is not tested. This could lead to major functionality issues.'
        else:
            message = f'Button "{name}" is not tested. User interactions may not work as expected.'
        test = _snippet(f"should click {name} button", f"await page.click('{quoted}');", "Verify button action")
    elif element.type in (ElementType.INPUT, ElementType.TEXTAREA):
        detail = " User data handling is at risk." if SENSITIVE_FIELDS.search(name) else ""
        message = f'Input field "{name}" is not tested.{detail}'
        test = _snippet(f"should fill {name}", f"await page.fill('{quoted}', 'test-value');", "Add validation assertions")
    elif element.type in (ElementType.CHECKBOX, ElementType.RADIO):
        message = f'{element.type.value.capitalize()} "{name}" is never toggled by a test.'
        test = _snippet(f"should toggle {name}", f"await page.check('{quoted}');", "Verify the checked state")
    elif element.type == ElementType.SELECT:
        message = f'Dropdown "{name}" is not tested.'
        test = _snippet(f"should choose an option in {name}", f"await page.selectOption('{quoted}', 'value');", "Verify the selection")
    elif element.type == ElementType.LINK:
        message = f'Link "{name}" is not tested. Navigation may be broken.'
        test = _snippet(f"should navigate with {name} link", f"await page.click('{quoted}');", "Verify navigation")
    elif _has_test_id(element):
        message = f'Element with test ID "{selector}" is not covered despite being explicitly marked for testing.'
        test = _snippet(f"should interact with {selector}", f"await page.click('{quoted}');", "Add expected behavior assertions")
    else:
        message = f'Interactive element "{selector}" is not tested. Consider adding test coverage.'
        test = _snippet(f"should interact with {selector}", f"await page.click('{quoted}');", "Add appropriate assertions")

    return Recommendation(
        message=message,
        priority=priority,
        selector=selector,
        element_type=element.type.value,
        suggested_test=test,
    )


def _snippet(title: str, action: str, note: str) -> str:
    title = title.replace("'", "\\'")
    return f"test('{title}', async ({{ page }}) => {{\n  {action}\n  // {note}\n}});"
