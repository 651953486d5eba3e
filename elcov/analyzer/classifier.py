"""Selector dialect classification.

The cascade is a single ordered rule list; the first rule that returns a
dialect wins, and CSS is the fallback:

1. XPath prefix (``//``, ``/``, ``(``, ``xpath=``)
2. accessor name (``getByRole`` → ROLE, ``get_by_test_id`` → TEST_ID, ...)
3. attribute hints inside the payload (``data-testid``, ``text=``, ``role=``, ...)
4. the pattern family's own hint or name
"""

from __future__ import annotations

from typing import Callable, Optional

from elcov.models.selector import SelectorDialect

_ACCESSOR_DIALECTS: dict[str, SelectorDialect] = {
    "role": SelectorDialect.ROLE,
    "text": SelectorDialect.TEXT,
    "label": SelectorDialect.LABEL,
    "placeholder": SelectorDialect.PLACEHOLDER,
    "alttext": SelectorDialect.ALT_TEXT,
    "title": SelectorDialect.ALT_TEXT,
    "testid": SelectorDialect.TEST_ID,
}

_PAYLOAD_HINTS: tuple[tuple[tuple[str, ...], SelectorDialect], ...] = (
    (("data-testid", "data-test-id", "data-test", "test-id"), SelectorDialect.TEST_ID),
    (("text=", ":text(", ":has-text(", ":text-is("), SelectorDialect.TEXT),
    (("role=",), SelectorDialect.ROLE),
    (("label=",), SelectorDialect.LABEL),
    (("placeholder=",), SelectorDialect.PLACEHOLDER),
    (("alt=", "title="), SelectorDialect.ALT_TEXT),
)

_NAME_HINTS: tuple[tuple[str, SelectorDialect], ...] = (
    ("xpath", SelectorDialect.XPATH),
    ("text", SelectorDialect.TEXT),
    ("role", SelectorDialect.ROLE),
    ("label", SelectorDialect.LABEL),
    ("placeholder", SelectorDialect.PLACEHOLDER),
    ("alt", SelectorDialect.ALT_TEXT),
    ("testid", SelectorDialect.TEST_ID),
)

Rule = Callable[[str, Optional[str], str, Optional[SelectorDialect]], Optional[SelectorDialect]]


def _xpath_prefix(payload, accessor, pattern_name, family_hint):
    if payload.startswith(("//", "/", "(", "xpath=")):
        return SelectorDialect.XPATH
    return None


def _accessor_hint(payload, accessor, pattern_name, family_hint):
    if not accessor:
        return None
    return _ACCESSOR_DIALECTS.get(accessor.lower().replace("_", ""))


def _payload_hint(payload, accessor, pattern_name, family_hint):
    lowered = payload.lower()
    for needles, dialect in _PAYLOAD_HINTS:
        if any(n in lowered for n in needles):
            return dialect
    return None


def _family_hint(payload, accessor, pattern_name, family_hint):
    if family_hint is not None:
        return family_hint
    tokens = set(pattern_name.lower().split("_"))
    for token, dialect in _NAME_HINTS:
        if token in tokens:
            return dialect
    return None


CLASSIFICATION_RULES: tuple[tuple[str, Rule], ...] = (
    ("xpath_prefix", _xpath_prefix),
    ("accessor", _accessor_hint),
    ("payload_attribute", _payload_hint),
    ("pattern_family", _family_hint),
)


def determine_dialect(
    payload: str,
    accessor: str | None = None,
    pattern_name: str = "",
    family_hint: SelectorDialect | None = None,
) -> SelectorDialect:
    payload = payload.strip()
    for _name, rule in CLASSIFICATION_RULES:
        dialect = rule(payload, accessor, pattern_name, family_hint)
        if dialect is not None:
            return dialect
    return SelectorDialect.CSS


def classify_selector(selector: str) -> SelectorDialect:
    """Classify a bare selector string that carries no extraction context."""
    return determine_dialect(selector)
