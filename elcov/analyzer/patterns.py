"""Pattern families recognizing selector-bearing expressions in test source."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from elcov.models.selector import SelectorDialect

# A quoted payload; the delimiter may not reappear inside, other quote chars may.
_QUOTED = r"""(?P<q>['"`])(?P<selector>(?:(?!(?P=q)).)+)(?P=q)"""

_ACTIONS = (
    "click|dblclick|fill|type|press|check|uncheck|selectOption|select_option|hover|focus|blur|tap"
    "|setInputFiles|set_input_files|setChecked|set_checked|dispatchEvent|dispatch_event"
    "|waitForSelector|wait_for_selector|textContent|text_content|innerText|inner_text"
    "|isVisible|is_visible|isChecked|is_checked|isEnabled|is_enabled"
)

_ACCESSORS = (
    "Role|Text|Label|Placeholder|AltText|Title|TestId"
    "|role|text|label|placeholder|alt_text|title|test_id"
)


@dataclass(frozen=True)
class SelectorPattern:
    """One named way of referencing an element in test code.

    ``selector_group`` names the capture group holding the payload; when it
    is None the whole match is the payload.
    """
    name: str
    regex: re.Pattern
    dialect_hint: Optional[SelectorDialect] = None
    selector_group: Optional[str] = "selector"
    requires_selector_syntax: bool = False

    def payload(self, match: re.Match) -> str:
        if self.selector_group and self.selector_group in self.regex.groupindex:
            return match.group(self.selector_group) or ""
        return match.group(0)

    def accessor(self, match: re.Match) -> Optional[str]:
        if "accessor" in self.regex.groupindex:
            return match.group("accessor")
        return None


def _pattern(name: str, regex: str, **kwargs) -> SelectorPattern:
    return SelectorPattern(name=name, regex=re.compile(regex), **kwargs)


DEFAULT_PATTERNS: tuple[SelectorPattern, ...] = (
    # Playwright accessors: page.getByRole('button'), page.get_by_label("Email")
    _pattern("accessor_call", r"\b(?:getBy|get_by_)(?P<accessor>" + _ACCESSORS + r")\(\s*" + _QUOTED),
    _pattern(
        "filter_has_text",
        r"\.filter\(\s*(?:\{\s*hasText\s*:|has_text\s*=)\s*" + _QUOTED,
        dialect_hint=SelectorDialect.TEXT,
    ),
    _pattern("locator_call", r"\blocator\(\s*" + _QUOTED),
    _pattern("chained_locator", r"\)\s*\.locator\(\s*" + _QUOTED),
    _pattern("action_call", r"\b(?:this\.)?(?:page|frame)\.(?P<action>" + _ACTIONS + r")\(\s*" + _QUOTED),
    _pattern("cypress_get", r"\bcy\.get\(\s*" + _QUOTED),
    _pattern("cypress_contains", r"\bcy\.contains\(\s*" + _QUOTED, dialect_hint=SelectorDialect.TEXT),
    _pattern(
        "xpath_literal",
        r"""(?<![\w)\]])(?P<q>['"`])(?P<selector>(?:xpath=)?\(?//(?:(?!(?P=q)).)+)(?P=q)""",
        dialect_hint=SelectorDialect.XPATH,
    ),
    _pattern(
        "test_id_attribute",
        r"""\[data-(?:testid|test-id|test|cy|qa)\s*=\s*(?:"[^"]*"|'[^']*'|[\w:.-]+)\]""",
        dialect_hint=SelectorDialect.TEST_ID,
        selector_group=None,
    ),
    _pattern(
        "css_literal",
        r"""(?<![\w)\]])(?P<q>['"`])(?P<selector>[A-Za-z#.\[*](?:(?!(?P=q))[\w\s\-\[\]>#+.:^~=()*"'|$,])*)(?P=q)""",
        requires_selector_syntax=True,
    ),
)


IGNORED_PATTERNS: tuple[re.Pattern, ...] = tuple(re.compile(p) for p in (
    r"^https?://",
    r"^about:blank",
    r"^data:",
    r"^javascript:",
    r"^\s*$",
    r"^[{}\[\]()]+$",
    r"console\.log",
    r"expect\(",
    r"\btest\(",
    r"\bit\(",
    r"describe\(",
))

_SELECTOR_SYNTAX = re.compile(r"[.#\[\]:>~+=*]")
_BARE_LITERAL = re.compile(r"^(?:\d+(?:\.\d+)?|true|false|null|undefined|[A-Za-z_$][\w$]*)$")
_FILE_NAME = re.compile(r"\.(?:ts|tsx|js|jsx|mjs|py|json|png|jpe?g|svg|html?|css|txt)$", re.IGNORECASE)
_PROSE = re.compile(r"\w: \w|\w\. [A-Za-z]")


def is_ignored(payload: str) -> bool:
    return any(p.search(payload) for p in IGNORED_PATTERNS)


def looks_like_selector(payload: str) -> bool:
    """Heuristic for generic string literals: only strings with selector syntax count."""
    s = payload.strip()
    if len(s) < 2 or _BARE_LITERAL.match(s):
        return False
    if _FILE_NAME.search(s) or _PROSE.search(s):
        return False
    if " " in s and s[-1] in ".!?":
        return False
    return bool(_SELECTOR_SYNTAX.search(s))
