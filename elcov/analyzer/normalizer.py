"""Canonical comparison keys for raw selector text."""

from __future__ import annotations

import re

from elcov.models.selector import SelectorDialect

_QUOTE_CHARS = ("'", '"', "`")
_WHITESPACE = re.compile(r"\s+")

# Runtime values: template interpolation and string concatenation
_INTERPOLATION = re.compile(r"\$\{[^{}]*\}")
_IDENT = r"[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*(?:\(\))?"
_CONCAT_MIDDLE = re.compile(r"(['\"`])\s*\+\s*" + _IDENT + r"\s*\+\s*\1")
_CONCAT_TAIL = re.compile(r"(['\"`])\s*\+\s*" + _IDENT + r"\s*$")
_CONCAT_HEAD = re.compile(r"^\s*" + _IDENT + r"\s*\+\s*(['\"`])")

_ATTRIBUTE = re.compile(
    r"""\[\s*([\w:-]+)\s*([~|^$*]?=)\s*(?:"([^"]*)"|'([^']*)'|([^\]\s'"]*))\s*?(\s[iIsS])?\s*\]"""
)
_BARE_ATTRIBUTE = re.compile(r"\[\s*([\w:-]+)\s*\]")
_PLAIN_TOKEN = re.compile(r"^[\w-]+$")

_TEXT_ENGINE = re.compile(r"""(?<![\[\w-])text\s*=\s*(["'])(?:(?!\1).)*\1""")
_TEXT_PSEUDO = re.compile(r""":text\(\s*(["'])(?:(?!\1).)*\1\s*\)""")
_ROLE_ENGINE = re.compile(r"""(?<![\[\w-])role\s*=\s*(["'])(?:(?!\1).)*\1""")
_ROLE_ACCESSOR = re.compile(r"""(getByRole|get_by_role)\(\s*(["'])(?:(?!\2).)*\2""")

_MAX_PASSES = 10


def normalize(raw: str | None, dialect: SelectorDialect | None = None) -> str:
    """Return the canonical comparison key for a selector.

    Never raises. Passes are repeated until the string stops changing, so
    ``normalize(normalize(s)) == normalize(s)``.
    """
    if not raw:
        return ""
    current = raw.strip()
    for _ in range(_MAX_PASSES):
        updated = _normalize_once(current, dialect)
        if updated == current:
            break
        current = updated
    return current


def _normalize_once(s: str, dialect: SelectorDialect | None) -> str:
    s = strip_outer_quotes(s)
    s = _WHITESPACE.sub(" ", s).strip()
    s = replace_runtime_values(s)
    s = _normalize_attributes(s)
    if dialect == SelectorDialect.TEXT:
        s = _TEXT_ENGINE.sub('text="..."', s)
        s = _TEXT_PSEUDO.sub(':text("...")', s)
    elif dialect == SelectorDialect.ROLE:
        s = _ROLE_ENGINE.sub('role="..."', s)
        s = _ROLE_ACCESSOR.sub(r'\1("..."', s)
    return s


def strip_outer_quotes(s: str) -> str:
    """Remove one layer of matching outer quotes when the quote char is not reused inside."""
    s = s.strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in _QUOTE_CHARS and s[0] not in s[1:-1]:
        return s[1:-1].strip()
    return s


def replace_runtime_values(s: str) -> str:
    s = _INTERPOLATION.sub("...", s)
    s = _CONCAT_MIDDLE.sub("...", s)
    s = _CONCAT_TAIL.sub(r"...\1", s)
    s = _CONCAT_HEAD.sub(r"\1...", s)
    return s


def _normalize_attributes(s: str) -> str:
    def _attr(m: re.Match) -> str:
        name, op = m.group(1), m.group(2)
        if m.group(3) is not None:
            value = m.group(3)
        elif m.group(4) is not None:
            value = m.group(4)
        else:
            value = m.group(5) or ""
        flag = f" {m.group(6).strip()}" if m.group(6) else ""
        if _PLAIN_TOKEN.match(value):
            return f"[{name}{op}{value}{flag}]"
        quote = "'" if '"' in value else '"'
        return f"[{name}{op}{quote}{value}{quote}{flag}]"

    s = _ATTRIBUTE.sub(_attr, s)
    return _BARE_ATTRIBUTE.sub(r"[\1]", s)


# -- payload extraction ------------------------------------------------------

_TEXT_PREFIX = re.compile(r"^text\s*=\s*(.+)$", re.DOTALL)
_TEXT_FUNCTION = re.compile(r""":(?:has-)?text(?:-is)?\(\s*(["'])(.*?)\1\s*\)""")
_ROLE_PREFIX = re.compile(r"^role\s*=\s*([\w-]+)")
_ROLE_ATTRIBUTE = re.compile(r"""\[role\s*=\s*["']?([\w-]+)""")

_ATTRIBUTE_PAYLOADS: dict[SelectorDialect, re.Pattern] = {
    SelectorDialect.LABEL: re.compile(r"""(?:aria-)?label\s*=\s*["']?([^"'\]]+)"""),
    SelectorDialect.PLACEHOLDER: re.compile(r"""placeholder\s*=\s*["']?([^"'\]]+)"""),
    SelectorDialect.ALT_TEXT: re.compile(r"""(?:alt|title)\s*=\s*["']?([^"'\]]+)"""),
    SelectorDialect.TEST_ID: re.compile(r"""(?:data-testid|data-test-id|data-test|test-id)\s*=\s*["']?([^"'\]]+)"""),
}


def extract_payload(raw: str | None, dialect: SelectorDialect) -> str:
    """Return the human-meaningful part of a selector (visible text, role name, attribute value)."""
    if not raw:
        return ""
    s = strip_outer_quotes(raw)
    if dialect == SelectorDialect.TEXT:
        m = _TEXT_FUNCTION.search(s)
        if m:
            return m.group(2).strip()
        m = _TEXT_PREFIX.match(s)
        if m:
            return strip_outer_quotes(m.group(1))
        return s
    if dialect == SelectorDialect.ROLE:
        m = _ROLE_PREFIX.match(s) or _ROLE_ATTRIBUTE.search(s)
        return m.group(1) if m else s
    pattern = _ATTRIBUTE_PAYLOADS.get(dialect)
    if pattern:
        m = pattern.search(s)
        if m:
            return m.group(1).strip()
    return s
