"""Include/exclude rules applied to discovered elements before aggregation."""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from elcov.models.config import AttributeFilter, ElementFilterConfig
from elcov.models.element import DiscoverySource, ElementType, PageElement

logger = logging.getLogger(__name__)

PRESETS: dict[str, dict] = {
    "comprehensive": {
        "include_types": list(ElementType),
        "include_hidden": False,
        "include_disabled": True,
        "include_outside_viewport": True,
    },
    "essential": {
        "include_types": [
            ElementType.BUTTON, ElementType.INPUT, ElementType.SELECT,
            ElementType.LINK, ElementType.CHECKBOX, ElementType.RADIO,
        ],
        "include_hidden": False,
        "include_disabled": False,
        "include_outside_viewport": False,
    },
    "minimal": {
        "include_types": [ElementType.BUTTON, ElementType.INPUT, ElementType.LINK],
        "include_hidden": False,
        "include_disabled": False,
        "include_outside_viewport": False,
        "min_width": 10,
        "min_height": 10,
    },
    "forms": {
        "include_types": [
            ElementType.INPUT, ElementType.SELECT, ElementType.TEXTAREA,
            ElementType.CHECKBOX, ElementType.RADIO, ElementType.BUTTON,
        ],
        "include_selectors": ["form", '[data-testid*="form"]', '[id*="form"]'],
        "include_hidden": False,
        "include_disabled": True,
        "include_outside_viewport": False,
    },
    "navigation": {
        "include_types": [ElementType.LINK, ElementType.BUTTON],
        "include_selectors": ["nav", '[role="navigation"]', '[aria-label*="menu"]'],
        "include_hidden": False,
        "include_disabled": False,
        "include_outside_viewport": True,
    },
}

_ATTR_SELECTOR = re.compile(r"""^\[\s*([\w:-]+)\s*(?:([*^$~|]?=)\s*["']?([^"'\]]*)["']?)?\s*\]$""")


class FilteringResult(BaseModel):
    elements: list[PageElement] = Field(default_factory=list)
    total: int = 0
    included: int = 0
    excluded: int = 0
    exclusion_reasons: dict[str, int] = Field(default_factory=dict)


class ElementFilter:
    """Decides which discovered elements count toward coverage."""

    def __init__(self, config: Optional[ElementFilterConfig] = None):
        self.config = config or ElementFilterConfig()
        self._include_text = [re.compile(p) for p in self.config.include_text_patterns]
        self._exclude_text = [re.compile(p) for p in self.config.exclude_text_patterns]

    @classmethod
    def from_preset(cls, preset: str) -> "ElementFilter":
        return cls(ElementFilterConfig(preset=preset, **PRESETS[preset]))

    @classmethod
    def from_config(cls, config: ElementFilterConfig, extra_excludes: Iterable[str] = ()) -> "ElementFilter":
        """Resolve a preset, letting explicitly set fields override it."""
        data = {}
        if config.preset:
            data.update(PRESETS[config.preset])
        data.update(config.model_dump(include=config.model_fields_set))
        data["exclude_selectors"] = list(data.get("exclude_selectors", [])) + [
            s for s in extra_excludes if s not in data.get("exclude_selectors", [])
        ]
        return cls(ElementFilterConfig(**data))

    def filter_elements(self, elements: Iterable[PageElement]) -> FilteringResult:
        elements = list(elements)
        kept: list[PageElement] = []
        reasons: Counter[str] = Counter()
        for element in elements:
            reason = self.exclusion_reason(element)
            if reason:
                reasons[reason] += 1
            else:
                kept.append(element)
        if reasons:
            logger.debug("Filtered out %d of %d elements: %s", sum(reasons.values()), len(elements), dict(reasons))
        return FilteringResult(
            elements=kept,
            total=len(elements),
            included=len(kept),
            excluded=len(elements) - len(kept),
            exclusion_reasons=dict(reasons),
        )

    def exclusion_reason(self, element: PageElement) -> Optional[str]:
        """Return why an element is excluded, or None to keep it."""
        cfg = self.config
        if cfg.include_types and element.type not in cfg.include_types:
            return f"type_not_included: {element.type.value}"
        if element.type in cfg.exclude_types:
            return f"type_excluded: {element.type.value}"

        if cfg.include_selectors and not any(matches_selector(element, s) for s in cfg.include_selectors):
            return "no_matching_include_selector"
        if any(matches_selector(element, s) for s in cfg.exclude_selectors):
            return "matches_exclude_selector"

        if cfg.include_attributes and not any(matches_attribute(element, f) for f in cfg.include_attributes):
            return "no_matching_include_attributes"
        if any(matches_attribute(element, f) for f in cfg.exclude_attributes):
            return "matches_exclude_attributes"

        text = element.text or ""
        if self._include_text and not any(p.search(text) for p in self._include_text):
            return "no_matching_include_text_pattern"
        if any(p.search(text) for p in self._exclude_text):
            return "matches_exclude_text_pattern"

        if not cfg.include_hidden and not element.is_visible:
            return "hidden"

        box = element.bounding_box
        if box and (box.width < cfg.min_width or box.height < cfg.min_height):
            return f"insufficient_size: {box.width:g}x{box.height:g}"

        if not cfg.include_disabled and not element.is_enabled:
            return "element_disabled"

        # Elements synthesized from test selectors carry no layout
        live = element.discovery_source == DiscoverySource.RUNTIME_DISCOVERY
        if not cfg.include_outside_viewport and live and not self._in_viewport(element):
            return "outside_viewport"
        return None

    def _in_viewport(self, element: PageElement) -> bool:
        box = element.bounding_box
        if box is None:
            return False
        return (
            box.x >= 0 and box.y >= 0
            and box.x + box.width <= self.config.viewport_width
            and box.y + box.height <= self.config.viewport_height
        )

    def validate(self) -> list[str]:
        """Return configuration problems; an empty list means the filter is usable."""
        cfg = self.config
        errors = []
        conflicting = [t.value for t in cfg.include_types if t in cfg.exclude_types]
        if conflicting:
            errors.append(f"Conflicting element types: {', '.join(conflicting)}")
        if not cfg.include_types:
            errors.append("No element types included; every element will be excluded")
        if cfg.viewport_width <= 0 or cfg.viewport_height <= 0:
            errors.append("viewport dimensions must be positive")
        return errors


def matches_selector(element: PageElement, selector: str) -> bool:
    """Approximate CSS matching against the element's recorded metadata."""
    selector = selector.strip()
    if selector.startswith("#"):
        return element.id == selector[1:]
    if selector.startswith("."):
        classes = (element.class_name or "").split()
        return selector[1:] in classes
    m = _ATTR_SELECTOR.match(selector)
    if m:
        name, op, value = m.group(1), m.group(2), m.group(3)
        actual = _attribute_value(element, name)
        if actual is None:
            return False
        if op is None:
            return True
        if op == "=":
            return actual == value
        if op == "*=":
            return value in actual
        if op == "^=":
            return actual.startswith(value)
        if op == "$=":
            return actual.endswith(value)
        if op == "~=":
            return value in actual.split()
        return actual == value or actual.startswith(value + "-")
    if element.tag_name and element.tag_name == selector.lower():
        return True
    return selector in element.selector


def _attribute_value(element: PageElement, name: str) -> Optional[str]:
    if name in element.attributes:
        return element.attributes[name]
    if name == "id":
        return element.id
    if name == "class":
        return element.class_name
    if name == "role":
        return element.role
    return None


def matches_attribute(element: PageElement, attr: AttributeFilter) -> bool:
    value = _attribute_value(element, attr.name)
    if attr.exists is not None:
        return (value is not None) == attr.exists
    if value is None:
        return False
    if attr.value is not None:
        return value == attr.value
    if attr.pattern is not None:
        return re.search(attr.pattern, value) is not None
    return True
