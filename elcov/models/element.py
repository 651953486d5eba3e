"""Page element data structures shared by static and live discovery."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from elcov.models.selector import SelectorDialect


class ElementType(str, Enum):
    BUTTON = "button"
    INPUT = "input"
    LINK = "link"
    SELECT = "select"
    TEXTAREA = "textarea"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    INTERACTIVE_ELEMENT = "interactive-element"
    CLICKABLE_ELEMENT = "clickable-element"


FORM_CONTROL_TYPES = frozenset({
    ElementType.INPUT,
    ElementType.SELECT,
    ElementType.TEXTAREA,
    ElementType.CHECKBOX,
    ElementType.RADIO,
})


class DiscoverySource(str, Enum):
    STATIC_ANALYSIS = "static-analysis"
    TEST_EXECUTION = "test-execution"
    RUNTIME_DISCOVERY = "runtime-discovery"


class BoundingBox(BaseModel):
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


class PageElement(BaseModel):
    selector: str
    type: ElementType = ElementType.INTERACTIVE_ELEMENT
    text: Optional[str] = None
    id: Optional[str] = None
    class_name: Optional[str] = None
    role: Optional[str] = None
    accessible_name: Optional[str] = None
    tag_name: Optional[str] = None
    attributes: dict[str, str] = Field(default_factory=dict)
    dialect: Optional[SelectorDialect] = None  # set when synthesized from a test selector
    is_visible: bool = False
    is_enabled: bool = False
    bounding_box: Optional[BoundingBox] = None
    discovery_source: DiscoverySource = DiscoverySource.RUNTIME_DISCOVERY
    discovery_context: str = ""
    page_url: Optional[str] = None
