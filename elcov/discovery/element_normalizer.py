"""Turns loosely-typed element descriptors into PageElement records."""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional

from elcov.analyzer.normalizer import extract_payload
from elcov.models.element import BoundingBox, DiscoverySource, ElementType, PageElement
from elcov.models.selector import SEMANTIC_DIALECTS, SelectorDialect, TestSelector

logger = logging.getLogger(__name__)

_ID_TOKEN = re.compile(r"#([A-Za-z_][\w-]*)")
_CLASS_TOKEN = re.compile(r"\.([A-Za-z_-][\w-]*)")
# Attribute blocks and quoted strings may contain '#' or '.' that are not id/class syntax
_OPAQUE = re.compile(r"""\[[^\]]*\]|"[^"]*"|'[^']*'|\([^)]*\)""")
_LEADING_TAG = re.compile(r"^([a-z][a-z0-9-]*)", re.IGNORECASE)
_TYPE_ATTR = re.compile(r"""\btype\s*=\s*["']?([\w-]+)""")
_ROLE_ATTR = re.compile(r"""\brole\s*=\s*["']?([\w-]+)""")
_NAME_OPTION = re.compile(r"""\bname\s*[:=]\s*(['"`])(.*?)\1""")

_TAG_TYPES = {
    "a": ElementType.LINK,
    "button": ElementType.BUTTON,
    "select": ElementType.SELECT,
    "textarea": ElementType.TEXTAREA,
}

_INPUT_TYPES = {
    "checkbox": ElementType.CHECKBOX,
    "radio": ElementType.RADIO,
    "submit": ElementType.BUTTON,
    "button": ElementType.BUTTON,
    "reset": ElementType.BUTTON,
    "image": ElementType.BUTTON,
}

_ROLE_TYPES = {
    "button": ElementType.BUTTON,
    "link": ElementType.LINK,
    "textbox": ElementType.INPUT,
    "searchbox": ElementType.INPUT,
    "checkbox": ElementType.CHECKBOX,
    "switch": ElementType.CHECKBOX,
    "radio": ElementType.RADIO,
    "combobox": ElementType.SELECT,
    "listbox": ElementType.SELECT,
    "menuitem": ElementType.CLICKABLE_ELEMENT,
    "tab": ElementType.CLICKABLE_ELEMENT,
}

_ELEMENT_TYPE_VALUES = {t.value: t for t in ElementType}


def _pick(descriptor: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = descriptor.get(key)
        if value not in (None, ""):
            return value
    return None


def derive_id_and_class(selector: str) -> tuple[Optional[str], Optional[str]]:
    """First ``#token`` is the id hint, first ``.token`` the class hint."""
    bare = _OPAQUE.sub(" ", selector)
    id_match = _ID_TOKEN.search(bare)
    class_match = _CLASS_TOKEN.search(bare)
    return (
        id_match.group(1) if id_match else None,
        class_match.group(1) if class_match else None,
    )


def infer_element_type(
    tag: Optional[str] = None,
    input_type: Optional[str] = None,
    role: Optional[str] = None,
    clickable: bool = False,
) -> ElementType:
    tag = (tag or "").lower()
    if role and role.lower() in _ROLE_TYPES:
        return _ROLE_TYPES[role.lower()]
    if tag == "input":
        return _INPUT_TYPES.get((input_type or "text").lower(), ElementType.INPUT)
    if tag in _TAG_TYPES:
        return _TAG_TYPES[tag]
    if clickable:
        return ElementType.CLICKABLE_ELEMENT
    return ElementType.INTERACTIVE_ELEMENT


def type_from_selector(selector: str) -> ElementType:
    """Best guess at an element type from selector text alone."""
    tag_match = _LEADING_TAG.match(selector.strip())
    type_match = _TYPE_ATTR.search(selector)
    role_match = _ROLE_ATTR.search(selector)
    return infer_element_type(
        tag=tag_match.group(1) if tag_match else None,
        input_type=type_match.group(1) if type_match else None,
        role=role_match.group(1) if role_match else None,
    )


def implicit_role(element: PageElement) -> Optional[str]:
    if element.role:
        return element.role.lower()
    tag = (element.tag_name or "").lower()
    input_type = (element.attributes.get("type") or "text").lower()
    if tag == "a":
        return "link"
    if tag == "button":
        return "button"
    if tag == "select":
        return "combobox"
    if tag == "textarea":
        return "textbox"
    if tag == "input":
        if input_type in ("checkbox", "radio"):
            return input_type
        if input_type in ("submit", "button", "reset", "image"):
            return "button"
        return "textbox"
    return {
        ElementType.BUTTON: "button",
        ElementType.LINK: "link",
        ElementType.INPUT: "textbox",
        ElementType.TEXTAREA: "textbox",
        ElementType.CHECKBOX: "checkbox",
        ElementType.RADIO: "radio",
        ElementType.SELECT: "combobox",
    }.get(element.type)


def _bounding_box(raw: Any) -> Optional[BoundingBox]:
    if isinstance(raw, BoundingBox):
        return raw
    if not isinstance(raw, Mapping):
        return None
    try:
        return BoundingBox(**{k: float(raw.get(k) or 0) for k in ("x", "y", "width", "height")})
    except (TypeError, ValueError):
        return None


def normalize_element(
    descriptor: Any,
    source: DiscoverySource = DiscoverySource.RUNTIME_DISCOVERY,
    context: str = "",
    page_url: str | None = None,
) -> Optional[PageElement]:
    """Build a PageElement from a mapping or an existing PageElement.

    Returns None for descriptors without a selector; never raises.
    """
    if isinstance(descriptor, PageElement):
        return _complete(descriptor, source, context, page_url)
    if not isinstance(descriptor, Mapping):
        return None

    selector = _pick(descriptor, "selector")
    if not isinstance(selector, str) or not selector.strip():
        return None
    selector = selector.strip()

    attributes = descriptor.get("attributes") or {}
    if not isinstance(attributes, Mapping):
        attributes = {}
    attributes = {str(k): str(v) for k, v in attributes.items()}

    tag = _pick(descriptor, "tagName", "tag_name", "tag")
    role = _pick(descriptor, "role")
    input_type = _pick(descriptor, "inputType", "input_type") or attributes.get("type")

    raw_type = _pick(descriptor, "elementType", "element_type", "type")
    if isinstance(raw_type, ElementType):
        element_type = raw_type
    elif isinstance(raw_type, str) and raw_type in _ELEMENT_TYPE_VALUES:
        element_type = _ELEMENT_TYPE_VALUES[raw_type]
    elif tag or role:
        if isinstance(raw_type, str) and not input_type:
            input_type = raw_type
        element_type = infer_element_type(
            tag, input_type, role, clickable=bool(descriptor.get("clickable") or "onclick" in attributes),
        )
    else:
        element_type = type_from_selector(selector)

    derived_id, derived_class = derive_id_and_class(selector)
    text = _pick(descriptor, "text", "textContent", "text_content")
    return PageElement(
        selector=selector,
        type=element_type,
        text=str(text).strip() if text is not None else None,
        id=_pick(descriptor, "id") or derived_id,
        class_name=_pick(descriptor, "className", "class_name", "class") or derived_class,
        role=role,
        accessible_name=_pick(descriptor, "accessibleName", "accessible_name", "ariaLabel"),
        tag_name=tag.lower() if isinstance(tag, str) else None,
        attributes=attributes,
        is_visible=bool(_pick(descriptor, "isVisible", "is_visible")),
        is_enabled=bool(_pick(descriptor, "isEnabled", "is_enabled")),
        bounding_box=_bounding_box(_pick(descriptor, "boundingBox", "bounding_box")),
        discovery_source=source,
        discovery_context=_pick(descriptor, "discoveryContext", "discovery_context") or context,
        page_url=_pick(descriptor, "pageUrl", "page_url") or page_url,
    )


def _complete(element: PageElement, source, context, page_url) -> Optional[PageElement]:
    if not element.selector.strip():
        return None
    updates: dict[str, Any] = {}
    if "discovery_source" not in element.model_fields_set:
        updates["discovery_source"] = source
    if not element.discovery_context and context:
        updates["discovery_context"] = context
    if not element.page_url and page_url:
        updates["page_url"] = page_url
    if element.dialect not in SEMANTIC_DIALECTS and element.dialect != SelectorDialect.XPATH:
        derived_id, derived_class = derive_id_and_class(element.selector)
        if not element.id and derived_id:
            updates["id"] = derived_id
        if not element.class_name and derived_class:
            updates["class_name"] = derived_class
    return element.model_copy(update=updates) if updates else element


def element_from_selector(
    selector: TestSelector,
    source: DiscoverySource,
    context: str = "",
) -> PageElement:
    """Synthesize the hypothetical element a test selector refers to."""
    dialect = selector.dialect
    payload = extract_payload(selector.raw, dialect)
    fields: dict[str, Any] = {}

    if dialect == SelectorDialect.TEXT:
        fields["text"] = payload
        element_type = ElementType.INTERACTIVE_ELEMENT
    elif dialect == SelectorDialect.ROLE:
        fields["role"] = payload.lower()
        element_type = _ROLE_TYPES.get(payload.lower(), ElementType.INTERACTIVE_ELEMENT)
        name = _NAME_OPTION.search(selector.context or "")
        if name:
            fields["text"] = name.group(2)
    elif dialect == SelectorDialect.LABEL:
        fields["accessible_name"] = payload
        element_type = ElementType.INPUT
    elif dialect == SelectorDialect.PLACEHOLDER:
        fields["attributes"] = {"placeholder": payload}
        element_type = ElementType.INPUT
    elif dialect == SelectorDialect.ALT_TEXT:
        fields["attributes"] = {"alt": payload}
        element_type = ElementType.INTERACTIVE_ELEMENT
    elif dialect == SelectorDialect.TEST_ID:
        fields["attributes"] = {"data-testid": payload}
        element_type = type_from_selector(selector.raw)
    elif dialect == SelectorDialect.XPATH:
        element_type = ElementType.INTERACTIVE_ELEMENT
    else:
        element_type = type_from_selector(selector.normalized)
        fields["id"], fields["class_name"] = derive_id_and_class(selector.normalized)

    return PageElement(
        selector=selector.normalized,
        type=element_type,
        dialect=dialect,
        is_visible=True,
        is_enabled=True,
        discovery_source=source,
        discovery_context=context or selector.file_path,
        **fields,
    )
