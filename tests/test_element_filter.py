"""Tests for element filtering."""

import pytest

from elcov.coverage.element_filter import PRESETS, ElementFilter, matches_attribute, matches_selector
from elcov.models.config import AttributeFilter, ElementFilterConfig
from elcov.models.element import BoundingBox, ElementType


def _box(x=10, y=10, width=100, height=30) -> BoundingBox:
    return BoundingBox(x=x, y=y, width=width, height=height)


# ============================================================================
# Defaults and presets
# ============================================================================


class TestDefaultFilter:

    def test_keeps_visible(self, element_factory):
        result = ElementFilter().filter_elements([element_factory("#a"), element_factory("#b")])
        assert (result.total, result.included, result.excluded) == (2, 2, 0)

    def test_excludes_hidden(self, element_factory):
        result = ElementFilter().filter_elements([
            element_factory("#a"),
            element_factory("#b", is_visible=False),
        ])

        assert [e.selector for e in result.elements] == ["#a"]
        assert result.exclusion_reasons == {"hidden": 1}

    def test_include_hidden(self, element_factory):
        f = ElementFilter(ElementFilterConfig(include_hidden=True))
        assert f.exclusion_reason(element_factory("#b", is_visible=False)) is None

    def test_disabled_kept_by_default(self, element_factory):
        assert ElementFilter().exclusion_reason(element_factory("#b", is_enabled=False)) is None

    def test_reasons_counted(self, element_factory):
        result = ElementFilter().filter_elements([
            element_factory(f"#h{i}", is_visible=False) for i in range(3)
        ])
        assert result.exclusion_reasons == {"hidden": 3}
        assert result.excluded == 3


class TestPresets:

    @pytest.mark.parametrize("preset", sorted(PRESETS))
    def test_presets_are_valid(self, preset):
        f = ElementFilter.from_preset(preset)
        assert f.config.preset == preset
        assert f.validate() == []

    def test_minimal_type_and_size(self, element_factory):
        f = ElementFilter.from_preset("minimal")

        checkbox = element_factory("#c", type=ElementType.CHECKBOX, bounding_box=_box())
        tiny = element_factory("#t", type=ElementType.BUTTON, bounding_box=_box(width=5, height=5))
        ok = element_factory("#ok", type=ElementType.BUTTON, bounding_box=_box())

        assert f.exclusion_reason(checkbox) == "type_not_included: checkbox"
        assert f.exclusion_reason(tiny) == "insufficient_size: 5x5"
        assert f.exclusion_reason(ok) is None

    def test_essential_disabled_and_viewport(self, element_factory):
        f = ElementFilter.from_preset("essential")

        disabled = element_factory("#d", type=ElementType.BUTTON, is_enabled=False, bounding_box=_box())
        offscreen = element_factory("#o", type=ElementType.BUTTON, bounding_box=_box(x=1900))
        unknown_box = element_factory("#u", type=ElementType.BUTTON)

        assert f.exclusion_reason(disabled) == "element_disabled"
        assert f.exclusion_reason(offscreen) == "outside_viewport"
        assert f.exclusion_reason(unknown_box) == "outside_viewport"

    def test_forms_include_selectors(self, element_factory):
        f = ElementFilter.from_preset("forms")

        in_form = element_factory("form#login input", type=ElementType.INPUT, bounding_box=_box())
        form_id = element_factory("#email", id="signup-form-email", type=ElementType.INPUT, bounding_box=_box())
        loose = element_factory("#search", id="search", type=ElementType.INPUT, bounding_box=_box())

        assert f.exclusion_reason(in_form) is None
        assert f.exclusion_reason(form_id) is None
        assert f.exclusion_reason(loose) == "no_matching_include_selector"

    def test_navigation(self, element_factory):
        f = ElementFilter.from_preset("navigation")

        nav_link = element_factory("nav a.home", type=ElementType.LINK)
        menu = element_factory("#m", type=ElementType.BUTTON, attributes={"aria-label": "Open menu"})
        body_link = element_factory("a.more", type=ElementType.LINK)

        assert f.exclusion_reason(nav_link) is None
        assert f.exclusion_reason(menu) is None
        assert f.exclusion_reason(body_link) == "no_matching_include_selector"


# ============================================================================
# Rules
# ============================================================================


class TestRules:

    def test_exclude_types(self, element_factory):
        f = ElementFilter(ElementFilterConfig(exclude_types=[ElementType.LINK]))
        assert f.exclusion_reason(element_factory("a.x", type=ElementType.LINK)) == "type_excluded: link"

    def test_exclude_selectors(self, element_factory):
        f = ElementFilter(ElementFilterConfig(exclude_selectors=[".test-only", "#debug"]))

        assert f.exclusion_reason(element_factory(".x", class_name="card test-only")) == "matches_exclude_selector"
        assert f.exclusion_reason(element_factory("#debug", id="debug")) == "matches_exclude_selector"
        assert f.exclusion_reason(element_factory("#prod", id="prod")) is None

    def test_attribute_rules(self, element_factory):
        f = ElementFilter(ElementFilterConfig(
            include_attributes=[AttributeFilter(name="data-testid", exists=True)],
            exclude_attributes=[AttributeFilter(name="data-testid", pattern="^debug-")],
        ))

        assert f.exclusion_reason(element_factory("#a")) == "no_matching_include_attributes"
        assert f.exclusion_reason(
            element_factory("#b", attributes={"data-testid": "debug-panel"})
        ) == "matches_exclude_attributes"
        assert f.exclusion_reason(element_factory("#c", attributes={"data-testid": "save"})) is None

    def test_text_patterns(self, element_factory):
        f = ElementFilter(ElementFilterConfig(
            include_text_patterns=["(?i)save|submit"],
            exclude_text_patterns=["draft"],
        ))

        assert f.exclusion_reason(element_factory("#a", text="Cancel")) == "no_matching_include_text_pattern"
        assert f.exclusion_reason(element_factory("#b", text="Save draft")) == "matches_exclude_text_pattern"
        assert f.exclusion_reason(element_factory("#c", text="Submit")) is None

    def test_type_checked_before_visibility(self, element_factory):
        f = ElementFilter(ElementFilterConfig(include_types=[ElementType.BUTTON]))
        element = element_factory("a.x", type=ElementType.LINK, is_visible=False)
        assert f.exclusion_reason(element) == "type_not_included: link"


class TestFromConfig:

    def test_preset_with_overrides(self, element_factory):
        f = ElementFilter.from_config(ElementFilterConfig(preset="minimal", min_width=0, min_height=0))

        assert f.config.include_types == PRESETS["minimal"]["include_types"]
        assert f.config.min_width == 0
        tiny = element_factory("#t", type=ElementType.BUTTON, bounding_box=_box(width=2, height=2))
        assert f.exclusion_reason(tiny) is None

    def test_extra_excludes_appended(self):
        f = ElementFilter.from_config(
            ElementFilterConfig(exclude_selectors=[".a"]), extra_excludes=[".b", ".a"],
        )
        assert f.config.exclude_selectors == [".a", ".b"]

    def test_without_preset(self):
        f = ElementFilter.from_config(ElementFilterConfig(include_hidden=True))
        assert f.config.include_hidden is True
        assert f.config.include_types == list(ElementType)


class TestValidate:

    def test_conflicting_types(self):
        f = ElementFilter(ElementFilterConfig(
            include_types=[ElementType.BUTTON, ElementType.LINK], exclude_types=[ElementType.LINK],
        ))
        assert f.validate() == ["Conflicting element types: link"]

    def test_no_types(self):
        assert "No element types included" in ElementFilter(ElementFilterConfig(include_types=[])).validate()[0]

    def test_viewport(self):
        errors = ElementFilter(ElementFilterConfig(viewport_width=0)).validate()
        assert errors == ["viewport dimensions must be positive"]


# ============================================================================
# Selector and attribute matching
# ============================================================================


class TestMatchesSelector:

    @pytest.fixture
    def element(self, element_factory):
        return element_factory(
            "nav > a.home",
            id="home-link",
            class_name="home primary",
            tag_name="a",
            role="link",
            attributes={"href": "/home", "lang": "en-US", "rel": "nofollow noopener"},
        )

    @pytest.mark.parametrize("selector,expected", [
        ("#home-link", True),
        ("#home", False),
        (".primary", True),
        (".prim", False),
        ("[href]", True),
        ("[title]", False),
        ('[href="/home"]', True),
        ("[href^='/h']", True),
        ('[href$="me"]', True),
        ('[href*="om"]', True),
        ('[rel~="noopener"]', True),
        ('[rel~="noop"]', False),
        ('[lang|="en"]', True),
        ('[id*="home"]', True),
        ('[role="link"]', True),
        ("a", True),
        ("nav", True),
        ("footer", False),
    ])
    def test_matches(self, element, selector, expected):
        assert matches_selector(element, selector) is expected


class TestMatchesAttribute:

    def test_exists(self, element_factory):
        element = element_factory("#a", attributes={"data-testid": "x"})
        assert matches_attribute(element, AttributeFilter(name="data-testid", exists=True))
        assert not matches_attribute(element, AttributeFilter(name="data-testid", exists=False))
        assert matches_attribute(element, AttributeFilter(name="aria-label", exists=False))

    def test_value_and_pattern(self, element_factory):
        element = element_factory("#a", attributes={"data-testid": "save-btn"})
        assert matches_attribute(element, AttributeFilter(name="data-testid", value="save-btn"))
        assert not matches_attribute(element, AttributeFilter(name="data-testid", value="save"))
        assert matches_attribute(element, AttributeFilter(name="data-testid", pattern="^save"))

    def test_missing(self, element_factory):
        assert not matches_attribute(element_factory("#a"), AttributeFilter(name="data-testid"))
