"""Tests for selector normalization and dialect classification."""

import pytest

from elcov.analyzer.classifier import CLASSIFICATION_RULES, classify_selector, determine_dialect
from elcov.analyzer.normalizer import extract_payload, normalize, strip_outer_quotes
from elcov.models.selector import SelectorDialect


SELECTOR_SAMPLES = [
    "#submit",
    "'#submit'",
    '"input[name=\\"email\\"]"',
    'input[name="email"]',
    "[ name = 'email' ]",
    '[aria-label="Close dialog"]',
    "button   .primary",
    'text="Sign in"',
    "text=Welcome ${user.name}",
    "'row-' + id + ' .cell'",
    'getByRole("button")',
    "//button[@id='go']",
    'div[data-x="1"',
    "text=👋 Hi",
    "`.item-${index}`",
    "'\"mixed\"'",
    "",
]


# ============================================================================
# normalize
# ============================================================================


class TestNormalize:
    """Tests for the normalization rules."""

    def test_strips_outer_quotes(self):
        assert normalize("'#submit'") == "#submit"
        assert normalize('"#submit"') == "#submit"
        assert normalize("`#submit`") == "#submit"

    def test_keeps_quotes_reused_inside(self):
        assert strip_outer_quotes("'a' + 'b'") == "'a' + 'b'"

    def test_collapses_whitespace(self):
        assert normalize("  button   .primary\t> span ") == "button .primary > span"

    def test_unquotes_plain_attribute_values(self):
        assert normalize('input[name="email"]') == "input[name=email]"
        assert normalize("input[type='email']") == "input[type=email]"
        assert normalize("[ name = 'email' ]") == "[name=email]"

    def test_keeps_quotes_for_values_with_spaces(self):
        assert normalize("[aria-label='Close dialog']") == '[aria-label="Close dialog"]'

    def test_equivalent_attribute_spellings_share_a_key(self):
        assert normalize('input[type="email"]') == normalize("input[type=email]")

    def test_attribute_operators_preserved(self):
        assert normalize('a[href^="/docs"]') == 'a[href^="/docs"]'
        assert normalize('[data-testid*="form"]') == "[data-testid*=form]"

    def test_id_and_class_untouched(self):
        assert normalize("#main-nav .menu-item") == "#main-nav .menu-item"

    def test_template_interpolation_replaced(self):
        assert normalize("#row-${id}") == "#row-..."

    def test_concatenation_replaced(self):
        assert normalize("'#row-' + rowId") == "#row-..."
        assert normalize("'.item-' + idx + ' .label'") == ".item-... .label"

    def test_text_payload_masked_only_for_text_dialect(self):
        assert normalize('text="Sign in"', SelectorDialect.TEXT) == 'text="..."'
        assert normalize(':text("Sign in")', SelectorDialect.TEXT) == ':text("...")'
        assert normalize('text="Sign in"') == 'text="Sign in"'

    def test_role_value_masked_for_role_dialect(self):
        assert normalize('role="button"', SelectorDialect.ROLE) == 'role="..."'
        assert normalize('getByRole("button")', SelectorDialect.ROLE) == 'getByRole("...")'

    def test_role_attribute_in_brackets_not_masked(self):
        assert normalize('[role="button"]', SelectorDialect.ROLE) == "[role=button]"

    def test_empty_input(self):
        assert normalize("") == ""
        assert normalize(None) == ""
        assert normalize("   ") == ""

    def test_unbalanced_brackets_pass_through(self):
        assert normalize('div[data-x="1"') == 'div[data-x="1"'

    def test_unicode_untouched(self):
        assert normalize("text=👋 Hi") == "text=👋 Hi"

    @pytest.mark.parametrize("raw", SELECTOR_SAMPLES)
    @pytest.mark.parametrize("dialect", [None, SelectorDialect.TEXT, SelectorDialect.ROLE])
    def test_idempotent(self, raw, dialect):
        once = normalize(raw, dialect)
        assert normalize(once, dialect) == once

    def test_deterministic(self):
        results = {normalize('"input[name=\'q\']"') for _ in range(5)}
        assert results == {"input[name=q]"}


class TestInterpolationStability:
    """Runtime values must not fragment selector identity."""

    def test_interpolation_becomes_ellipsis(self):
        assert normalize("text=Welcome ${name}", SelectorDialect.TEXT) == "text=Welcome ..."

    def test_same_key_for_any_substituted_expression(self):
        keys = {
            normalize("text=Welcome ${name}", SelectorDialect.TEXT),
            normalize("text=Welcome ${user.firstName}", SelectorDialect.TEXT),
            normalize("'text=Welcome ' + name", SelectorDialect.TEXT),
        }
        assert keys == {"text=Welcome ..."}


# ============================================================================
# extract_payload
# ============================================================================


class TestExtractPayload:
    """Tests for pulling the meaningful value out of a selector."""

    def test_text_engine(self):
        assert extract_payload('text="Sign in"', SelectorDialect.TEXT) == "Sign in"
        assert extract_payload("text=Sign in", SelectorDialect.TEXT) == "Sign in"

    def test_has_text_pseudo(self):
        assert extract_payload('button:has-text("Save")', SelectorDialect.TEXT) == "Save"

    def test_plain_text(self):
        assert extract_payload("Welcome back", SelectorDialect.TEXT) == "Welcome back"

    def test_role(self):
        assert extract_payload("role=button[name='Go']", SelectorDialect.ROLE) == "button"
        assert extract_payload('[role="tab"]', SelectorDialect.ROLE) == "tab"
        assert extract_payload("button", SelectorDialect.ROLE) == "button"

    def test_attribute_dialects(self):
        assert extract_payload('[data-testid="save"]', SelectorDialect.TEST_ID) == "save"
        assert extract_payload('input[placeholder="Search"]', SelectorDialect.PLACEHOLDER) == "Search"
        assert extract_payload('img[alt="Logo"]', SelectorDialect.ALT_TEXT) == "Logo"
        assert extract_payload('[aria-label="Email"]', SelectorDialect.LABEL) == "Email"

    def test_bare_value_returned(self):
        assert extract_payload("'save'", SelectorDialect.TEST_ID) == "save"

    def test_empty(self):
        assert extract_payload("", SelectorDialect.TEXT) == ""


# ============================================================================
# determine_dialect
# ============================================================================


class TestDetermineDialect:
    """Tests for the classification cascade."""

    def test_rules_are_ordered(self):
        assert [name for name, _ in CLASSIFICATION_RULES] == [
            "xpath_prefix", "accessor", "payload_attribute", "pattern_family",
        ]

    @pytest.mark.parametrize("payload", ["//button", "/html/body", "(//a)[2]", "xpath=//div"])
    def test_xpath_prefix(self, payload):
        assert determine_dialect(payload) == SelectorDialect.XPATH

    def test_xpath_wins_over_accessor(self):
        assert determine_dialect("//input", accessor="Label") == SelectorDialect.XPATH

    @pytest.mark.parametrize("accessor,expected", [
        ("Role", SelectorDialect.ROLE),
        ("Text", SelectorDialect.TEXT),
        ("Label", SelectorDialect.LABEL),
        ("Placeholder", SelectorDialect.PLACEHOLDER),
        ("AltText", SelectorDialect.ALT_TEXT),
        ("alt_text", SelectorDialect.ALT_TEXT),
        ("Title", SelectorDialect.ALT_TEXT),
        ("TestId", SelectorDialect.TEST_ID),
        ("test_id", SelectorDialect.TEST_ID),
    ])
    def test_accessor_hint(self, accessor, expected):
        assert determine_dialect("Submit", accessor=accessor) == expected

    def test_accessor_wins_over_payload_hint(self):
        assert determine_dialect("text=foo", accessor="Label") == SelectorDialect.LABEL

    @pytest.mark.parametrize("payload,expected", [
        ('[data-testid="x"]', SelectorDialect.TEST_ID),
        ('[data-test="x"]', SelectorDialect.TEST_ID),
        ('button:has-text("Save")', SelectorDialect.TEXT),
        ("text=Save", SelectorDialect.TEXT),
        ("[role=button]", SelectorDialect.ROLE),
        ('[aria-label="Close"]', SelectorDialect.LABEL),
        ('input[placeholder="Search"]', SelectorDialect.PLACEHOLDER),
        ('img[alt="Logo"]', SelectorDialect.ALT_TEXT),
    ])
    def test_payload_attribute_hint(self, payload, expected):
        assert determine_dialect(payload) == expected

    def test_attribute_hint_beats_generic_family(self):
        assert determine_dialect('[data-testid="x"]', pattern_name="css_literal") == SelectorDialect.TEST_ID

    def test_family_hint(self):
        assert determine_dialect(
            "Submit", pattern_name="cypress_contains", family_hint=SelectorDialect.TEXT,
        ) == SelectorDialect.TEXT

    def test_family_name_tokens(self):
        assert determine_dialect("Submit", pattern_name="filter_has_text") == SelectorDialect.TEXT
        assert determine_dialect("Submit", pattern_name="locator_call") == SelectorDialect.CSS

    def test_defaults_to_css(self):
        assert determine_dialect(".btn-primary") == SelectorDialect.CSS
        assert classify_selector("#submit") == SelectorDialect.CSS
