"""Pytest configuration and shared fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
from playwright.async_api import Page

from elcov.analyzer.normalizer import normalize
from elcov.analyzer.static_analyzer import StaticAnalyzer
from elcov.coverage.aggregator import CoverageAggregator
from elcov.diagnostics import DiagnosticsLog
from elcov.models.config import CoverageConfig
from elcov.models.element import DiscoverySource, ElementType, PageElement
from elcov.models.selector import SelectorDialect, TestSelector


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def coverage_config(tmp_path: Path) -> CoverageConfig:
    """Create a test coverage configuration rooted in a temp directory."""
    return CoverageConfig(
        include=[str(tmp_path / "tests" / "**" / "*.spec.ts")],
        threshold=80,
        report_formats=["json"],
        output_dir=str(tmp_path / "coverage-report"),
        max_recommendations=10,
    )


@pytest.fixture
def temp_config_file(coverage_config: CoverageConfig, tmp_path: Path) -> Path:
    """Create a temporary config file."""
    config_file = tmp_path / "elcov-config.json"
    coverage_config.save(config_file)
    return config_file


# ============================================================================
# Component Fixtures
# ============================================================================


@pytest.fixture
def diagnostics() -> DiagnosticsLog:
    return DiagnosticsLog(capacity=10)


@pytest.fixture
def analyzer(diagnostics: DiagnosticsLog) -> StaticAnalyzer:
    return StaticAnalyzer(diagnostics=diagnostics)


@pytest.fixture
def aggregator(diagnostics: DiagnosticsLog) -> CoverageAggregator:
    return CoverageAggregator(diagnostics=diagnostics)


# ============================================================================
# Test Source Fixtures
# ============================================================================


LOGIN_SPEC = """import { test, expect } from '@playwright/test';

test('user can log in', async ({ page }) => {
  await page.goto('https://example.com/login');
  await page.fill('input[name="email"]', 'x');
  await page.fill('#password', 'secret');
  await page.getByRole('button', { name: 'Sign in' }).click();
  await expect(page.getByText('Welcome back')).toBeVisible();
});
"""

CHECKOUT_SPEC = """import { test } from '@playwright/test';

test('checkout', async ({ page }) => {
  await page.click('[data-testid="add-to-cart"]');
  await page.locator('.cart-summary').click();
  await page.getByLabel('Card number').fill('4242');
});
"""


@pytest.fixture
def spec_dir(tmp_path: Path) -> Path:
    """A directory of Playwright spec files."""
    tests_dir = tmp_path / "tests"
    tests_dir.mkdir()
    (tests_dir / "login.spec.ts").write_text(LOGIN_SPEC)
    (tests_dir / "checkout.spec.ts").write_text(CHECKOUT_SPEC)
    (tests_dir / "helpers.ts").write_text("export const sel = '#not-a-test';\n")
    return tests_dir


# ============================================================================
# Element Fixtures
# ============================================================================


def make_element(selector: str, **kwargs) -> PageElement:
    """Create a runtime-discovered element with sensible visible/enabled defaults."""
    defaults = dict(
        is_visible=True,
        is_enabled=True,
        discovery_source=DiscoverySource.RUNTIME_DISCOVERY,
        discovery_context="https://example.com/login",
    )
    defaults.update(kwargs)
    return PageElement(selector=selector, **defaults)


def make_selector(raw: str, normalized: str | None = None, dialect=SelectorDialect.CSS, **kwargs) -> TestSelector:
    return TestSelector(
        raw=raw,
        normalized=normalized if normalized is not None else normalize(raw, dialect),
        dialect=dialect,
        **kwargs,
    )


@pytest.fixture
def submit_button() -> PageElement:
    return make_element(
        "#submit", type=ElementType.BUTTON, id="submit", text="Submit", tag_name="button",
    )


@pytest.fixture
def login_descriptors() -> list[dict]:
    """Raw descriptors shaped like the live page inspector's output."""
    return [
        {
            "tagName": "button", "selector": "#submit", "text": "Sign in", "id": "submit",
            "isVisible": True, "isEnabled": True,
            "boundingBox": {"x": 10, "y": 10, "width": 80, "height": 30},
        },
        {
            "tagName": "input", "selector": 'input[name="email"]', "inputType": "email",
            "isVisible": True, "isEnabled": True,
            "boundingBox": {"x": 10, "y": 50, "width": 200, "height": 30},
            "attributes": {"name": "email", "type": "email"},
        },
        {
            "tagName": "a", "selector": "a.forgot", "text": "Forgot password?", "className": "forgot",
            "isVisible": True, "isEnabled": True,
            "boundingBox": {"x": 10, "y": 90, "width": 120, "height": 20},
        },
        {
            "tagName": "button", "selector": "#hidden-help", "text": "Help",
            "isVisible": False, "isEnabled": True,
        },
    ]


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_anthropic_client() -> Mock:
    """Create a mock Anthropic client."""
    mock_client = Mock()
    mock_response = Mock()
    mock_response.content = [Mock(text="Coverage is healthy.")]
    mock_response.stop_reason = "end_turn"
    mock_client.messages.create.return_value = mock_response
    return mock_client


@pytest.fixture
def mock_page() -> AsyncMock:
    """Create a mock Playwright page."""
    page = AsyncMock(spec=Page)
    page.url = "https://example.com/login"
    page.evaluate = AsyncMock(return_value=[])
    return page


@pytest.fixture
def element_factory():
    """Fixture that provides the make_element function."""
    return make_element


@pytest.fixture
def selector_factory():
    """Fixture that provides the make_selector function."""
    return make_selector


@pytest.fixture
def login_spec_source() -> str:
    return LOGIN_SPEC


@pytest.fixture
def checkout_spec_source() -> str:
    return CHECKOUT_SPEC
