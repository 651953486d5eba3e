"""Enumerate interactive elements on live pages with Playwright."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from playwright.async_api import Page, async_playwright

logger = logging.getLogger(__name__)

_EXTRACT_JS = """() => {
    const interactiveTags = new Set(['a', 'button', 'input', 'select', 'textarea', 'summary']);
    const interactiveRoles = new Set([
        'button', 'link', 'textbox', 'searchbox', 'checkbox', 'radio', 'switch',
        'combobox', 'listbox', 'menuitem', 'tab', 'slider'
    ]);

    function getSelector(el) {
        if (el.dataset && el.dataset.testid) return `[data-testid="${el.dataset.testid}"]`;
        if (el.id) return `#${CSS.escape(el.id)}`;
        const tag = el.tagName.toLowerCase();
        if (el.name && ['input', 'select', 'textarea'].includes(tag)) {
            return `${tag}[name="${el.name}"]`;
        }
        if (el.getAttribute('aria-label')) {
            return `[aria-label="${el.getAttribute('aria-label')}"]`;
        }
        let sel = tag;
        if (el.className && typeof el.className === 'string') {
            const cls = el.className.trim().split(/\\s+/).slice(0, 2).join('.');
            if (cls) sel += '.' + cls;
        }
        return sel;
    }

    const results = [];
    for (const el of document.querySelectorAll('*')) {
        const tag = el.tagName.toLowerCase();
        const role = el.getAttribute('role') || '';
        const clickable = !!(el.onclick || el.getAttribute('onclick'));
        const isInteractive = interactiveTags.has(tag) ||
            interactiveRoles.has(role) ||
            clickable ||
            el.getAttribute('tabindex') === '0';
        if (!isInteractive) continue;

        const attrs = {};
        for (const attr of el.attributes) {
            if (['class', 'style'].includes(attr.name)) continue;
            attrs[attr.name] = attr.value;
        }
        const rect = el.getBoundingClientRect();
        const style = window.getComputedStyle(el);

        results.push({
            tagName: tag,
            selector: getSelector(el),
            text: (el.textContent || '').trim().substring(0, 100),
            id: el.id || null,
            className: typeof el.className === 'string' ? el.className : null,
            role: role || null,
            accessibleName: el.getAttribute('aria-label') || null,
            inputType: tag === 'input' ? (el.type || 'text') : null,
            clickable: clickable,
            isVisible: rect.width > 0 && rect.height > 0 &&
                style.visibility !== 'hidden' && style.display !== 'none',
            isEnabled: !el.disabled && el.getAttribute('aria-disabled') !== 'true',
            boundingBox: {x: rect.x, y: rect.y, width: rect.width, height: rect.height},
            attributes: attrs,
        });
    }
    return results;
}"""


async def inspect_page(page: Page) -> list[dict]:
    """Return raw descriptors for every interactive element on the page."""
    try:
        descriptors = await page.evaluate(_EXTRACT_JS)
    except Exception as e:
        logger.error("Element inspection failed: %s", e)
        return []
    logger.debug("Inspected %d interactive elements on %s", len(descriptors), page.url)
    return descriptors


async def discover_page_elements(
    urls: Sequence[str],
    headless: bool = True,
    timeout_ms: int = 30000,
) -> dict[str, list[dict]]:
    """Visit each URL in one browser and collect descriptors per page."""
    snapshots: dict[str, list[dict]] = {}
    async with async_playwright() as pw:
        browser = await pw.chromium.launch(headless=headless)
        try:
            context = await browser.new_context(viewport={"width": 1920, "height": 1080})
            page = await context.new_page()
            for url in urls:
                try:
                    await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
                except Exception as e:
                    logger.warning("Failed to load %s: %s", url, e)
                    continue
                snapshots[url] = await inspect_page(page)
                logger.info("Discovered %d elements on %s", len(snapshots[url]), url)
        finally:
            await browser.close()
    return snapshots


def snapshot_urls(urls: Sequence[str], headless: bool = True) -> dict[str, list[dict]]:
    """Synchronous wrapper for CLI use."""
    return asyncio.run(discover_page_elements(urls, headless=headless))
