"""Playwright helpers for driving the Ad Library page."""

from __future__ import annotations

from playwright.async_api import Page

from .extractors.locale import LIBRARY_MARKERS, flatten
from .logging import jlog

CHROMIUM_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
    "--disable-features=IsolateOrigins,site-per-process",
    "--disable-infobars",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
    "--window-size=1920,1080",
]

# Chromium flags Playwright adds by default that advertise automation.
IGNORE_DEFAULT_ARGS = ["--enable-automation"]

STEALTH_INIT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => false });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
Object.defineProperty(navigator, 'languages', { get: () => ['pt-BR', 'pt', 'en-US', 'en'] });
window.chrome = window.chrome || { runtime: {} };
"""

COOKIE_BUTTON_SELECTORS = [
    'button[data-cookiebanner="accept_button"]',
    'button[title*="Permitir"]',
    'button[title*="Allow"]',
    'button[title*="Aceitar"]',
]


async def accept_cookie_banner(page: Page) -> bool:
    """Click the first visible consent button; True when one was clicked."""

    try:
        return bool(
            await page.evaluate(
                """
                (selectors) => {
                    for (const selector of selectors) {
                        const button = document.querySelector(selector);
                        if (button) {
                            button.click();
                            return true;
                        }
                    }
                    return false;
                }
                """,
                COOKIE_BUTTON_SELECTORS,
            )
        )
    except Exception as exc:
        jlog("debug", event="cookie_banner_error", error=str(exc))
        return False


async def page_has_library_content(page: Page, keyword: str) -> bool:
    """True once the results feed shows the keyword, library chrome or cards."""

    try:
        return bool(
            await page.evaluate(
                """
                ([keyword, markers]) => {
                    if (document.querySelector('[role="article"]')) return true;
                    const text = (document.body && document.body.innerText || '').toLowerCase();
                    if (keyword && text.includes(keyword.toLowerCase())) return true;
                    return markers.some(m => text.includes(m.toLowerCase()));
                }
                """,
                [keyword, list(flatten(LIBRARY_MARKERS))],
            )
        )
    except Exception as exc:
        jlog("debug", event="readiness_probe_error", error=str(exc))
        return False


async def cleanup_playwright(context, browser, playwright) -> None:
    """Close context, browser and driver, ignoring errors from already-dead handles."""

    for name, closer in (
        ("context", context.close if context else None),
        ("browser", browser.close if browser else None),
        ("playwright", playwright.stop if playwright else None),
    ):
        if closer is None:
            continue
        try:
            await closer()
        except Exception as exc:
            jlog("warning", event="browser_cleanup_error", handle=name, error=str(exc))


__all__ = [
    "CHROMIUM_LAUNCH_ARGS",
    "COOKIE_BUTTON_SELECTORS",
    "IGNORE_DEFAULT_ARGS",
    "STEALTH_INIT_SCRIPT",
    "accept_cookie_banner",
    "cleanup_playwright",
    "page_has_library_content",
]
