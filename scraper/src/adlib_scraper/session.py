"""One Chromium browser, context and page owned by a single crawl run."""

from __future__ import annotations

from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from .debug import save_debug_screenshot
from .errors import ScraperError
from .logging import jlog
from .playwright import (
    CHROMIUM_LAUNCH_ARGS,
    IGNORE_DEFAULT_ARGS,
    STEALTH_INIT_SCRIPT,
    accept_cookie_banner,
    cleanup_playwright,
    page_has_library_content,
)
from .settings import CrawlSettings
from .snapshot import CARD_SNAPSHOT_JS, CardSnapshot

ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8"


class BrowserSession:
    """Async context manager around the Playwright handles of one run.

    ``async with BrowserSession(settings) as session:`` launches the browser and
    guarantees it is closed on every exit path.
    """

    def __init__(self, settings: CrawlSettings) -> None:
        self.settings = settings
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        s = self.settings
        try:
            self._playwright = await async_playwright().start()
            launch_kwargs: dict[str, Any] = {
                "headless": s.headless,
                "args": CHROMIUM_LAUNCH_ARGS,
                "ignore_default_args": IGNORE_DEFAULT_ARGS,
            }
            if s.executable_path:
                launch_kwargs["executable_path"] = s.executable_path
            self._browser = await self._playwright.chromium.launch(**launch_kwargs)
            self._context = await self._browser.new_context(
                user_agent=s.user_agent,
                viewport={"width": s.viewport_width, "height": s.viewport_height},
                locale="pt-BR",
                extra_http_headers={"Accept-Language": s.accept_language, "Accept": ACCEPT_HTML, "DNT": "1"},
            )
            await self._context.add_init_script(STEALTH_INIT_SCRIPT)
            self._context.set_default_timeout(s.page_timeout_ms)
            self._page = await self._context.new_page()
        except Exception:
            await self.close()
            raise
        jlog("info", event="browser_started", headless=s.headless, executable_path=s.executable_path)

    async def close(self) -> None:
        if self._playwright is None and self._browser is None:
            return
        await cleanup_playwright(self._context, self._browser, self._playwright)
        self._page = self._context = self._browser = self._playwright = None
        jlog("info", event="browser_closed")

    @property
    def page(self) -> Page:
        if self._page is None:
            raise ScraperError("browser session is not started")
        return self._page

    @property
    def user_agent(self) -> str:
        return self.settings.user_agent

    def current_url(self) -> str:
        return self.page.url

    async def navigate(self, url: str) -> int | None:
        """``goto`` until DOMContentLoaded; returns the HTTP status when known."""

        response = await self.page.goto(url, wait_until="domcontentloaded", timeout=self.settings.page_timeout_ms)
        return response.status if response is not None else None

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        if arg is None:
            return await self.page.evaluate(expression)
        return await self.page.evaluate(expression, arg)

    async def cookies(self) -> dict[str, str]:
        if self._context is None:
            return {}
        return {c["name"]: c["value"] for c in await self._context.cookies() if "name" in c and "value" in c}

    async def scroll_by_viewport(self, factor: float) -> None:
        await self.evaluate("(f) => window.scrollBy(0, window.innerHeight * f)", factor)

    async def dismiss_cookie_consent(self) -> bool:
        return await accept_cookie_banner(self.page)

    async def has_library_content(self, keyword: str) -> bool:
        return await page_has_library_content(self.page, keyword)

    async def snapshot_cards(self) -> list[CardSnapshot]:
        raw = await self.evaluate(CARD_SNAPSHOT_JS)
        return [CardSnapshot.from_dict(item) for item in raw or [] if isinstance(item, dict)]

    async def screenshot(self, name: str) -> str | None:
        """Diagnostic screenshot; a no-op unless debug mode is on."""

        if not self.settings.debug or self._page is None:
            return None
        return await save_debug_screenshot(self._page, name, self.settings.debug_dir)


__all__ = ["BrowserSession"]
