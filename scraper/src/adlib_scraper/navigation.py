"""Search-page navigation with retry, consent handling and readiness polling."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Union

from playwright.async_api import Error as PlaywrightError

from .errors import BlockedError, NavigationError
from .logging import jlog
from .models import CrawlQuery
from .settings import CrawlSettings
from .urls import build_search_url, is_blocked_url

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class Ready:
    url: str
    attempts: int


@dataclass(frozen=True, slots=True)
class Failed:
    reason: str
    blocked: bool
    attempts: int


NavigationOutcome = Union[Ready, Failed]


class NavigationController:
    def __init__(self, session, settings: CrawlSettings, sleep: Sleep = asyncio.sleep) -> None:
        self.session = session
        self.settings = settings
        self._sleep = sleep

    def _check_blocked(self) -> None:
        url = self.session.current_url()
        if is_blocked_url(url):
            raise BlockedError(url)

    async def _wait_ready(self, keyword: str) -> bool:
        s = self.settings
        for poll in range(1, s.readiness_polls + 1):
            await self._sleep(s.readiness_interval_ms / 1000)
            self._check_blocked()
            if await self.session.has_library_content(keyword):
                return True
            jlog("debug", event="nav_waiting", poll=poll, polls=s.readiness_polls)
        return False

    async def open(self, query: CrawlQuery) -> NavigationOutcome:
        """Load the search results for ``query``.

        Login/checkpoint redirects end the loop immediately; load errors and
        pages that never render results are retried with linear backoff.
        """

        s = self.settings
        url = build_search_url(query)
        last_error = "content_not_ready"

        for attempt in range(1, s.max_nav_attempts + 1):
            jlog("info", event="nav_attempt", attempt=attempt, max_attempts=s.max_nav_attempts, url=url)
            try:
                status = await self.session.navigate(url)
                await self._sleep(s.post_load_wait_ms / 1000)
                self._check_blocked()
                if await self.session.dismiss_cookie_consent():
                    jlog("info", event="cookie_banner_accepted")
                    await self._sleep(s.consent_wait_ms / 1000)
                if not await self._wait_ready(query.keyword):
                    raise NavigationError("content_not_ready")
                await self.session.screenshot(f"nav_ready_{attempt}")
                ready_url = self.session.current_url()
                jlog("info", event="nav_ready", attempt=attempt, status=status, url=ready_url)
                return Ready(url=ready_url, attempts=attempt)
            except BlockedError as exc:
                await self.session.screenshot(f"nav_blocked_{attempt}")
                jlog("error", event="nav_blocked", attempt=attempt, url=exc.url)
                return Failed(reason=str(exc), blocked=True, attempts=attempt)
            except NavigationError as exc:
                last_error = str(exc)
                jlog("warning", event="nav_not_ready", attempt=attempt)
            except (PlaywrightError, asyncio.TimeoutError) as exc:
                last_error = f"{type(exc).__name__}: {exc}"
                jlog("warning", event="nav_attempt_failed", attempt=attempt, error=last_error)

            await self.session.screenshot(f"nav_attempt_{attempt}")
            if attempt < s.max_nav_attempts:
                delay_ms = s.backoff_ms(attempt)
                jlog("info", event="nav_backoff", attempt=attempt, delay_ms=delay_ms)
                await self._sleep(delay_ms / 1000)

        jlog("error", event="nav_failed", attempts=s.max_nav_attempts, error=last_error)
        return Failed(reason=last_error, blocked=False, attempts=s.max_nav_attempts)


__all__ = ["Failed", "NavigationController", "NavigationOutcome", "Ready"]
