"""Scroll-and-extract loop over the infinite results feed."""

from __future__ import annotations

import asyncio
import random
import time
from typing import Awaitable, Callable

from playwright.async_api import Error as PlaywrightError

from .logging import adlog, jlog
from .media_cache import MediaCache
from .models import AdRecord, CrawlSession
from .parser import AdCardParser, Rejected
from .settings import CrawlSettings
from .snapshot import CardSnapshot

Sleep = Callable[[float], Awaitable[None]]

STOP_MAX_ADS = "max_ads"
STOP_SCROLL_LIMIT = "scroll_limit"
STOP_NO_NEW_ADS = "no_new_ads"
STOP_RUNTIME_LIMIT = "runtime_limit"


class ScrollCollector:
    """Collect up to ``max_ads`` unique records from the rendered feed.

    Every card is identified before it is parsed and its identity recorded, so
    a card that re-renders on later passes is never parsed twice.
    """

    def __init__(
        self,
        session,
        parser: AdCardParser,
        media_cache: MediaCache | None,
        settings: CrawlSettings,
        *,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session = session
        self.parser = parser
        self.media_cache = media_cache
        self.settings = settings
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._clock = clock

    async def _warm_up(self) -> None:
        s = self.settings
        for _ in range(s.warmup_scrolls):
            await self.session.scroll_by_viewport(s.warmup_factor)
            await self._sleep(s.warmup_delay_ms / 1000)
        if s.warmup_scrolls:
            await self._sleep(s.post_load_wait_ms / 1000)

    async def _snapshot(self, crawl: CrawlSession, scroll_attempt: int) -> list[CardSnapshot]:
        try:
            return await self.session.snapshot_cards()
        except (PlaywrightError, asyncio.TimeoutError) as exc:
            jlog("warning", event="snapshot_failed", scroll_attempt=scroll_attempt, error=str(exc))
            crawl.errors.append(f"snapshot_failed: {exc}")
            return []

    async def _accept(self, record: AdRecord) -> AdRecord:
        if self.media_cache is None:
            return record
        return await self.media_cache.localize(record)

    async def _run_pass(self, crawl: CrawlSession, cards: list[CardSnapshot]) -> int:
        added = 0
        for card in cards:
            if crawl.remaining == 0:
                break
            identity = self.parser.identify(card, crawl.discovered_on)
            if not crawl.mark_seen(identity):
                continue
            result = self.parser.parse(card, crawl.query, crawl.discovered_on)
            if isinstance(result, Rejected):
                adlog("card_rejected", identity=identity, advertiser=result.advertiser, level="debug", reason=result.reason)
                continue
            record = await self._accept(result)
            crawl.collected.append(record)
            added += 1
            adlog(
                "ad_collected",
                identity=record.identity,
                advertiser=record.advertiser_name,
                media_type=record.media_type.value,
                collected=len(crawl.collected),
                max_ads=crawl.query.max_ads,
            )
        return added

    async def collect(self, crawl: CrawlSession) -> list[AdRecord]:
        s = self.settings
        started = self._clock()
        scroll_attempts = 0
        consecutive_no_new = 0
        crawl.stop_reason = None

        await self._warm_up()

        while True:
            if crawl.remaining == 0:
                crawl.stop_reason = STOP_MAX_ADS
            elif scroll_attempts >= s.max_scroll_attempts:
                crawl.stop_reason = STOP_SCROLL_LIMIT
            elif consecutive_no_new >= s.max_no_new_passes:
                crawl.stop_reason = STOP_NO_NEW_ADS
            elif self._clock() - started >= s.max_runtime_s:
                crawl.stop_reason = STOP_RUNTIME_LIMIT
            if crawl.stop_reason:
                break

            if scroll_attempts > 0:
                await self.session.scroll_by_viewport(s.scroll_factor)
                jitter_ms = self._rng.uniform(0, s.scroll_jitter_ms)
                await self._sleep((s.scroll_delay_ms + jitter_ms) / 1000)
            scroll_attempts += 1
            crawl.attempts["scroll"] = scroll_attempts

            cards = await self._snapshot(crawl, scroll_attempts)
            added = await self._run_pass(crawl, cards)
            consecutive_no_new = 0 if added else consecutive_no_new + 1
            jlog(
                "info",
                event="scroll_pass",
                scroll_attempt=scroll_attempts,
                cards=len(cards),
                added=added,
                collected=len(crawl.collected),
                consecutive_no_new=consecutive_no_new,
            )

        jlog(
            "info",
            event="collect_done",
            stop_reason=crawl.stop_reason,
            collected=len(crawl.collected),
            scroll_attempts=scroll_attempts,
            seen=len(crawl.seen_identities),
        )
        return crawl.collected


__all__ = [
    "STOP_MAX_ADS",
    "STOP_NO_NEW_ADS",
    "STOP_RUNTIME_LIMIT",
    "STOP_SCROLL_LIMIT",
    "ScrollCollector",
]
