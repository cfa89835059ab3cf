"""One crawl run, from browser launch to persisted records."""

from __future__ import annotations

import asyncio
import time
from datetime import date, datetime, timezone
from typing import Any, AsyncContextManager, Callable

import requests

from .collector import ScrollCollector
from .logging import jlog
from .media_cache import MediaCache
from .models import CrawlQuery, CrawlSession, RunResult
from .navigation import Failed, NavigationController, Sleep
from .parser import AdCardParser
from .persistence import PersistenceGateway, save_records
from .session import BrowserSession
from .settings import CrawlSettings

UTC = getattr(datetime, "UTC", timezone.utc)

STOP_BLOCKED = "blocked"
STOP_NAVIGATION_FAILED = "navigation_failed"
STOP_LAUNCH_FAILED = "launch_failed"

SessionFactory = Callable[[CrawlSettings], AsyncContextManager[Any]]


async def _collect(session, crawl: CrawlSession, settings: CrawlSettings, *, parser, sleep, media_http) -> None:
    cache = MediaCache(session, settings, http=media_http) if settings.download_media else None
    collector = ScrollCollector(session, parser, cache, settings, sleep=sleep)
    try:
        await collector.collect(crawl)
    except Exception as exc:
        # partial results stay in crawl.collected
        crawl.errors.append(f"collect_error: {type(exc).__name__}: {exc}")
        crawl.stop_reason = crawl.stop_reason or "error"
        jlog("error", event="collect_error", error=str(exc), collected=len(crawl.collected))


async def run_crawl(
    query: CrawlQuery,
    *,
    settings: CrawlSettings | None = None,
    gateway: PersistenceGateway | None = None,
    session_factory: SessionFactory = BrowserSession,
    parser: AdCardParser | None = None,
    sleep: Sleep = asyncio.sleep,
    media_http: requests.Session | None = None,
    today: date | None = None,
) -> RunResult:
    """Navigate, collect and persist ads for ``query``.

    ``success`` is False only when no usable results page was reached (block,
    exhausted retries or a browser that failed to launch). The browser is closed
    before records are persisted.
    """

    settings = settings or CrawlSettings.from_env()
    crawl = CrawlSession(query=query, discovered_on=today or datetime.now(UTC).date())
    result = RunResult(success=False, query=query)
    started = time.monotonic()
    jlog("info", event="run_start", keyword=query.keyword, country=query.country, max_ads=query.max_ads)

    try:
        async with session_factory(settings) as session:
            outcome = await NavigationController(session, settings, sleep=sleep).open(query)
            crawl.attempts["navigation"] = outcome.attempts
            if isinstance(outcome, Failed):
                crawl.errors.append(outcome.reason)
                crawl.stop_reason = STOP_BLOCKED if outcome.blocked else STOP_NAVIGATION_FAILED
            else:
                result.success = True
                await _collect(
                    session,
                    crawl,
                    settings,
                    parser=parser or AdCardParser(),
                    sleep=sleep,
                    media_http=media_http,
                )
    except Exception as exc:
        jlog("error", event="browser_error", error=str(exc), reached_page=result.success)
        crawl.errors.append(f"browser_error: {type(exc).__name__}: {exc}")
        if not result.success:
            crawl.stop_reason = crawl.stop_reason or STOP_LAUNCH_FAILED

    result.records = list(crawl.collected)
    result.stop_reason = crawl.stop_reason
    if gateway is not None and result.records:
        summary = save_records(gateway, result.records)
        result.saved, result.failed = summary.saved, summary.failed
        crawl.errors.extend(summary.errors)
    result.errors = list(crawl.errors)

    jlog(
        "info",
        event="run_done",
        success=result.success,
        total_collected=result.total_collected,
        saved=result.saved,
        failed=result.failed,
        stop_reason=result.stop_reason,
        errors=len(result.errors),
        elapsed_s=round(time.monotonic() - started, 1),
    )
    return result


__all__ = ["STOP_BLOCKED", "STOP_LAUNCH_FAILED", "STOP_NAVIGATION_FAILED", "SessionFactory", "run_crawl"]
