import asyncio
import itertools
import random
from datetime import date

from playwright.async_api import Error as PlaywrightError

from adlib_scraper.collector import (
    STOP_MAX_ADS,
    STOP_NO_NEW_ADS,
    STOP_RUNTIME_LIMIT,
    STOP_SCROLL_LIMIT,
    ScrollCollector,
)
from adlib_scraper.media_cache import MediaCache
from adlib_scraper.models import CrawlQuery, CrawlSession
from adlib_scraper.parser import AdCardParser
from adlib_scraper.settings import CrawlSettings
from fakes import CDN, FakeHttp, FakeResponse, FakeSession, make_card, no_sleep, oversized_png_header, png_bytes

TODAY = date(2025, 12, 20)


def _card(n):
    return make_card(library_id=f"90000{n}")


def _crawl(max_ads=50):
    return CrawlSession(query=CrawlQuery(keyword="energia solar", max_ads=max_ads), discovered_on=TODAY)


def _collect(session, crawl, media_cache=None, clock=None, **overrides):
    settings = CrawlSettings(**{"download_media": False, "warmup_scrolls": 0, **overrides})
    kwargs = {"sleep": no_sleep, "rng": random.Random(1)}
    if clock is not None:
        kwargs["clock"] = clock
    collector = ScrollCollector(session, AdCardParser(), media_cache, settings, **kwargs)
    return asyncio.run(collector.collect(crawl))


def test_stops_exactly_at_max_ads():
    session = FakeSession([[_card(i) for i in range(8)]])
    crawl = _crawl(max_ads=5)
    records = _collect(session, crawl)
    assert len(records) == 5
    assert crawl.stop_reason == STOP_MAX_ADS
    assert session.snapshots == 1
    # cards past the cap are never identified
    assert len(crawl.seen_identities) == 5


def test_rerendered_cards_are_not_duplicated():
    passes = [[_card(1), _card(2)], [_card(1), _card(2), _card(3)], [_card(2), _card(3), _card(4)]]
    crawl = _crawl()
    records = _collect(FakeSession(passes), crawl)
    assert [r.library_id for r in records] == ["900001", "900002", "900003", "900004"]
    assert len({r.identity for r in records}) == 4


def test_stops_after_consecutive_passes_without_new_ads():
    session = FakeSession([[_card(1)]])
    crawl = _crawl()
    records = _collect(session, crawl)
    assert len(records) == 1
    assert crawl.stop_reason == STOP_NO_NEW_ADS
    assert session.snapshots == 1 + 8
    assert crawl.attempts["scroll"] == 9


def test_stops_at_scroll_limit():
    session = FakeSession([[_card(i)] for i in range(10)])
    crawl = _crawl()
    records = _collect(session, crawl, max_scroll_attempts=3)
    assert len(records) == 3
    assert crawl.stop_reason == STOP_SCROLL_LIMIT
    assert session.scrolls == [1.8, 1.8]


def test_stops_at_runtime_limit():
    clock = itertools.count(0, 500).__next__
    session = FakeSession([[_card(i)] for i in range(10)])
    crawl = _crawl()
    records = _collect(session, crawl, clock=clock)
    assert len(records) == 1
    assert crawl.stop_reason == STOP_RUNTIME_LIMIT


def test_rejected_cards_are_seen_once():
    bad = make_card(library_id="777", image=None, video=None)
    session = FakeSession([[bad, _card(1)], [bad, _card(1)]])
    crawl = _crawl()
    records = _collect(session, crawl, max_no_new_passes=1)
    assert [r.library_id for r in records] == ["900001"]
    assert "777" in crawl.seen_identities


def test_snapshot_failure_counts_as_empty_pass():
    class FlakySession(FakeSession):
        async def snapshot_cards(self):
            if self.snapshots == 0:
                self.snapshots += 1
                raise PlaywrightError("Execution context was destroyed")
            return await super().snapshot_cards()

    session = FlakySession([[_card(1), _card(2)]])
    crawl = _crawl()
    records = _collect(session, crawl, max_no_new_passes=2)
    assert len(records) == 2
    assert any(e.startswith("snapshot_failed") for e in crawl.errors)
    assert crawl.stop_reason == STOP_NO_NEW_ADS


def test_warm_up_scrolls_before_first_pass():
    session = FakeSession([[_card(1)]])
    crawl = _crawl(max_ads=1)
    _collect(session, crawl, warmup_scrolls=3)
    assert session.scrolls == [2.0, 2.0, 2.0]


def test_records_pass_through_media_cache():
    class StubCache:
        def __init__(self):
            self.seen = []

        async def localize(self, record):
            self.seen.append(record.identity)
            return record

    cache = StubCache()
    crawl = _crawl(max_ads=2)
    _collect(FakeSession([[_card(1), _card(2)]]), crawl, media_cache=cache)
    assert cache.seen == ["900001", "900002"]


def test_unusable_media_body_does_not_stop_collection(tmp_path):
    bad_image = f"{CDN}/huge.png?oh=1"
    good_image = f"{CDN}/ok.png?oh=2"
    http = FakeHttp(
        {
            bad_image: FakeResponse(body=oversized_png_header(), content_type="application/octet-stream"),
            good_image: FakeResponse(body=png_bytes(), content_type="image/png"),
        }
    )
    session = FakeSession([[make_card(library_id="901", image=bad_image), make_card(library_id="902", image=good_image)]])
    settings = CrawlSettings(media_dir=str(tmp_path), warmup_scrolls=0)
    cache = MediaCache(session, settings, http=http)
    crawl = _crawl(max_ads=2)
    collector = ScrollCollector(session, AdCardParser(), cache, settings, sleep=no_sleep, rng=random.Random(1))
    records = asyncio.run(collector.collect(crawl))
    assert [r.library_id for r in records] == ["901", "902"]
    assert records[0].image_url == bad_image
    assert records[1].image_url.startswith("/media/image/")
    assert crawl.stop_reason == STOP_MAX_ADS
