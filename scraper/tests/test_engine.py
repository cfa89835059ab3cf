import asyncio
from datetime import date

from adlib_scraper.engine import STOP_BLOCKED, STOP_LAUNCH_FAILED, STOP_NAVIGATION_FAILED, run_crawl
from adlib_scraper.models import CrawlQuery
from adlib_scraper.persistence import MemoryGateway
from adlib_scraper.settings import CrawlSettings
from fakes import FakeSession, make_card, no_sleep

TODAY = date(2025, 12, 20)
SETTINGS = CrawlSettings(download_media=False, warmup_scrolls=0, max_nav_attempts=2, readiness_polls=1)


def _run(session_factory, max_ads=3, gateway=None):
    query = CrawlQuery(keyword="energia solar", max_ads=max_ads)
    return asyncio.run(
        run_crawl(
            query,
            settings=SETTINGS,
            gateway=gateway,
            session_factory=session_factory,
            sleep=no_sleep,
            today=TODAY,
        )
    )


def test_successful_run_persists_after_browser_closes():
    session = FakeSession([[make_card(library_id=f"5{i}") for i in range(5)]])
    closed_at_save = []

    class CheckingGateway(MemoryGateway):
        def save(self, record):
            closed_at_save.append(session.closed)
            super().save(record)

    gateway = CheckingGateway()
    result = _run(lambda s: session, gateway=gateway)
    assert result.success
    assert result.total_collected == 3
    assert result.saved == 3
    assert result.stop_reason == "max_ads"
    assert set(gateway.records) == {"50", "51", "52"}
    assert closed_at_save == [True, True, True]


def test_blocked_run_reports_failure():
    session = FakeSession(redirect_to="https://www.facebook.com/checkpoint/828281030927956/")
    result = _run(lambda s: session, gateway=MemoryGateway())
    assert not result.success
    assert result.stop_reason == STOP_BLOCKED
    assert result.records == []
    assert session.closed
    assert result.errors and "checkpoint" in result.errors[0]


def test_navigation_exhaustion_reports_failure():
    result = _run(lambda s: FakeSession(ready=False))
    assert not result.success
    assert result.stop_reason == STOP_NAVIGATION_FAILED


def test_launch_failure_is_reported():
    def factory(settings):
        raise RuntimeError("Executable doesn't exist")

    result = _run(factory)
    assert not result.success
    assert result.stop_reason == STOP_LAUNCH_FAILED
    assert "Executable doesn't exist" in result.errors[0]


def test_collect_error_keeps_partial_results():
    class BrokenSession(FakeSession):
        async def scroll_by_viewport(self, factor):
            raise RuntimeError("page crashed")

    session = BrokenSession([[make_card(library_id="61")], [make_card(library_id="62")]])
    result = _run(lambda s: session, max_ads=5)
    assert result.success
    assert [r.identity for r in result.records] == ["61"]
    assert any("page crashed" in e for e in result.errors)
    assert session.closed


def test_persist_failures_are_counted_per_record():
    class FlakyGateway(MemoryGateway):
        def save(self, record):
            if record.identity == "71":
                raise RuntimeError("connection reset")
            super().save(record)

    session = FakeSession([[make_card(library_id=f"7{i}") for i in range(3)]])
    result = _run(lambda s: session, gateway=FlakyGateway())
    assert result.saved == 2
    assert result.failed == 1
    assert any(e.startswith("persist_failed: 71") for e in result.errors)


def test_to_dict_shape():
    session = FakeSession([[make_card(library_id="81")]])
    payload = _run(lambda s: session, max_ads=1).to_dict()
    assert payload["success"] is True
    assert payload["totalCollected"] == 1
    assert payload["records"][0]["libraryId"] == "81"
    assert payload["filters"]["activeStatus"] == "all"
