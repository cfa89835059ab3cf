import asyncio

from playwright.async_api import Error as PlaywrightError

from adlib_scraper.models import CrawlQuery
from adlib_scraper.navigation import Failed, NavigationController, Ready
from adlib_scraper.settings import CrawlSettings
from fakes import FakeSession, RecordingSleep, no_sleep

QUERY = CrawlQuery(keyword="energia solar")


def _open(session, sleep=no_sleep, **overrides):
    settings = CrawlSettings(**overrides)
    return asyncio.run(NavigationController(session, settings, sleep=sleep).open(QUERY))


def test_ready_on_first_attempt():
    session = FakeSession()
    outcome = _open(session)
    assert isinstance(outcome, Ready)
    assert outcome.attempts == 1
    assert outcome.url.startswith("https://www.facebook.com/ads/library/")
    assert len(session.navigations) == 1


def test_login_redirect_stops_without_retry():
    session = FakeSession(redirect_to="https://www.facebook.com/login/?next=%2Fads%2Flibrary")
    outcome = _open(session)
    assert isinstance(outcome, Failed)
    assert outcome.blocked
    assert outcome.attempts == 1
    assert len(session.navigations) == 1
    assert "nav_blocked_1" in session.screenshots


def test_transient_errors_retry_with_linear_backoff():
    sleep = RecordingSleep()
    session = FakeSession(navigate_errors=[PlaywrightError("net::ERR_CONNECTION_RESET"), asyncio.TimeoutError()])
    outcome = _open(session, sleep=sleep)
    assert isinstance(outcome, Ready)
    assert outcome.attempts == 3
    assert len(session.navigations) == 3
    backoffs = [s for s in sleep.calls if s in (5.0, 7.0)]
    assert backoffs == [5.0, 7.0]


def test_content_never_ready_exhausts_attempts():
    session = FakeSession(ready=False)
    outcome = _open(session, max_nav_attempts=2, readiness_polls=2)
    assert isinstance(outcome, Failed)
    assert not outcome.blocked
    assert outcome.reason == "content_not_ready"
    assert outcome.attempts == 2
    assert len(session.navigations) == 2
    assert session.screenshots == ["nav_attempt_1", "nav_attempt_2"]


def test_last_error_is_reported_after_exhaustion():
    errors = [PlaywrightError("Timeout 45000ms exceeded") for _ in range(3)]
    outcome = _open(FakeSession(navigate_errors=errors), max_nav_attempts=3)
    assert isinstance(outcome, Failed)
    assert "Timeout 45000ms exceeded" in outcome.reason
