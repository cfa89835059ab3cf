"""Exception hierarchy for the crawl engine."""

from __future__ import annotations


class ScraperError(RuntimeError):
    """Base class for crawl failures."""


class BlockedError(ScraperError):
    """The library redirected to a login or checkpoint page."""

    def __init__(self, url: str) -> None:
        super().__init__(f"blocked: redirected to {url}")
        self.url = url


class NavigationError(ScraperError):
    """The results feed never became ready within the attempt budget."""


class DownloadError(ScraperError):
    """A media download failed or returned an unusable body."""


__all__ = ["BlockedError", "DownloadError", "NavigationError", "ScraperError"]
