"""High-level utilities for crawling the Meta Ad Library."""

from .collector import ScrollCollector
from .engine import run_crawl
from .errors import BlockedError, DownloadError, NavigationError, ScraperError
from .logging import adlog, jlog
from .media_cache import MediaCache
from .models import AdRecord, AdStatus, CrawlFilters, CrawlQuery, CrawlSession, ImpressionRange, MediaAsset, MediaType, Platform, RunResult
from .navigation import Failed, NavigationController, Ready
from .parser import AdCardParser, Rejected
from .persistence import MemoryGateway, PersistenceGateway, save_records
from .session import BrowserSession
from .settings import CrawlSettings
from .snapshot import CardSnapshot
from .versioning import get_scraper_version

__all__ = [
    "AdCardParser",
    "AdRecord",
    "AdStatus",
    "BlockedError",
    "BrowserSession",
    "CardSnapshot",
    "CrawlFilters",
    "CrawlQuery",
    "CrawlSession",
    "CrawlSettings",
    "DownloadError",
    "Failed",
    "ImpressionRange",
    "MediaAsset",
    "MediaCache",
    "MediaType",
    "MemoryGateway",
    "NavigationController",
    "NavigationError",
    "PersistenceGateway",
    "Platform",
    "Ready",
    "Rejected",
    "RunResult",
    "ScraperError",
    "ScrollCollector",
    "adlog",
    "get_scraper_version",
    "jlog",
    "run_crawl",
    "save_records",
]
