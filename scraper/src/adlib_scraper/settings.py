"""Runtime settings for a crawl run.

Defaults come from module constants that honour environment overrides; the CLI
builds a :class:`CrawlSettings` on top of them.
"""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass, fields, replace
from pathlib import Path

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw else default


# ============================
# Constants & configuration
# ============================
LIBRARY_URL = "https://www.facebook.com/ads/library/"
DEFAULT_COUNTRY = "BR"
DEFAULT_MAX_ADS = 50
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT_LANGUAGE = "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7"
DEFAULT_VIEWPORT = (1920, 1080)

DEFAULT_PAGE_TIMEOUT_MS = _env_int("PAGE_TIMEOUT_MS", 45_000)
DEFAULT_MEDIA_DIR = os.getenv("ADLIB_MEDIA_DIR", "public/media")
DEFAULT_DEBUG_DIR = os.getenv("ADLIB_DEBUG_DIR", "media/debug")

# Chrome installs probed when no executable is configured; Playwright's bundled
# Chromium is used when none of these exist.
CHROME_CANDIDATES = {
    "Windows": [
        r"C:\Program Files\Google\Chrome\Application\chrome.exe",
        r"C:\Program Files (x86)\Google\Chrome\Application\chrome.exe",
    ],
    "Darwin": [
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
        "/Applications/Chromium.app/Contents/MacOS/Chromium",
    ],
    "Linux": [
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
        "/usr/bin/chromium-browser",
        "/usr/bin/chromium",
        "/snap/bin/chromium",
    ],
}


def find_chrome_executable() -> str | None:
    """Return an explicitly configured or locally installed Chrome, if any."""

    configured = os.getenv("CHROME_EXECUTABLE_PATH")
    if configured:
        return configured
    if not _env_bool("ADLIB_DETECT_CHROME", True):
        return None
    for candidate in CHROME_CANDIDATES.get(platform.system(), []):
        if Path(candidate).exists():
            return candidate
    return None


@dataclass(frozen=True)
class CrawlSettings:
    # browser
    headless: bool = True
    debug: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE
    viewport_width: int = DEFAULT_VIEWPORT[0]
    viewport_height: int = DEFAULT_VIEWPORT[1]
    executable_path: str | None = None
    debug_dir: str = DEFAULT_DEBUG_DIR
    page_timeout_ms: int = DEFAULT_PAGE_TIMEOUT_MS

    # navigation
    max_nav_attempts: int = 5
    backoff_base_ms: int = 3_000
    backoff_step_ms: int = 2_000
    post_load_wait_ms: int = 3_000
    consent_wait_ms: int = 2_000
    readiness_polls: int = 10
    readiness_interval_ms: int = 2_000

    # scrolling
    max_scroll_attempts: int = 60
    max_no_new_passes: int = 8
    scroll_factor: float = 1.8
    scroll_delay_ms: int = 2_000
    scroll_jitter_ms: int = 1_000
    warmup_scrolls: int = 10
    warmup_factor: float = 2.0
    warmup_delay_ms: int = 1_500
    max_runtime_s: float = 900.0

    # media
    media_dir: str = DEFAULT_MEDIA_DIR
    media_url_prefix: str = "/media"
    download_media: bool = True
    image_min_bytes: int = 10_000
    video_min_bytes: int = 50_000
    image_max_bytes: int = 15 * 1024 * 1024
    video_max_bytes: int = 150 * 1024 * 1024
    image_timeout_s: float = 45.0
    video_timeout_s: float = 120.0

    def __post_init__(self) -> None:
        if self.max_nav_attempts < 1:
            raise ValueError("max_nav_attempts must be >= 1")
        if self.max_scroll_attempts < 1 or self.max_no_new_passes < 1:
            raise ValueError("scroll bounds must be >= 1")
        if self.image_min_bytes < 0 or self.video_min_bytes < 0:
            raise ValueError("media minimum sizes must be >= 0")

    @classmethod
    def from_env(cls, **overrides) -> "CrawlSettings":
        """Build settings from environment variables, then apply ``overrides``."""

        base = cls(
            headless=_env_bool("ADLIB_HEADLESS", True),
            debug=_env_bool("DEBUG_MODE", False),
            user_agent=os.getenv("ADLIB_USER_AGENT", DEFAULT_USER_AGENT),
            executable_path=find_chrome_executable(),
            max_nav_attempts=_env_int("ADLIB_MAX_NAV_ATTEMPTS", 5),
            max_scroll_attempts=_env_int("ADLIB_MAX_SCROLL_ATTEMPTS", 60),
            max_no_new_passes=_env_int("ADLIB_MAX_NO_NEW_PASSES", 8),
            warmup_scrolls=_env_int("ADLIB_WARMUP_SCROLLS", 10),
            max_runtime_s=_env_float("ADLIB_MAX_RUNTIME_S", 900.0),
        )
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"unknown settings: {sorted(unknown)}")
        return replace(base, **{k: v for k, v in overrides.items() if v is not None})

    def backoff_ms(self, attempt: int) -> int:
        """Linear backoff applied after the given (1-based) failed attempt."""

        return self.backoff_base_ms + attempt * self.backoff_step_ms

    def min_bytes(self, kind: str) -> int:
        return self.video_min_bytes if kind == "video" else self.image_min_bytes

    def max_bytes(self, kind: str) -> int:
        return self.video_max_bytes if kind == "video" else self.image_max_bytes

    def timeout_s(self, kind: str) -> float:
        return self.video_timeout_s if kind == "video" else self.image_timeout_s


__all__ = [
    "CHROME_CANDIDATES",
    "CrawlSettings",
    "DEFAULT_COUNTRY",
    "DEFAULT_MAX_ADS",
    "DEFAULT_USER_AGENT",
    "LIBRARY_URL",
    "find_chrome_executable",
]
