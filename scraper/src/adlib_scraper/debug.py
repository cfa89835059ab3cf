"""Debug artifact helpers (screenshots and page HTML)."""

from __future__ import annotations

import os
import re
import time

from playwright.async_api import Page

from .logging import jlog

DEBUG_DIR = "media/debug"
_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_.-]+")


def ensure_debug_dir(debug_dir: str = DEBUG_DIR) -> str:
    """Create the debug directory if it does not exist and return the path."""

    try:
        os.makedirs(debug_dir, exist_ok=True)
    except OSError as exc:
        jlog("warning", event="debug_dir_error", path=debug_dir, error=str(exc))
    return debug_dir


def artifact_path(debug_dir: str, name: str, ext: str) -> str:
    safe = _UNSAFE_RE.sub("_", name).strip("_") or "page"
    return os.path.join(debug_dir, f"{safe}_{int(time.time() * 1000)}.{ext}")


async def save_debug_screenshot(page: Page, name: str, debug_dir: str = DEBUG_DIR) -> str | None:
    """Full-page screenshot for post-mortem inspection (best effort)."""

    try:
        path = artifact_path(ensure_debug_dir(debug_dir), name, "png")
        await page.screenshot(path=path, full_page=True)
        jlog("info", event="debug_screenshot", path=path)
        return path
    except Exception as exc:  # pragma: no cover - logging only
        jlog("error", event="debug_screenshot_error", name=name, error=str(exc))
        return None


__all__ = [
    "DEBUG_DIR",
    "artifact_path",
    "ensure_debug_dir",
    "save_debug_screenshot",
]
