"""Publisher platform detection from the card's icon strip."""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from ..models import Platform
from .locale import PLATFORM_DISPLAY_ORDER, PLATFORM_KEYWORDS, PLATFORM_SPRITES

DEFAULT_PLATFORMS = (Platform.FACEBOOK,)
_MASK_POSITION_RE = re.compile(r"mask-position\s*:\s*([^;]+)", re.IGNORECASE)


def mask_position(style: str) -> str | None:
    m = _MASK_POSITION_RE.search(style or "")
    if not m:
        return None
    return " ".join(m.group(1).split())


def _dedupe(items: Iterable[Platform]) -> tuple[Platform, ...]:
    out: list[Platform] = []
    for item in items:
        if item not in out:
            out.append(item)
    return tuple(out)


def from_sprites(icon_styles: Sequence[str]) -> tuple[Platform, ...]:
    hits = []
    for style in icon_styles:
        pos = mask_position(style)
        if pos and pos in PLATFORM_SPRITES:
            hits.append(PLATFORM_SPRITES[pos])
    return _dedupe(hits)


def from_display_order(icon_styles: Sequence[str]) -> tuple[Platform, ...]:
    return tuple(PLATFORM_DISPLAY_ORDER[: min(len(icon_styles), len(PLATFORM_DISPLAY_ORDER))])


def from_labels(labels: Iterable[str]) -> tuple[Platform, ...]:
    combined = " ".join(labels or ()).lower()
    return tuple(platform for keyword, platform in PLATFORM_KEYWORDS if keyword in combined)


def extract_platforms(icon_styles: Sequence[str] | None, labels: Iterable[str] = ()) -> tuple[Platform, ...]:
    """Resolve platforms from the labeled icon strip, then from accessible labels.

    ``icon_styles`` is None when the card has no "Platforms" region, and a list
    of inline ``style`` strings (one per icon) otherwise.
    """

    if icon_styles:
        found = from_sprites(icon_styles) or from_display_order(icon_styles)
        if found:
            return found
    return from_labels(labels) or DEFAULT_PLATFORMS


__all__ = [
    "DEFAULT_PLATFORMS",
    "extract_platforms",
    "from_display_order",
    "from_labels",
    "from_sprites",
    "mask_position",
]
