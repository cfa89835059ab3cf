"""In-page card snapshot query and its host-side representation.

The page script only collects raw strings and attributes; every decision about
what those mean is taken by :mod:`adlib_scraper.extractors`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from .extractors.locale import LIBRARY_ID_LABELS, PLATFORMS_HEADINGS, flatten

HTML_EXCERPT_CHARS = 6000

CARD_SNAPSHOT_JS = """
() => {
  const MARKERS = %(markers)s;
  const HEADINGS = %(headings)s;
  const hasMarker = (el) => {
    const text = el.innerText || '';
    return MARKERS.some(m => text.includes(m));
  };

  let cards = Array.from(document.querySelectorAll('[role="article"]'));
  if (cards.length === 0) {
    const candidates = Array.from(document.querySelectorAll('div'))
      .filter(div => hasMarker(div) && div.querySelector('img, video'));
    cards = candidates.filter(div => !candidates.some(other => other !== div && div.contains(other)));
  }

  const text = (el) => ((el && (el.innerText || el.textContent)) || '').trim();

  const platformSection = (card) => {
    for (const el of card.querySelectorAll('span, div')) {
      const t = (el.textContent || '').trim().toLowerCase();
      if (HEADINGS.includes(t) && el.parentElement) {
        return Array.from(el.parentElement.querySelectorAll('div[style*="mask-image"]'))
          .map(icon => icon.getAttribute('style') || '');
      }
    }
    return null;
  };

  return cards.map(card => ({
    text: card.innerText || card.textContent || '',
    dir_auto_blocks: Array.from(card.querySelectorAll('div[dir="auto"]')).map(text).filter(Boolean),
    headings: Array.from(card.querySelectorAll('strong, span[dir="auto"], h2, h3, h4')).map(text).filter(Boolean),
    links: Array.from(card.querySelectorAll('a[href]')).map(a => ({
      href: a.href || a.getAttribute('href') || '',
      text: text(a),
      aria_label: a.getAttribute('aria-label') || '',
    })),
    labels: Array.from(card.querySelectorAll('[aria-label], [alt], [title]')).map(el =>
      [el.getAttribute('aria-label'), el.getAttribute('alt'), el.getAttribute('title')].filter(Boolean).join(' ')
    ).filter(Boolean),
    images: Array.from(card.querySelectorAll('img')).map(img => ({
      src: img.src || img.getAttribute('src') || '',
      current_src: img.currentSrc || '',
      srcset: img.srcset || img.getAttribute('srcset') || '',
      natural_width: img.naturalWidth || 0,
    })),
    videos: Array.from(card.querySelectorAll('video')).map(video => ({
      src: video.src || video.getAttribute('src') || '',
      current_src: video.currentSrc || '',
      sources: Array.from(video.querySelectorAll('source')).map(s => s.src || s.getAttribute('src') || ''),
    })),
    platform_section: platformSection(card),
    carousel_indicator: card.querySelector('[aria-label*="carousel" i], [class*="carousel"]') !== null,
    html_excerpt: (card.outerHTML || '').substring(0, %(excerpt)d),
  }));
}
""" % {
    "markers": json.dumps(list(flatten(LIBRARY_ID_LABELS)), ensure_ascii=False),
    "headings": json.dumps([h.lower() for h in flatten(PLATFORMS_HEADINGS)]),
    "excerpt": HTML_EXCERPT_CHARS,
}


def _strings(value: Any) -> list[str]:
    return [str(v) for v in (value or []) if v]


@dataclass(frozen=True)
class CardSnapshot:
    """Plain structured data read from one rendered ad card."""

    text: str = ""
    dir_auto_blocks: list[str] = field(default_factory=list)
    headings: list[str] = field(default_factory=list)
    links: list[dict[str, str]] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    images: list[dict[str, Any]] = field(default_factory=list)
    videos: list[dict[str, Any]] = field(default_factory=list)
    platform_section: list[str] | None = None
    carousel_indicator: bool = False
    html_excerpt: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "CardSnapshot":
        section = raw.get("platform_section")
        return cls(
            text=str(raw.get("text") or ""),
            dir_auto_blocks=_strings(raw.get("dir_auto_blocks")),
            headings=_strings(raw.get("headings")),
            links=[dict(link) for link in raw.get("links") or [] if isinstance(link, dict)],
            labels=_strings(raw.get("labels")),
            images=[dict(img) for img in raw.get("images") or [] if isinstance(img, dict)],
            videos=[dict(v) for v in raw.get("videos") or [] if isinstance(v, dict)],
            platform_section=None if section is None else _strings(section),
            carousel_indicator=bool(raw.get("carousel_indicator")),
            html_excerpt=str(raw.get("html_excerpt") or "")[:HTML_EXCERPT_CHARS],
        )


__all__ = ["CARD_SNAPSHOT_JS", "CardSnapshot", "HTML_EXCERPT_CHARS"]
