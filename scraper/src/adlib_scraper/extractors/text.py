"""Library id, advertiser and body copy heuristics."""

from __future__ import annotations

import re
import urllib.parse
from typing import Iterable, Sequence

from ..urls import REDIRECT_HOSTS, is_platform_link
from .locale import LIBRARY_ID_LABELS, METADATA_PREFIXES, SEE_DETAILS_LABELS, SPONSORED_LABELS, STATUS_LABELS, flatten

NAME_MIN_CHARS = 3
NAME_MAX_CHARS = 150
BODY_MIN_CHARS = 20
BODY_MAX_CHARS = 5000
BODY_SHORT_CHARS = 40

_LIBRARY_ID_RES = tuple(
    re.compile(re.escape(label) + r"[:\s#]*(\d+)", re.IGNORECASE) for label in flatten(LIBRARY_ID_LABELS)
)
_SPONSORED = frozenset(flatten(SPONSORED_LABELS))
_SEE_DETAILS = flatten(SEE_DETAILS_LABELS)
_METADATA = flatten(METADATA_PREFIXES)
_STATUS = frozenset(flatten(STATUS_LABELS))


def clean_text(value: str | None) -> str:
    """Collapse runs of whitespace into single spaces."""

    return " ".join((value or "").split())


def is_sponsored_label(value: str | None) -> bool:
    return clean_text(value).lower() in _SPONSORED


def is_metadata_line(value: str) -> bool:
    lowered = clean_text(value).lower()
    return lowered in _STATUS or lowered.startswith(_METADATA)


def extract_library_id(text: str) -> str | None:
    for pattern in _LIBRARY_ID_RES:
        m = pattern.search(text or "")
        if m:
            return m.group(1)
    return None


def _name_sized(value: str) -> bool:
    return NAME_MIN_CHARS <= len(value) <= NAME_MAX_CHARS


def _is_profile_link(href: str) -> bool:
    parsed = urllib.parse.urlparse(href or "")
    host = (parsed.hostname or "").lower()
    if not (host == "facebook.com" or host.endswith(".facebook.com")) or host in REDIRECT_HOSTS:
        return False
    return not is_platform_link(href) and parsed.path.strip("/") != ""


def extract_advertiser(links: Sequence[dict], headings: Iterable[str]) -> str | None:
    """Best guess at the advertiser (page) name, or None."""

    for link in links:
        label = clean_text(link.get("aria_label"))
        href = link.get("href") or ""
        if not _name_sized(label) or is_sponsored_label(label):
            continue
        if any(marker in label.lower() for marker in _SEE_DETAILS):
            continue
        if "/ads/library" in href or is_platform_link(href):
            continue
        return label

    for link in links:
        text = clean_text(link.get("text"))
        if _name_sized(text) and not is_sponsored_label(text) and not is_metadata_line(text) and _is_profile_link(link.get("href") or ""):
            return text

    for heading in headings:
        text = clean_text(heading)
        if is_sponsored_label(text):
            break
        if _name_sized(text) and not is_metadata_line(text):
            return text
    return None


def _lines_after_sponsored(text: str) -> list[str]:
    lines = [clean_text(line) for line in (text or "").splitlines()]
    for idx, line in enumerate(lines):
        if is_sponsored_label(line):
            return lines[idx + 1 :]
    return lines


def extract_body(dir_auto_blocks: Iterable[str], full_text: str, advertiser: str | None) -> str | None:
    best = ""
    for block in dir_auto_blocks:
        text = clean_text(block)
        if len(text) <= len(best) or not BODY_MIN_CHARS <= len(text) <= BODY_MAX_CHARS:
            continue
        if text == advertiser or is_metadata_line(text):
            continue
        best = text

    if len(best) < BODY_SHORT_CHARS:
        for line in _lines_after_sponsored(full_text):
            if line == advertiser or is_metadata_line(line):
                continue
            if len(line) > len(best) and BODY_MIN_CHARS <= len(line) <= BODY_MAX_CHARS:
                best = line
    return best or None


__all__ = [
    "clean_text",
    "extract_advertiser",
    "extract_body",
    "extract_library_id",
    "is_metadata_line",
    "is_sponsored_label",
]
