"""Delivery status and impression ranges."""

from __future__ import annotations

import re

from ..models import AdStatus, ImpressionRange
from .locale import IMPRESSION_WORDS, INACTIVE_INDICATORS, THOUSAND_WORDS, flatten

_WORDS = "|".join(re.escape(w) for w in flatten(IMPRESSION_WORDS))
_THOUSANDS = "|".join(re.escape(w) for w in flatten(THOUSAND_WORDS))
_SEP = r"\s*(?:[-–—]|\ba\b|\baté\b|\bto\b)\s*"
_PLAIN = r"(\d{1,3}(?:[.,]\d{3})+|\d+)"
_SCALED = r"(\d+(?:[.,]\d+)?)"

_INACTIVE_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(w) for w in flatten(INACTIVE_INDICATORS)) + r")\b",
    re.IGNORECASE,
)

# (pattern, multiplier) tried in order; the first well-formed range wins.
_IMPRESSION_PATTERNS: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(_SCALED + r"\s*[kK]" + _SEP + _SCALED + r"\s*[kK]\b", re.IGNORECASE), 1_000),
    (re.compile(_SCALED + r"\s*(?:" + _THOUSANDS + r")\b" + _SEP + _SCALED + r"\s*(?:" + _THOUSANDS + r")\b", re.IGNORECASE), 1_000),
    (re.compile(_PLAIN + _SEP + _PLAIN + r"\s*(?:" + _WORDS + r")", re.IGNORECASE), 1),
    (re.compile(r"(?:" + _WORDS + r")\s*:\s*" + _PLAIN + _SEP + _PLAIN, re.IGNORECASE), 1),
)


def extract_status(text: str) -> AdStatus:
    return AdStatus.INACTIVE if _INACTIVE_RE.search(text or "") else AdStatus.ACTIVE


def _to_int(raw: str, multiplier: int) -> int:
    if multiplier == 1:
        return int(re.sub(r"[.,]", "", raw))
    return round(float(raw.replace(",", ".")) * multiplier)


def extract_impressions(text: str) -> ImpressionRange | None:
    flat = " ".join((text or "").split())
    for pattern, multiplier in _IMPRESSION_PATTERNS:
        for m in pattern.finditer(flat):
            low, high = _to_int(m.group(1), multiplier), _to_int(m.group(2), multiplier)
            if low <= high:
                return ImpressionRange(min=low, max=high)
    return None


__all__ = ["extract_impressions", "extract_status"]
