"""Localized date parsing for card delivery text (pt and en)."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable

from ..models import AdStatus
from .locale import ACTIVE_TIME_LABELS, END_PHRASES, MONTHS, START_PHRASES

UTC = getattr(datetime, "UTC", timezone.utc)
MIN_YEAR = 2000
MAX_YEAR = 2030

_PT_DATE_RE = re.compile(r"(\d{1,2})\s+de\s+([^\W\d_]+)\.?\s+de\s+(\d{4})", re.IGNORECASE)
_EN_DATE_RE = re.compile(r"([^\W\d_]+)\.?\s+(\d{1,2}),?\s+(\d{4})", re.IGNORECASE)
_RANGE_SPLIT_RE = re.compile(r"\s+[-–—]\s+")


def month_number(name: str, lang: str) -> int | None:
    """Resolve a month name or abbreviation ("dez", "Dec.", "sept") to 1..12."""

    table = MONTHS.get(lang, {})
    key = name.strip().rstrip(".").lower()
    if key in table:
        return table[key]
    if len(key) < 3:
        return None
    prefix = key[:3]
    for full, number in table.items():
        if full[:3] == prefix:
            return number
    return None


def _build(year: str, month: int | None, day: str) -> date | None:
    if month is None:
        return None
    y = int(year)
    if not MIN_YEAR <= y <= MAX_YEAR:
        return None
    try:
        return date(y, month, int(day))
    except ValueError:
        return None


def parse_pt_date(text: str) -> date | None:
    for m in _PT_DATE_RE.finditer(text or ""):
        parsed = _build(m.group(3), month_number(m.group(2), "pt"), m.group(1))
        if parsed:
            return parsed
    return None


def parse_en_date(text: str) -> date | None:
    for m in _EN_DATE_RE.finditer(text or ""):
        parsed = _build(m.group(3), month_number(m.group(1), "en"), m.group(2))
        if parsed:
            return parsed
    return None


_PARSERS: dict[str, Callable[[str], date | None]] = {"pt": parse_pt_date, "en": parse_en_date}


def parse_date(text: str) -> date | None:
    """First valid date in ``text``; Portuguese template first, then English."""

    for parser in _PARSERS.values():
        parsed = parser(text)
        if parsed:
            return parsed
    return None


def _after_phrase(text: str, phrase: str) -> str | None:
    m = re.search(re.escape(phrase) + r"[:\s]*(.+)", text, re.IGNORECASE)
    return m.group(1) if m else None


def _phrase_date(text: str, phrases_by_lang: dict[str, tuple[str, ...]]) -> date | None:
    for lang, phrases in phrases_by_lang.items():
        for phrase in phrases:
            tail = _after_phrase(text, phrase)
            if tail is None:
                continue
            parsed = _PARSERS[lang](tail) or parse_date(tail)
            if parsed:
                return parsed
    return None


def extract_delivery_range(text: str) -> tuple[date, date] | None:
    """``DATE - DATE`` on a single line, as rendered for finished ads."""

    for line in (text or "").splitlines():
        parts = _RANGE_SPLIT_RE.split(line.strip(), maxsplit=1)
        if len(parts) != 2:
            continue
        left, right = parse_date(parts[0]), parse_date(parts[1])
        if left and right:
            return left, right
    return None


def extract_start_date(text: str) -> date | None:
    start = _phrase_date(text or "", {lang: (p,) for lang, p in START_PHRASES.items()})
    if start:
        return start
    delivery = extract_delivery_range(text)
    return delivery[0] if delivery else None


def extract_end_date(text: str) -> date | None:
    delivery = extract_delivery_range(text)
    if delivery:
        return delivery[1]
    return _phrase_date(text or "", END_PHRASES)


def extract_active_time_label(text: str) -> str | None:
    for label in ACTIVE_TIME_LABELS.values():
        m = re.search(re.escape(label) + r"[:\s]*(.+?)\s*$", text or "", re.IGNORECASE | re.MULTILINE)
        if m and m.group(1).strip():
            return m.group(1).strip()
    return None


def compute_active_days(
    start: date | None,
    end: date | None,
    status: AdStatus,
    now: datetime | None = None,
) -> int | None:
    """Whole days the ad has run, rounded up; None when unknown or inconsistent."""

    if start is None or (end is not None and end < start):
        return None
    if status is AdStatus.INACTIVE:
        return (end - start).days if end is not None else None
    current = now or datetime.now(UTC)
    started = datetime(start.year, start.month, start.day, tzinfo=UTC)
    elapsed = (current - started).total_seconds() / 86400
    if elapsed < 0:
        return None
    return math.ceil(elapsed)


@dataclass(frozen=True, slots=True)
class DateFields:
    start_date: date | None
    end_date: date | None
    active_time_label: str | None


def extract_dates(text: str) -> DateFields:
    return DateFields(
        start_date=extract_start_date(text),
        end_date=extract_end_date(text),
        active_time_label=extract_active_time_label(text),
    )


__all__ = [
    "DateFields",
    "MAX_YEAR",
    "MIN_YEAR",
    "compute_active_days",
    "extract_active_time_label",
    "extract_dates",
    "extract_delivery_range",
    "extract_end_date",
    "extract_start_date",
    "month_number",
    "parse_date",
    "parse_en_date",
    "parse_pt_date",
]
