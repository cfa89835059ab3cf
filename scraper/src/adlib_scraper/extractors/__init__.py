"""Stateless field extractors applied to card snapshots."""

from .dates import DateFields, compute_active_days, extract_dates, parse_date
from .delivery import extract_impressions, extract_status
from .media import MediaFields, extract_media
from .platforms import extract_platforms
from .text import clean_text, extract_advertiser, extract_body, extract_library_id, is_sponsored_label

__all__ = [
    "DateFields",
    "MediaFields",
    "clean_text",
    "compute_active_days",
    "extract_advertiser",
    "extract_body",
    "extract_dates",
    "extract_impressions",
    "extract_library_id",
    "extract_media",
    "extract_platforms",
    "extract_status",
    "is_sponsored_label",
    "parse_date",
]
