"""Typed records shared by the crawl engine, the parser and persistence."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from .settings import DEFAULT_COUNTRY, DEFAULT_MAX_ADS


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    CAROUSEL = "carousel"
    UNKNOWN = "unknown"


class Platform(str, Enum):
    FACEBOOK = "Facebook"
    INSTAGRAM = "Instagram"
    MESSENGER = "Messenger"
    WHATSAPP = "WhatsApp"
    THREADS = "Threads"
    AUDIENCE_NETWORK = "Audience Network"


class AdStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


MEDIA_FILTERS = ("all", "image", "video", "meme", "none")
STATUS_FILTERS = ("all", "active", "inactive")
_COUNTRY_RE = re.compile(r"^[A-Z]{2}$")


@dataclass(frozen=True, slots=True)
class ImpressionRange:
    min: int
    max: int

    def __post_init__(self) -> None:
        if self.min < 0 or self.min > self.max:
            raise ValueError(f"invalid impression range {self.min}-{self.max}")


@dataclass(frozen=True)
class CrawlFilters:
    language: str | None = None
    platforms: tuple[Platform, ...] = ()
    media_type: str = "all"
    active_status: str = "all"
    impressions_date_from: date | None = None
    impressions_date_to: date | None = None

    def __post_init__(self) -> None:
        if self.media_type not in MEDIA_FILTERS:
            raise ValueError(f"media_type must be one of {MEDIA_FILTERS}, got {self.media_type!r}")
        if self.active_status not in STATUS_FILTERS:
            raise ValueError(f"active_status must be one of {STATUS_FILTERS}, got {self.active_status!r}")
        if (
            self.impressions_date_from
            and self.impressions_date_to
            and self.impressions_date_from > self.impressions_date_to
        ):
            raise ValueError(
                f"impressions_date_from ({self.impressions_date_from}) is after impressions_date_to ({self.impressions_date_to})"
            )
        object.__setattr__(self, "platforms", tuple(Platform(p) for p in self.platforms))

    def to_dict(self) -> dict[str, Any]:
        return {
            "language": self.language,
            "platforms": [p.value for p in self.platforms],
            "mediaType": self.media_type,
            "activeStatus": self.active_status,
            "impressionsDateFrom": self.impressions_date_from.isoformat() if self.impressions_date_from else None,
            "impressionsDateTo": self.impressions_date_to.isoformat() if self.impressions_date_to else None,
        }


@dataclass(frozen=True)
class CrawlQuery:
    keyword: str
    country: str = DEFAULT_COUNTRY
    max_ads: int = DEFAULT_MAX_ADS
    filters: CrawlFilters = field(default_factory=CrawlFilters)

    def __post_init__(self) -> None:
        keyword = (self.keyword or "").strip()
        if not keyword:
            raise ValueError("keyword must not be empty")
        country = (self.country or "").strip().upper()
        if not _COUNTRY_RE.match(country):
            raise ValueError(f"country must be a 2-letter code, got {self.country!r}")
        if not isinstance(self.max_ads, int) or self.max_ads < 1:
            raise ValueError(f"max_ads must be a positive integer, got {self.max_ads!r}")
        object.__setattr__(self, "keyword", keyword)
        object.__setattr__(self, "country", country)

    def to_dict(self) -> dict[str, Any]:
        return {
            "keyword": self.keyword,
            "country": self.country,
            "maxAds": self.max_ads,
            "filters": self.filters.to_dict(),
        }


@dataclass(frozen=True)
class AdRecord:
    identity: str
    advertiser_name: str
    media_type: MediaType
    creative_url: str
    query: CrawlQuery
    discovered_at: datetime
    library_id: str | None = None
    body_text: str | None = None
    image_url: str | None = None
    video_url: str | None = None
    outbound_link: str | None = None
    platforms: tuple[Platform, ...] = (Platform.FACEBOOK,)
    start_date: date | None = None
    end_date: date | None = None
    active_days: int | None = None
    active_time_label: str | None = None
    impression_range: ImpressionRange | None = None
    status: AdStatus = AdStatus.ACTIVE

    def __post_init__(self) -> None:
        if not self.identity:
            raise ValueError("identity is required")
        if not self.platforms:
            raise ValueError("platforms must not be empty")
        if self.active_days is not None:
            if self.start_date is None:
                raise ValueError("active_days requires start_date")
            if self.active_days < 0:
                raise ValueError("active_days must be >= 0")
        if self.discovered_at.tzinfo is None:
            raise ValueError("discovered_at must be timezone-aware")

    def to_dict(self) -> dict[str, Any]:
        """Camel-cased boundary representation used in run output."""

        return {
            "identity": self.identity,
            "libraryId": self.library_id,
            "advertiserName": self.advertiser_name,
            "bodyText": self.body_text,
            "mediaType": self.media_type.value,
            "creativeUrl": self.creative_url,
            "imageUrl": self.image_url,
            "videoUrl": self.video_url,
            "outboundLink": self.outbound_link,
            "platforms": [p.value for p in self.platforms],
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "activeDays": self.active_days,
            "activeTimeLabel": self.active_time_label,
            "impressions": asdict(self.impression_range) if self.impression_range else None,
            "status": self.status.value,
            "query": self.query.to_dict(),
            "discoveredAt": self.discovered_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class MediaAsset:
    cache_key: str
    origin_url: str
    local_path: str
    file_path: str
    kind: str
    size_bytes: int
    sha256: str | None = None
    width: int | None = None
    height: int | None = None


@dataclass
class CrawlSession:
    """Mutable state owned by a single crawl run."""

    query: CrawlQuery
    discovered_on: date
    seen_identities: set[str] = field(default_factory=set)
    collected: list[AdRecord] = field(default_factory=list)
    attempts: dict[str, int] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    stop_reason: str | None = None

    @property
    def remaining(self) -> int:
        return max(0, self.query.max_ads - len(self.collected))

    def mark_seen(self, identity: str) -> bool:
        """Record ``identity``; return False when it was already seen."""

        if identity in self.seen_identities:
            return False
        self.seen_identities.add(identity)
        return True


@dataclass
class RunResult:
    success: bool
    query: CrawlQuery
    records: list[AdRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    saved: int = 0
    failed: int = 0
    stop_reason: str | None = None

    @property
    def total_collected(self) -> int:
        return len(self.records)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "totalCollected": self.total_collected,
            "records": [r.to_dict() for r in self.records],
            "errors": list(self.errors),
            "saved": self.saved,
            "failed": self.failed,
            "stopReason": self.stop_reason,
            "filters": self.query.filters.to_dict(),
        }


__all__ = [
    "AdRecord",
    "AdStatus",
    "CrawlFilters",
    "CrawlQuery",
    "CrawlSession",
    "ImpressionRange",
    "MEDIA_FILTERS",
    "MediaAsset",
    "MediaType",
    "Platform",
    "RunResult",
    "STATUS_FILTERS",
]
