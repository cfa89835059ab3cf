"""Compose the field extractors over one card snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Union

from .extractors import (
    compute_active_days,
    extract_advertiser,
    extract_body,
    extract_dates,
    extract_impressions,
    extract_library_id,
    extract_media,
    extract_platforms,
    extract_status,
    is_sponsored_label,
)
from .hashing import derived_identity
from .models import AdRecord, CrawlQuery
from .snapshot import CardSnapshot

UTC = getattr(datetime, "UTC", timezone.utc)

MIN_ADVERTISER_CHARS = 2

REJECT_MISSING_ADVERTISER = "missing_advertiser"
REJECT_SPONSORED_LABEL = "sponsored_label"
REJECT_NO_MEDIA = "no_media"


@dataclass(frozen=True, slots=True)
class Rejected:
    reason: str
    identity: str | None = None
    advertiser: str | None = None


ParseResult = Union[AdRecord, Rejected]


class AdCardParser:
    """Turn :class:`CardSnapshot` objects into :class:`AdRecord` or :class:`Rejected`."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(UTC))

    def identify(self, card: CardSnapshot, discovered_on: date) -> str:
        """Identity of a card without running the full parse.

        Uses the library id when the card shows one, else a hash of advertiser,
        creative URL and discovery date.
        """

        library_id = extract_library_id(card.text)
        if library_id:
            return library_id
        advertiser = extract_advertiser(card.links, card.headings) or ""
        media = extract_media(card.images, card.videos, card.links, card.carousel_indicator)
        return derived_identity(advertiser, media.creative_url, discovered_on)

    def parse(self, card: CardSnapshot, query: CrawlQuery, discovered_on: date) -> ParseResult:
        library_id = extract_library_id(card.text)
        dates = extract_dates(card.text)
        status = extract_status(card.text)
        platforms = extract_platforms(card.platform_section, card.labels)
        advertiser = extract_advertiser(card.links, card.headings)
        media = extract_media(card.images, card.videos, card.links, card.carousel_indicator)
        identity = library_id or derived_identity(advertiser or "", media.creative_url, discovered_on)

        if advertiser is None or len(advertiser) < MIN_ADVERTISER_CHARS:
            sponsored_only = any(is_sponsored_label(h) for h in card.headings)
            reason = REJECT_SPONSORED_LABEL if sponsored_only and advertiser is None else REJECT_MISSING_ADVERTISER
            return Rejected(reason, identity=identity, advertiser=advertiser)
        if is_sponsored_label(advertiser):
            return Rejected(REJECT_SPONSORED_LABEL, identity=identity, advertiser=advertiser)
        if not media.creative_url:
            return Rejected(REJECT_NO_MEDIA, identity=identity, advertiser=advertiser)

        body = extract_body(card.dir_auto_blocks, card.text, advertiser)
        impressions = extract_impressions(card.text)
        now = self._clock()

        return AdRecord(
            identity=identity,
            library_id=library_id,
            advertiser_name=advertiser,
            body_text=body,
            media_type=media.media_type,
            creative_url=media.creative_url,
            image_url=media.image_url,
            video_url=media.video_url,
            outbound_link=media.outbound_link,
            platforms=platforms,
            start_date=dates.start_date,
            end_date=dates.end_date,
            active_days=compute_active_days(dates.start_date, dates.end_date, status, now),
            active_time_label=dates.active_time_label,
            impression_range=impressions,
            status=status,
            query=query,
            discovered_at=now,
        )


__all__ = [
    "AdCardParser",
    "ParseResult",
    "REJECT_MISSING_ADVERTISER",
    "REJECT_NO_MEDIA",
    "REJECT_SPONSORED_LABEL",
    "Rejected",
]
