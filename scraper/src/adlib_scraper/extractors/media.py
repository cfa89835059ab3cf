"""Creative media selection: best image, playable video, outbound link."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..models import MediaType
from ..urls import is_creative_cdn_url, is_http_url, normalize_outbound_link, parse_srcset

MIN_NATURAL_WIDTH = 50


@dataclass(frozen=True, slots=True)
class MediaFields:
    image_url: str | None
    video_url: str | None
    outbound_link: str | None
    media_type: MediaType

    @property
    def creative_url(self) -> str | None:
        return self.video_url or self.image_url


def _image_src(img: dict) -> str:
    return img.get("current_src") or img.get("src") or ""


def best_image_url(images: Sequence[dict]) -> str | None:
    """Highest-resolution valid CDN image, scored by srcset width then natural width."""

    best_url: str | None = None
    best_width = 0
    for img in images:
        src = _image_src(img)
        if not is_creative_cdn_url(src):
            continue
        candidates = [(url, w) for url, w in parse_srcset(img.get("srcset")) if is_creative_cdn_url(url)]
        if candidates:
            url, width = max(candidates, key=lambda c: c[1])
            if width > best_width:
                best_url, best_width = url, width
        natural = int(img.get("natural_width") or 0)
        if natural > MIN_NATURAL_WIDTH and natural > best_width:
            best_url, best_width = src, natural

    if best_url:
        return best_url
    for img in images:
        src = _image_src(img)
        if is_creative_cdn_url(src):
            return src
    return None


def distinct_image_urls(images: Sequence[dict]) -> list[str]:
    seen: list[str] = []
    for img in images:
        src = _image_src(img)
        if is_creative_cdn_url(src) and src not in seen:
            seen.append(src)
    return seen


def playable_video_url(videos: Sequence[dict]) -> str | None:
    """First http(s) source; blob: and data: sources are not downloadable."""

    for video in videos:
        for candidate in (video.get("current_src"), video.get("src"), *(video.get("sources") or ())):
            if is_http_url(candidate):
                return candidate
    return None


def outbound_link(links: Sequence[dict]) -> str | None:
    for link in links:
        normalized = normalize_outbound_link(link.get("href"))
        if normalized:
            return normalized
    return None


def classify_media(video_url: str | None, image_urls: Sequence[str], carousel_indicator: bool) -> MediaType:
    if video_url:
        return MediaType.VIDEO
    if len(image_urls) > 1 or carousel_indicator:
        return MediaType.CAROUSEL
    if len(image_urls) == 1:
        return MediaType.IMAGE
    return MediaType.UNKNOWN


def extract_media(
    images: Sequence[dict],
    videos: Sequence[dict],
    links: Sequence[dict],
    carousel_indicator: bool = False,
) -> MediaFields:
    video_url = playable_video_url(videos)
    image_urls = distinct_image_urls(images)
    return MediaFields(
        image_url=best_image_url(images),
        video_url=video_url,
        outbound_link=outbound_link(links),
        media_type=classify_media(video_url, image_urls, carousel_indicator),
    )


__all__ = [
    "MediaFields",
    "best_image_url",
    "classify_media",
    "distinct_image_urls",
    "extract_media",
    "outbound_link",
    "playable_video_url",
]
