"""URL helpers for Ad Library searches and creative links."""

from __future__ import annotations

import re
import urllib.parse

from .settings import LIBRARY_URL

BLOCKED_PATH_MARKERS = ("/login", "/checkpoint", "login.php")
CDN_HOST_RE = re.compile(r"(^|\.)(scontent[\w.-]*|[\w.-]*fbcdn[\w.-]*)$", re.IGNORECASE)
NON_CREATIVE_MARKERS = ("emoji", "static", "pixel", "profile_pic", "/rsrc.php")
REDIRECT_HOSTS = {"l.facebook.com", "lm.facebook.com", "l.instagram.com"}
TRACKER_PARAMS = {"fbclid", "gclid", "dclid", "mc_eid", "mc_cid", "_hsenc", "_hsmi", "h", "__tn__"}
PLATFORM_LINK_PATHS = ("/ads/", "/business", "/policies", "/help", "/privacy")


def build_search_url(query, base_url: str = LIBRARY_URL) -> str:
    """Exact-phrase keyword search URL for ``query`` (a :class:`CrawlQuery`)."""

    filters = query.filters
    params: list[tuple[str, str]] = [
        ("active_status", filters.active_status),
        ("ad_type", "all"),
        ("country", query.country),
        ("media_type", filters.media_type),
        ("q", f'"{query.keyword}"'),
        ("search_type", "keyword_exact_phrase"),
    ]
    if filters.impressions_date_from:
        params.append(("start_date[min]", filters.impressions_date_from.isoformat()))
    if filters.impressions_date_to:
        params.append(("start_date[max]", filters.impressions_date_to.isoformat()))
    for i, platform in enumerate(filters.platforms):
        params.append((f"publisher_platforms[{i}]", platform.value.lower().replace(" ", "_")))
    if filters.language:
        params.append(("content_languages[0]", filters.language))
    return f"{base_url}?{urllib.parse.urlencode(params)}"


def is_blocked_url(url: str | None) -> bool:
    if not url:
        return False
    lowered = url.lower()
    return any(marker in lowered for marker in BLOCKED_PATH_MARKERS)


def is_http_url(url: str | None) -> bool:
    return bool(url) and urllib.parse.urlparse(url).scheme in ("http", "https")


def is_creative_cdn_url(url: str | None) -> bool:
    """True for http(s) creative URLs hosted on the platform CDN."""

    if not is_http_url(url):
        return False
    parsed = urllib.parse.urlparse(url)
    if not CDN_HOST_RE.search(parsed.hostname or ""):
        return False
    lowered = url.lower()
    return not any(marker in lowered for marker in NON_CREATIVE_MARKERS)


def parse_srcset(srcset: str | None) -> list[tuple[str, int]]:
    """Return ``(url, width)`` pairs; density descriptors count as width 0."""

    out: list[tuple[str, int]] = []
    for candidate in (srcset or "").split(","):
        bits = candidate.strip().split()
        if not bits:
            continue
        width = 0
        if len(bits) > 1 and bits[1].endswith("w"):
            try:
                width = int(bits[1][:-1])
            except ValueError:
                width = 0
        out.append((bits[0], width))
    return out


def strip_query(url: str) -> str:
    if not url:
        return ""
    parsed = urllib.parse.urlparse(url)
    return urllib.parse.urlunparse((parsed.scheme, parsed.netloc, parsed.path, "", "", ""))


def is_platform_link(url: str | None) -> bool:
    """Links that point back into the ad platform itself (library, policies...)."""

    if not url:
        return False
    parsed = urllib.parse.urlparse(url)
    host = (parsed.hostname or "").lower()
    if not host.endswith("facebook.com"):
        return False
    if host in REDIRECT_HOSTS:
        return False
    path = parsed.path.lower()
    return any(path.startswith(p) for p in PLATFORM_LINK_PATHS)


def normalize_outbound_link(url: str | None) -> str | None:
    if not url or not is_http_url(url):
        return None
    parsed = urllib.parse.urlparse(url)
    host = (parsed.hostname or "").lower()
    qs = urllib.parse.parse_qs(parsed.query)

    if host in REDIRECT_HOSTS:
        target = qs.get("u", [None])[0]
        if not target:
            return None
        return normalize_outbound_link(target)
    if host == "facebook.com" or host.endswith(".facebook.com"):
        # profile, library and policy pages are not the advertiser's destination
        return None

    clean_qs = [(k, v) for k, vs in qs.items() for v in vs if k not in TRACKER_PARAMS and not k.startswith("utm_")]
    clean_query = urllib.parse.urlencode(clean_qs)
    return urllib.parse.urlunparse((parsed.scheme, parsed.netloc, parsed.path, parsed.params, clean_query, parsed.fragment))


__all__ = [
    "build_search_url",
    "is_blocked_url",
    "is_creative_cdn_url",
    "is_http_url",
    "is_platform_link",
    "normalize_outbound_link",
    "parse_srcset",
    "strip_query",
]
