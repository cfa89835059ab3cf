"""Content-addressable downloader for creative images and videos."""

from __future__ import annotations

import asyncio
from dataclasses import replace

import requests
from playwright.async_api import Error as PlaywrightError

from .errors import DownloadError
from .hashing import ImageFingerprint, cache_key, fingerprint_image
from .logging import adlog, jlog
from .models import AdRecord, MediaAsset
from .settings import CrawlSettings
from .storage import MEDIA_KINDS, infer_extension, media_file_path, media_public_path, write_atomic
from .urls import is_http_url

SITE_ORIGIN = "https://www.facebook.com"
CHUNK_BYTES = 64 * 1024
ACCEPT_BY_KIND = {
    "image": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
    "video": "video/webm,video/mp4,video/*;q=0.9,*/*;q=0.5",
}
_HTML_PREFIXES = (b"<!doctype html", b"<html")


def _make_http() -> requests.Session:
    s = requests.Session()
    s.headers.update({"Referer": f"{SITE_ORIGIN}/", "Origin": SITE_ORIGIN})
    return s


class MediaCache:
    """Download each (ad, origin URL) pair at most once per run and once per disk."""

    def __init__(self, session, settings: CrawlSettings, http: requests.Session | None = None) -> None:
        self.session = session
        self.settings = settings
        self.http = http or _make_http()
        self._failed: set[str] = set()
        self._assets: dict[str, MediaAsset] = {}

    async def _headers(self, kind: str) -> dict[str, str]:
        try:
            cookies = await self.session.cookies()
        except PlaywrightError as exc:
            jlog("warning", event="media_cookies_unavailable", error=str(exc))
            cookies = {}
        headers = {
            "User-Agent": self.session.user_agent,
            "Referer": f"{SITE_ORIGIN}/",
            "Origin": SITE_ORIGIN,
            "Accept": ACCEPT_BY_KIND[kind],
            "Accept-Language": self.settings.accept_language,
            "Sec-Fetch-Dest": kind,
            "Sec-Fetch-Mode": "no-cors",
            "Sec-Fetch-Site": "cross-site",
        }
        if cookies:
            headers["Cookie"] = "; ".join(f"{k}={v}" for k, v in cookies.items())
        return headers

    def _download(self, url: str, kind: str, headers: dict[str, str]) -> tuple[bytes, str]:
        limit = self.settings.max_bytes(kind)
        resp = self.http.get(url, headers=headers, timeout=self.settings.timeout_s(kind), stream=True)
        try:
            if resp.status_code != 200:
                raise DownloadError(f"HTTP {resp.status_code}")
            declared = resp.headers.get("Content-Length")
            if declared and declared.isdigit() and int(declared) > limit:
                raise DownloadError(f"declared size {declared} exceeds {limit}")
            chunks: list[bytes] = []
            total = 0
            for chunk in resp.iter_content(chunk_size=CHUNK_BYTES):
                total += len(chunk)
                if total > limit:
                    raise DownloadError(f"body exceeds {limit} bytes")
                chunks.append(chunk)
            return b"".join(chunks), resp.headers.get("Content-Type", "") or ""
        finally:
            resp.close()

    def _validate(self, body: bytes, content_type: str, kind: str) -> ImageFingerprint | None:
        minimum = self.settings.min_bytes(kind)
        if len(body) < minimum:
            raise DownloadError(f"body too small ({len(body)} < {minimum} bytes)")
        ctype = content_type.lower()
        if "text/html" in ctype or body[:64].lstrip().lower().startswith(_HTML_PREFIXES):
            raise DownloadError("received an HTML page instead of media")
        if kind != "image":
            return None
        fingerprint = fingerprint_image(body)
        if fingerprint is None and not ctype.startswith("image/"):
            raise DownloadError("body is not a decodable image")
        return fingerprint

    def _cached(self, key: str, kind: str, ext: str, origin_url: str) -> MediaAsset | None:
        if key in self._assets:
            return self._assets[key]
        path = media_file_path(self.settings.media_dir, kind, key, ext)
        if not path.is_file():
            return None
        size = path.stat().st_size
        if size < self.settings.min_bytes(kind):
            path.unlink(missing_ok=True)
            jlog("info", event="media_evicted", path=str(path), size_bytes=size)
            return None
        asset = MediaAsset(
            cache_key=key,
            origin_url=origin_url,
            local_path=media_public_path(kind, key, ext, self.settings.media_url_prefix),
            file_path=str(path),
            kind=kind,
            size_bytes=size,
        )
        self._assets[key] = asset
        return asset

    async def fetch_asset(self, identity: str, origin_url: str, kind: str) -> MediaAsset | None:
        if kind not in MEDIA_KINDS:
            raise ValueError(f"unknown media kind {kind!r}")
        if not is_http_url(origin_url):
            return None
        key = cache_key(identity, origin_url)
        if key in self._failed:
            return None
        ext = infer_extension(origin_url, kind)
        cached = self._cached(key, kind, ext, origin_url)
        if cached:
            return cached

        path = media_file_path(self.settings.media_dir, kind, key, ext)
        try:
            headers = await self._headers(kind)
            body, content_type = await asyncio.to_thread(self._download, origin_url, kind, headers)
            fingerprint = self._validate(body, content_type, kind)
            await asyncio.to_thread(write_atomic, path, body)
        except (DownloadError, requests.RequestException, OSError) as exc:
            self._failed.add(key)
            jlog("warning", event="media_download_failed", identity=identity, kind=kind, url=origin_url, error=str(exc))
            return None

        asset = MediaAsset(
            cache_key=key,
            origin_url=origin_url,
            local_path=media_public_path(kind, key, ext, self.settings.media_url_prefix),
            file_path=str(path),
            kind=kind,
            size_bytes=len(body),
            sha256=fingerprint.sha256 if fingerprint else None,
            width=fingerprint.width if fingerprint else None,
            height=fingerprint.height if fingerprint else None,
        )
        self._assets[key] = asset
        jlog("info", event="media_cached", identity=identity, kind=kind, path=asset.local_path, size_bytes=asset.size_bytes)
        return asset

    async def fetch(self, identity: str, origin_url: str, kind: str) -> str | None:
        """Local public path of the cached file, or None when it cannot be cached."""

        asset = await self.fetch_asset(identity, origin_url, kind)
        return asset.local_path if asset else None

    async def localize(self, record: AdRecord) -> AdRecord:
        """Point the record's media URLs at cached copies where downloads succeed."""

        if not self.settings.download_media:
            return record
        image_local = await self.fetch(record.identity, record.image_url, "image") if record.image_url else None
        video_local = await self.fetch(record.identity, record.video_url, "video") if record.video_url else None
        if not image_local and not video_local:
            return record
        creative = record.creative_url
        if record.video_url and record.creative_url == record.video_url and video_local:
            creative = video_local
        elif record.image_url and record.creative_url == record.image_url and image_local:
            creative = image_local
        adlog("media_localized", identity=record.identity, advertiser=record.advertiser_name, creative_url=creative)
        return replace(
            record,
            image_url=image_local or record.image_url,
            video_url=video_local or record.video_url,
            creative_url=creative,
        )


__all__ = ["MediaCache"]
