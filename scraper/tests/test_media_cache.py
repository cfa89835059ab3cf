import asyncio
from datetime import datetime, timezone
from pathlib import Path

import pytest
from playwright.async_api import Error as PlaywrightError

from adlib_scraper.hashing import cache_key
from adlib_scraper.media_cache import MediaCache
from adlib_scraper.models import AdRecord, CrawlQuery, MediaType
from adlib_scraper.settings import CrawlSettings
from fakes import FakeHttp, FakeResponse, FakeSession, oversized_png_header, png_bytes

IMG = "https://scontent.xx.fbcdn.net/v/t39/creative.png?oh=1"
VID = "https://video.xx.fbcdn.net/v/t42/clip.mp4?efg=1"


def _cache(tmp_path, http, **overrides):
    settings = CrawlSettings(media_dir=str(tmp_path), **overrides)
    return MediaCache(FakeSession(), settings, http=http)


def test_fetch_downloads_once_and_reuses_path(tmp_path):
    http = FakeHttp({IMG: FakeResponse(body=png_bytes(), content_type="image/png")})
    cache = _cache(tmp_path, http)

    first = asyncio.run(cache.fetch("42", IMG, "image"))
    second = asyncio.run(cache.fetch("42", IMG, "image"))

    key = cache_key("42", IMG)
    assert first == second == f"/media/image/{key[:2]}/{key}.png"
    assert len(http.calls) == 1
    assert (tmp_path / "image" / key[:2] / f"{key}.png").is_file()


def test_fetch_sends_session_cookies_and_browser_headers(tmp_path):
    http = FakeHttp({IMG: FakeResponse(body=png_bytes(), content_type="image/png")})
    asyncio.run(_cache(tmp_path, http).fetch("42", IMG, "image"))
    call = http.calls[0]
    assert call["headers"]["User-Agent"] == FakeSession.user_agent
    assert call["headers"]["Referer"] == "https://www.facebook.com/"
    assert "c_user=1" in call["headers"]["Cookie"]
    assert call["headers"]["Sec-Fetch-Dest"] == "image"
    assert call["timeout"] == 45.0
    assert call["stream"] is True


def test_existing_file_is_a_cache_hit_without_network(tmp_path):
    key = cache_key("42", IMG)
    path = tmp_path / "image" / key[:2] / f"{key}.png"
    path.parent.mkdir(parents=True)
    path.write_bytes(png_bytes())
    http = FakeHttp()
    assert asyncio.run(_cache(tmp_path, http).fetch("42", IMG, "image")) is not None
    assert http.calls == []


def test_undersized_cached_file_is_evicted_and_refetched(tmp_path):
    key = cache_key("42", IMG)
    path = tmp_path / "image" / key[:2] / f"{key}.png"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"tiny")
    body = png_bytes()
    http = FakeHttp({IMG: FakeResponse(body=body, content_type="image/png")})
    assert asyncio.run(_cache(tmp_path, http).fetch("42", IMG, "image")) is not None
    assert len(http.calls) == 1
    assert path.read_bytes() == body


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(status_code=403, body=png_bytes()),
        FakeResponse(body=b"x" * 500, content_type="image/jpeg"),
        FakeResponse(body=b"<!DOCTYPE html><html>" + b" " * 20000, content_type="text/html"),
        FakeResponse(body=b"\x00" * 20000, content_type="application/octet-stream"),
    ],
    ids=["http_403", "too_small", "html_body", "undecodable"],
)
def test_bad_downloads_return_none_and_leave_no_file(tmp_path, response):
    http = FakeHttp({IMG: response})
    cache = _cache(tmp_path, http)
    assert asyncio.run(cache.fetch("42", IMG, "image")) is None
    assert not any(p.is_file() for p in Path(tmp_path).rglob("*"))


def test_failed_key_is_not_retried_within_run(tmp_path):
    http = FakeHttp({IMG: FakeResponse(status_code=500)})
    cache = _cache(tmp_path, http)
    asyncio.run(cache.fetch("42", IMG, "image"))
    asyncio.run(cache.fetch("42", IMG, "image"))
    assert len(http.calls) == 1


def test_oversized_body_is_rejected(tmp_path):
    http = FakeHttp({VID: FakeResponse(body=b"\x00" * 70_000, content_type="video/mp4")})
    cache = _cache(tmp_path, http, video_max_bytes=60_000)
    assert asyncio.run(cache.fetch("42", VID, "video")) is None


def test_video_is_stored_as_mp4(tmp_path):
    http = FakeHttp({VID: FakeResponse(body=b"\x00" * 60_000, content_type="video/mp4")})
    path = asyncio.run(_cache(tmp_path, http).fetch("42", VID, "video"))
    assert path.startswith("/media/video/")
    assert path.endswith(".mp4")


def test_localize_rewrites_record_urls(tmp_path):
    http = FakeHttp({IMG: FakeResponse(body=png_bytes(), content_type="image/png")})
    cache = _cache(tmp_path, http)
    record = AdRecord(
        identity="42",
        advertiser_name="ACME",
        media_type=MediaType.IMAGE,
        creative_url=IMG,
        image_url=IMG,
        query=CrawlQuery(keyword="acme"),
        discovered_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )
    localized = asyncio.run(cache.localize(record))
    assert localized.image_url.startswith("/media/image/")
    assert localized.creative_url == localized.image_url
    assert record.image_url == IMG


def test_non_http_urls_are_skipped(tmp_path):
    http = FakeHttp()
    assert asyncio.run(_cache(tmp_path, http).fetch("42", "blob:https://x", "video")) is None
    assert http.calls == []



def test_image_exceeding_pixel_limit_is_a_failed_download(tmp_path):
    http = FakeHttp({IMG: FakeResponse(body=oversized_png_header(), content_type="application/octet-stream")})
    cache = _cache(tmp_path, http)
    assert asyncio.run(cache.fetch("42", IMG, "image")) is None
    assert not any(p.is_file() for p in Path(tmp_path).rglob("*"))


def test_download_proceeds_without_cookies_when_context_is_gone(tmp_path):
    class ClosedSession(FakeSession):
        async def cookies(self):
            raise PlaywrightError("Target page, context or browser has been closed")

    http = FakeHttp({IMG: FakeResponse(body=png_bytes(), content_type="image/png")})
    cache = MediaCache(ClosedSession(), CrawlSettings(media_dir=str(tmp_path)), http=http)
    assert asyncio.run(cache.fetch("42", IMG, "image")) is not None
    assert "Cookie" not in http.calls[0]["headers"]
