from dataclasses import replace
from datetime import date, datetime, timezone

from adlib_scraper.hashing import DERIVED_PREFIX
from adlib_scraper.models import AdStatus, CrawlQuery, MediaType, Platform
from adlib_scraper.parser import (
    REJECT_MISSING_ADVERTISER,
    REJECT_NO_MEDIA,
    REJECT_SPONSORED_LABEL,
    AdCardParser,
    Rejected,
)
from fakes import CDN, make_card

NOW = datetime(2025, 12, 20, 12, 0, tzinfo=timezone.utc)
TODAY = date(2025, 12, 20)
QUERY = CrawlQuery(keyword="energia solar")


def _parser():
    return AdCardParser(clock=lambda: NOW)


def test_parse_full_card():
    record = _parser().parse(make_card(), QUERY, TODAY)
    assert not isinstance(record, Rejected)
    assert record.identity == "1234567890"
    assert record.library_id == "1234567890"
    assert record.advertiser_name == "Loja Solar Brasil"
    assert record.body_text.startswith("Economize até 95%")
    assert record.media_type is MediaType.IMAGE
    assert record.image_url == record.creative_url
    assert record.outbound_link == "https://lojasolar.com.br/oferta"
    assert record.platforms == (Platform.FACEBOOK,)
    assert record.start_date == date(2025, 12, 18)
    assert record.status is AdStatus.ACTIVE
    assert record.active_days == 3
    assert record.query is QUERY
    assert record.discovered_at == NOW


def test_card_without_media_is_rejected():
    result = _parser().parse(make_card(image=None, video=None), QUERY, TODAY)
    assert isinstance(result, Rejected)
    assert result.reason == REJECT_NO_MEDIA


def test_card_without_advertiser_is_rejected_as_sponsored_label():
    result = _parser().parse(make_card(advertiser=None), QUERY, TODAY)
    assert isinstance(result, Rejected)
    assert result.reason == REJECT_SPONSORED_LABEL


def test_card_with_no_name_text_is_missing_advertiser():
    card = replace(make_card(advertiser=None), headings=[])
    result = _parser().parse(card, QUERY, TODAY)
    assert isinstance(result, Rejected)
    assert result.reason == REJECT_MISSING_ADVERTISER


def test_video_card_prefers_video_as_creative():
    card = make_card(video="https://video.xx.fbcdn.net/o1/v/clip.mp4?efg=1")
    record = _parser().parse(card, QUERY, TODAY)
    assert record.media_type is MediaType.VIDEO
    assert record.creative_url == "https://video.xx.fbcdn.net/o1/v/clip.mp4?efg=1"
    assert record.image_url is not None


def test_inactive_card_uses_delivery_range():
    card = make_card(extra_text="Inativo\n1 de dez de 2025 - 11 de dez de 2025\nTempo total ativo: 10 dias")
    record = _parser().parse(card, QUERY, TODAY)
    assert record.status is AdStatus.INACTIVE
    assert record.start_date == date(2025, 12, 1)
    assert record.end_date == date(2025, 12, 11)
    assert record.active_days == 10
    assert record.active_time_label == "10 dias"


def test_derived_identity_is_stable_across_signed_urls():
    p = _parser()
    a = make_card(library_id=None, image=f"{CDN}/same.jpg?oh=1&oe=2")
    b = make_card(library_id=None, image=f"{CDN}/same.jpg?oh=3&oe=4")
    ida, idb = p.identify(a, TODAY), p.identify(b, TODAY)
    assert ida == idb
    assert ida.startswith(DERIVED_PREFIX)
    assert p.parse(a, QUERY, TODAY).identity == ida
    assert p.identify(a, date(2025, 12, 21)) != ida
