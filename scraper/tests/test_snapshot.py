from adlib_scraper.extractors import extract_platforms
from adlib_scraper.models import Platform
from adlib_scraper.snapshot import CARD_SNAPSHOT_JS, HTML_EXCERPT_CHARS, CardSnapshot


def test_platform_section_absent_stays_none():
    card = CardSnapshot.from_dict({"text": "x", "labels": ["Instagram"]})
    assert card.platform_section is None
    assert extract_platforms(card.platform_section, card.labels) == (Platform.INSTAGRAM,)


def test_platform_section_present_but_empty_is_a_list():
    card = CardSnapshot.from_dict({"platform_section": [], "labels": ["Instagram"]})
    assert card.platform_section == []


def test_platform_section_styles_are_kept_as_strings():
    card = CardSnapshot.from_dict({"platform_section": ["mask-position: 0px -1188px;", None, ""]})
    assert card.platform_section == ["mask-position: 0px -1188px;"]


def test_non_dict_items_are_dropped():
    card = CardSnapshot.from_dict(
        {
            "links": [{"href": "https://a.example", "text": "a"}, "junk", None],
            "images": [{"src": "https://scontent.xx.fbcdn.net/a.jpg"}, 3],
            "videos": ["https://video.xx.fbcdn.net/v.mp4"],
            "headings": ["ACME", None, ""],
        }
    )
    assert card.links == [{"href": "https://a.example", "text": "a"}]
    assert card.images == [{"src": "https://scontent.xx.fbcdn.net/a.jpg"}]
    assert card.videos == []
    assert card.headings == ["ACME"]


def test_missing_fields_default_empty():
    card = CardSnapshot.from_dict({})
    assert card.text == ""
    assert card.dir_auto_blocks == []
    assert card.carousel_indicator is False
    assert card.html_excerpt == ""


def test_html_excerpt_is_clipped():
    card = CardSnapshot.from_dict({"html_excerpt": "<div>" + "x" * (HTML_EXCERPT_CHARS * 2)})
    assert len(card.html_excerpt) == HTML_EXCERPT_CHARS


def test_page_script_embeds_locale_markers():
    assert "Identificação da biblioteca" in CARD_SNAPSHOT_JS
    assert '"plataformas"' in CARD_SNAPSHOT_JS
    assert f"substring(0, {HTML_EXCERPT_CHARS})" in CARD_SNAPSHOT_JS
