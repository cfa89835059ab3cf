from datetime import date, datetime, timezone

from adlib_scraper.extractors.dates import (
    compute_active_days,
    extract_active_time_label,
    extract_dates,
    extract_end_date,
    extract_start_date,
    month_number,
    parse_date,
)
from adlib_scraper.models import AdStatus


def test_parse_date_portuguese_full_month():
    assert parse_date("18 de dezembro de 2025") == date(2025, 12, 18)


def test_parse_date_english_abbreviation():
    assert parse_date("Started running on Dec 18, 2025") == date(2025, 12, 18)


def test_parse_date_rejects_years_outside_window():
    assert parse_date("18 de dezembro de 1999") is None
    assert parse_date("Jan 2, 2031") is None


def test_parse_date_rejects_impossible_calendar_day():
    assert parse_date("31 de fevereiro de 2025") is None
    assert parse_date("Feb 30, 2024") is None


def test_month_number_honours_abbreviations_and_dots():
    assert month_number("dez", "pt") == 12
    assert month_number("Set.", "pt") == 9
    assert month_number("marco", "pt") == 3
    assert month_number("Sept", "en") == 9
    assert month_number("xx", "en") is None
    assert month_number("foo", "en") is None


def test_start_date_prefers_start_phrase():
    text = "Identificação da biblioteca: 99\nVeiculação iniciada em 3 de mar de 2025\nLoja"
    assert extract_start_date(text) == date(2025, 3, 3)


def test_start_and_end_from_delivery_range():
    text = "Library ID: 1\n10 de jan de 2025 - 20 de fev de 2025\nInativo"
    fields = extract_dates(text)
    assert fields.start_date == date(2025, 1, 10)
    assert fields.end_date == date(2025, 2, 20)


def test_end_date_from_phrase():
    assert extract_end_date("Anúncio encerrado em 5 de abril de 2025") == date(2025, 4, 5)
    assert extract_end_date("Stopped running on Apr 5, 2025") == date(2025, 4, 5)
    assert extract_end_date("Veiculação iniciada em 5 de abril de 2025") is None


def test_active_time_label_is_kept_raw():
    assert extract_active_time_label("Tempo total ativo: 3 dias\nOutra") == "3 dias"
    assert extract_active_time_label("Total time active 12 hrs") == "12 hrs"
    assert extract_active_time_label("nothing here") is None


def test_active_days_inactive_uses_end_date():
    assert compute_active_days(date(2025, 1, 1), date(2025, 1, 11), AdStatus.INACTIVE) == 10
    assert compute_active_days(date(2025, 1, 1), None, AdStatus.INACTIVE) is None


def test_active_days_active_rounds_up_to_now():
    now = datetime(2025, 1, 3, 6, 0, tzinfo=timezone.utc)
    assert compute_active_days(date(2025, 1, 1), None, AdStatus.ACTIVE, now) == 3


def test_active_days_null_without_start_or_when_end_precedes_start():
    assert compute_active_days(None, date(2025, 1, 1), AdStatus.INACTIVE) is None
    assert compute_active_days(date(2025, 2, 1), date(2025, 1, 1), AdStatus.INACTIVE) is None
