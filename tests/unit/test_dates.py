from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from cafeteria_client.utils import dates


@pytest.mark.unit
@pytest.mark.parametrize(
    "parse, fmt, raw",
    [
        (dates.parse_gourmet_date, dates.format_gourmet_date, "02-09-2026"),
        (dates.parse_gourmet_order_date, dates.format_gourmet_order_date, "09.02.2026 11:30:00"),
        (dates.parse_ventopay_date, dates.format_ventopay_date, "09.02.2026"),
    ],
)
def test_site_date_formats_round_trip(parse, fmt, raw):
    assert fmt(parse(raw)) == raw


@pytest.mark.unit
def test_order_date_time_part_is_optional():
    assert dates.parse_gourmet_order_date("09.02.2026") == datetime(2026, 2, 9)


@pytest.mark.unit
def test_parse_ventopay_timestamp():
    assert dates.parse_ventopay_timestamp("09. Feb 2026 - 11:49 Uhr") == datetime(2026, 2, 9, 11, 49)
    assert dates.parse_ventopay_timestamp("3. Jän. 2026 - 7:05") == datetime(2026, 1, 3, 7, 5)


@pytest.mark.unit
@pytest.mark.parametrize("text", ["", "gestern", "09. Foo 2026 - 11:49"])
def test_parse_ventopay_timestamp_rejects_garbage(text):
    with pytest.raises(ValueError):
        dates.parse_ventopay_timestamp(text)


@pytest.mark.unit
@pytest.mark.parametrize(
    "text, expected",
    [
        ("€ 1,80", Decimal("1.80")),
        ("1.234,50", Decimal("1234.50")),
        ("-0,50 EUR", Decimal("-0.50")),
        ("", Decimal("0")),
        ("n/a", Decimal("0")),
    ],
)
def test_parse_german_amount(text, expected):
    assert dates.parse_german_amount(text) == expected


@pytest.mark.unit
def test_month_helpers():
    assert dates.month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert dates.month_key(date(2026, 3, 17)) == "2026-03"
    assert dates.shift_months(date(2026, 1, 31), 1) == date(2025, 12, 1)
    assert dates.shift_months(date(2026, 3, 5), 0) == date(2026, 3, 1)


@pytest.mark.unit
def test_ordering_cutoff_only_applies_to_today_after_half_past_twelve():
    today = date(2026, 2, 9)

    assert dates.is_ordering_cutoff(today, datetime(2026, 2, 9, 12, 29)) is False
    assert dates.is_ordering_cutoff(today, datetime(2026, 2, 9, 12, 30)) is True
    assert dates.is_ordering_cutoff(date(2026, 2, 10), datetime(2026, 2, 9, 18, 0)) is False


@pytest.mark.unit
def test_ordering_cutoff_converts_aware_times_to_vienna():
    # 11:45 UTC is 12:45 in Vienna (CET, winter)
    now = datetime(2026, 2, 9, 11, 45, tzinfo=timezone.utc)
    assert dates.is_ordering_cutoff(date(2026, 2, 9), now) is True
