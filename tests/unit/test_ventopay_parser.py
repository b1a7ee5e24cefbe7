from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from cafeteria_client.scraping import ventopay_parser as parser
from cafeteria_client.utils.errors import ParseError


@pytest.mark.unit
def test_extract_aspnet_state_keeps_all_six_fields_in_order(ventopay_pages):
    state = parser.extract_aspnet_state(ventopay_pages.login("abc"))

    assert list(state.as_form_fields().items()) == [
        ("__LASTFOCUS", ""),
        ("__EVENTTARGET", ""),
        ("__EVENTARGUMENT", ""),
        ("__VIEWSTATE", "abc-viewstate"),
        ("__VIEWSTATEGENERATOR", "C2EE9ABB"),
        ("__EVENTVALIDATION", "abc-validation"),
    ]


@pytest.mark.unit
def test_extract_aspnet_state_requires_viewstate():
    with pytest.raises(ParseError):
        parser.extract_aspnet_state('<input id="__VIEWSTATEGENERATOR" value="x">')


@pytest.mark.unit
def test_is_authenticated(ventopay_pages):
    assert parser.is_authenticated(ventopay_pages.login()) is False
    assert parser.is_authenticated(ventopay_pages.home()) is True
    assert parser.is_authenticated('<a id="btnAusloggen">Abmelden</a>') is True


@pytest.mark.unit
def test_parse_transaction_title():
    assert parser.parse_transaction_title("€ 1,80 (Café + Co. Automaten)") == ("1,80", "Café + Co. Automaten")
    assert parser.parse_transaction_title("  €  -0,50\n (Kantine (Süd))  ") == ("-0,50", "Kantine (Süd)")


@pytest.mark.unit
def test_parse_transactions_drops_cafeteria_entries(ventopay_pages):
    """
    What it does:
    - Parses four rows, one of them booked by the cafeteria.

    Why it matters:
    - Cafeteria meals are already in the Gourmet billing feed; keeping them would double-count.
    """
    html = ventopay_pages.transactions(
        [
            ventopay_pages.transaction("T1", "€ 1,80 (Café + Co. Automaten)", href="rechnung.aspx?id=T1"),
            ventopay_pages.transaction("T2", "€ 5,10 (Gourmet Kantine)"),
            ventopay_pages.transaction("T3", "€ 2,40 (Café Bar)", stamp="10. Mär 2026 - 08:05 Uhr"),
            ventopay_pages.transaction("T4", "€ 1.234,50 (Shop)", stamp="1. Dez. 2025 - 17:30 Uhr"),
        ]
    )

    txs = parser.parse_transactions(html)

    assert [t.id for t in txs] == ["T1", "T3", "T4"]
    assert txs[0].amount == Decimal("1.80")
    assert txs[0].restaurant == "Café + Co. Automaten"
    assert txs[0].date == datetime(2026, 2, 9, 11, 49)
    assert txs[0].receipt_path == "rechnung.aspx?id=T1"
    assert txs[1].date == datetime(2026, 3, 10, 8, 5)
    assert txs[1].receipt_path is None
    assert txs[2].amount == Decimal("1234.50")
    assert txs[2].date == datetime(2025, 12, 1, 17, 30)


@pytest.mark.unit
def test_parse_transactions_keeps_everything_without_filter(ventopay_pages):
    html = ventopay_pages.transactions([ventopay_pages.transaction("T2", "€ 5,10 (Gourmet Kantine)")])
    assert [t.id for t in parser.parse_transactions(html, exclude=None)] == ["T2"]


@pytest.mark.unit
def test_bad_timestamp_raises_parse_error(ventopay_pages):
    html = ventopay_pages.transactions([ventopay_pages.transaction("T1", "€ 1,80 (Bar)", stamp="gestern")])
    with pytest.raises(ParseError, match="T1"):
        parser.parse_transactions(html)


@pytest.mark.unit
def test_parse_transaction_positions(ventopay_pages):
    positions = parser.parse_transaction_positions(ventopay_pages.receipt())

    assert [(p.name, p.quantity) for p in positions] == [("Kaffee groß", 1), ("Semmel", 2)]
    assert positions[1].unit_price == Decimal("0.60")
    assert positions[1].subsidy == Decimal("0.10")
    assert positions[1].total == Decimal("1.10")


@pytest.mark.unit
def test_receipt_without_positions_table_is_empty(ventopay_pages):
    assert parser.parse_transaction_positions(ventopay_pages.home()) == []
