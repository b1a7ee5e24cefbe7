"""
ventopay_parser.py

What this module does
- Pure functions over Ventopay (ASP.NET Web Forms) pages: postback state,
  session detection, the transactions list and receipt positions.

Behavior summary
- No I/O.
- Amounts are German formatted ("€ 1,80"); timestamps are localized
  ("09. Feb 2026 - 11:49 Uhr").
- Cafeteria (Gourmet) transactions are excluded: the Gourmet billing feed
  already reports them.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Tag

from cafeteria_client.domain.models import AspNetState, Transaction, TransactionPosition
from cafeteria_client.utils.dates import parse_german_amount, parse_ventopay_timestamp
from cafeteria_client.utils.errors import ParseError
from cafeteria_client.utils.logs import html_snippet

log = logging.getLogger(__name__)

GOURMET_RESTAURANT_RE = re.compile(r"gourmet", re.IGNORECASE)

_LOGOUT_HREF_RE = re.compile(r"""href\s*=\s*["'][^"']*Ausloggen\.aspx""", re.IGNORECASE)
_LOGOUT_ID_RE = re.compile(r"""id\s*=\s*["'][^"']*(?:Logout|Ausloggen)[^"']*["']""", re.IGNORECASE)
_TITLE_RE = re.compile(r"€\s*(-?[\d.,]+)\s*\((.+)\)\s*$")
_QUANTITY_RE = re.compile(r"(\d+)\s*x", re.IGNORECASE)


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def extract_aspnet_state(html: str) -> AspNetState:
    """
    What it does:
    - Reads all six hidden postback fields of an ASP.NET page.

    Behavior:
    - __VIEWSTATE, __VIEWSTATEGENERATOR and __EVENTVALIDATION are required (ParseError).
    - __LASTFOCUS, __EVENTTARGET, __EVENTARGUMENT default to "" but are still returned,
      because the server expects them on every POST.
    """
    soup = _soup(html)

    def value(field_id: str) -> str | None:
        el = soup.find(id=field_id)
        if el is None:
            el = soup.find("input", attrs={"name": field_id})
        return el.get("value") if el is not None else None

    view_state = value("__VIEWSTATE")
    generator = value("__VIEWSTATEGENERATOR")
    validation = value("__EVENTVALIDATION")

    if not view_state or not generator or not validation:
        log.warning("ASP.NET state missing: %s", html_snippet(html))
        raise ParseError("Could not extract ASP.NET state from page")

    return AspNetState(
        view_state=view_state,
        view_state_generator=generator,
        event_validation=validation,
        last_focus=value("__LASTFOCUS") or "",
        event_target=value("__EVENTTARGET") or "",
        event_argument=value("__EVENTARGUMENT") or "",
    )


def is_authenticated(html: str) -> bool:
    page = html or ""
    return bool(_LOGOUT_HREF_RE.search(page) or _LOGOUT_ID_RE.search(page))


def parse_transaction_title(text: str) -> tuple[str, str]:
    """Splits "€ 1,80 (Café + Co. Automaten)" into ("1,80", "Café + Co. Automaten")."""
    cleaned = " ".join((text or "").split())
    m = _TITLE_RE.search(cleaned)
    if m:
        return m.group(1), m.group(2).strip()
    return cleaned, cleaned


def parse_transactions(html: str, *, exclude: re.Pattern[str] | None = GOURMET_RESTAURANT_RE) -> list[Transaction]:
    """
    What it does:
    - Parses the transactions page into Transaction rows.

    Behavior:
    - Rows without an id or title are skipped.
    - Rows whose restaurant matches `exclude` are dropped (pass None to keep all).
    - An unparsable timestamp raises ParseError.
    """
    transactions: list[Transaction] = []

    for row in _soup(html).select("div.transact"):
        transaction_id = row.get("id") or ""
        if not transaction_id:
            continue

        title_el = row.select_one(".transact_title")
        title = title_el.get_text(" ", strip=True) if title_el is not None else ""
        if not title:
            continue

        amount_text, restaurant = parse_transaction_title(title)
        if exclude is not None and exclude.search(restaurant):
            continue

        stamp_el = row.select_one(".transact_timestamp")
        stamp = stamp_el.get_text(" ", strip=True) if stamp_el is not None else ""
        try:
            when = parse_ventopay_timestamp(stamp)
        except ValueError as e:
            raise ParseError(f"Invalid timestamp for transaction {transaction_id}: {stamp!r}") from e

        link = row.find("a", href=True)

        transactions.append(
            Transaction(
                id=transaction_id,
                date=when,
                amount=parse_german_amount(amount_text),
                restaurant=restaurant,
                location=restaurant,
                receipt_path=link["href"].strip() if link is not None else None,
            )
        )

    return transactions


def _clean_position_name(text: str) -> str:
    s = " ".join(text.split())
    s = re.sub(r"^\d+\s*[xX]\s*", "", s)  # "1 x Kaffee"
    s = re.sub(r"^[•\-]\s*", "", s)
    s = re.sub(r"\s*[-:]\s*$", "", s)
    s = re.sub(r"\s*\(.*?\)\s*$", "", s)
    return s.strip()


def _cell_text(cell: Tag) -> str:
    return " ".join(cell.get_text(" ", strip=True).split())


def parse_transaction_positions(html: str) -> list[TransactionPosition]:
    """
    What it does:
    - Parses the line items of a receipt page (rechnung.aspx).

    Behavior:
    - Reads the first table after the "Positionen" section title.
    - Skips separator rows, total rows (containing "EUR") and rows with fewer than 5 cells.
    - Returns [] when the page has no positions table.
    """
    soup = _soup(html)

    title = next(
        (el for el in soup.select("div.section_title") if "Positionen" in el.get_text()),
        None,
    )
    table = title.find_next("table") if title is not None else None
    if table is None:
        return []

    rows = table.select("tbody tr") or table.find_all("tr")
    positions: list[TransactionPosition] = []

    for row in rows:
        if "rechnungsdetail_position_line" in (row.get("class") or []):
            continue
        if "EUR" in row.get_text().upper():
            continue

        cells = row.find_all("td")
        if len(cells) < 5:
            continue

        m = _QUANTITY_RE.search(_cell_text(cells[0]))
        positions.append(
            TransactionPosition(
                name=_clean_position_name(_cell_text(cells[1])),
                quantity=int(m.group(1)) if m else 1,
                unit_price=parse_german_amount(_cell_text(cells[2])),
                subsidy=parse_german_amount(_cell_text(cells[3])),
                total=parse_german_amount(_cell_text(cells[4])),
            )
        )

    return positions
