from __future__ import annotations

import calendar
import re
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from zoneinfo import ZoneInfo

GOURMET_DATE_FORMAT = "%m-%d-%Y"
GOURMET_ORDER_DATE_FORMAT = "%d.%m.%Y %H:%M:%S"
VENTOPAY_DATE_FORMAT = "%d.%m.%Y"

VIENNA = ZoneInfo("Europe/Vienna")
ORDERING_CUTOFF = time(12, 30)

GERMAN_MONTHS = {
    "jan": 1,
    "jän": 1,
    "feb": 2,
    "mär": 3,
    "mar": 3,
    "apr": 4,
    "mai": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "okt": 10,
    "nov": 11,
    "dez": 12,
}

_TIMESTAMP_RE = re.compile(r"(\d{1,2})\.\s*(\w{3})\w*\.?\s+(\d{4})\s*-\s*(\d{1,2}):(\d{2})")


def format_gourmet_date(d: date) -> str:
    return d.strftime(GOURMET_DATE_FORMAT)


def parse_gourmet_date(s: str) -> date:
    """Parses `MM-dd-yyyy` (menu data attributes and cart payloads)."""
    return datetime.strptime(s.strip(), GOURMET_DATE_FORMAT).date()


def format_gourmet_order_date(dt: datetime) -> str:
    return dt.strftime(GOURMET_ORDER_DATE_FORMAT)


def parse_gourmet_order_date(s: str) -> datetime:
    """Parses `dd.MM.yyyy HH:mm:ss` from the orders page; the time part is optional."""
    value = s.strip()
    if " " not in value:
        return datetime.strptime(value, VENTOPAY_DATE_FORMAT)
    return datetime.strptime(value, GOURMET_ORDER_DATE_FORMAT)


def format_ventopay_date(d: date) -> str:
    return d.strftime(VENTOPAY_DATE_FORMAT)


def parse_ventopay_date(s: str) -> date:
    return datetime.strptime(s.strip(), VENTOPAY_DATE_FORMAT).date()


def parse_ventopay_timestamp(text: str) -> datetime:
    """
    Parses the localized Ventopay timestamp, e.g. "09. Feb 2026 - 11:49 Uhr".

    Raises ValueError for anything else.
    """
    m = _TIMESTAMP_RE.search(text or "")
    if not m:
        raise ValueError(f"Unrecognized Ventopay timestamp: {text!r}")

    day, month_name, year, hours, minutes = m.groups()
    month = GERMAN_MONTHS.get(month_name.lower())
    if month is None:
        raise ValueError(f"Unknown month name in timestamp: {text!r}")

    return datetime(int(year), month, int(day), int(hours), int(minutes))


def parse_german_amount(text: str) -> Decimal:
    """
    Parses German-formatted money ("€ 1,80", "1.234,50", "-0,50 EUR").

    Empty or unparsable input yields Decimal("0").
    """
    cleaned = re.sub(r"[^\d,.\-]", "", text or "")
    cleaned = cleaned.replace(".", "").replace(",", ".")
    if not cleaned or cleaned in ("-", "."):
        return Decimal("0")
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def shift_months(d: date, offset: int) -> date:
    """First day of the month `offset` months before `d`'s month."""
    index = d.year * 12 + (d.month - 1) - offset
    return date(index // 12, index % 12 + 1, 1)


def is_ordering_cutoff(menu_day: date, now: datetime | None = None) -> bool:
    """
    What it does:
    - Tells whether today's menu can no longer be ordered.

    Behavior:
    - Only `menu_day == today` (Vienna time) can be cut off; any other day returns False.
    - Naive `now` values are taken as Vienna local time.
    """
    current = now or datetime.now(VIENNA)
    if current.tzinfo is None:
        current = current.replace(tzinfo=VIENNA)
    else:
        current = current.astimezone(VIENNA)

    if menu_day != current.date():
        return False
    return current.time() >= ORDERING_CUTOFF
