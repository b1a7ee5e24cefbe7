from __future__ import annotations

import argparse
import dataclasses
import json
import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from cafeteria_client.config.settings import require_credentials, settings
from cafeteria_client.scraping.playwright_http import PlaywrightHttpSession
from cafeteria_client.services.gourmet_api import GourmetApi
from cafeteria_client.services.mapping import group_menus_by_day
from cafeteria_client.services.ventopay_api import VentopayApi
from cafeteria_client.utils.dates import parse_ventopay_date
from cafeteria_client.utils.logs import configure_logging

log = logging.getLogger(__name__)

GOURMET_COMMANDS = ("menus", "orders", "confirm-orders", "billing")


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


def _print_json(value: Any) -> None:
    print(json.dumps(_to_jsonable(value), ensure_ascii=False, indent=2))


def _run_gourmet(args: argparse.Namespace) -> None:
    username, password = require_credentials("gourmet")

    http = PlaywrightHttpSession(
        base_url=settings.gourmet_base_url,
        form_encoding="multipart",
        timeout_ms=settings.http_timeout_ms,
    )
    api = GourmetApi(http=http, max_menu_pages=settings.max_menu_pages)

    try:
        api.login(username, password)

        if args.cmd == "menus":
            _print_json(group_menus_by_day(api.get_menus()))
        elif args.cmd == "orders":
            _print_json(api.get_orders())
        elif args.cmd == "confirm-orders":
            _print_json({"confirmed": api.confirm_orders()})
        elif args.cmd == "billing":
            _print_json(api.get_monthly_billing(args.month_offset))
    finally:
        try:
            api.logout()
        finally:
            http.close()


def _run_ventopay(args: argparse.Namespace) -> None:
    username, password = require_credentials("ventopay")

    today = date.today()
    from_date = parse_ventopay_date(args.from_date) if args.from_date else today.replace(day=1)
    until_date = parse_ventopay_date(args.until_date) if args.until_date else today

    http = PlaywrightHttpSession(
        base_url=settings.ventopay_base_url,
        form_encoding="urlencoded",
        timeout_ms=settings.http_timeout_ms,
    )
    api = VentopayApi(http=http, company_id=settings.ventopay_company_id)

    try:
        api.login(username, password)
        _print_json(api.get_transactions(from_date, until_date))
    finally:
        try:
            api.logout()
        finally:
            http.close()


def main(argv: list[str] | None = None) -> None:
    """
    What it does:
    - Developer entrypoint against the live portals:
        1) menus / orders / confirm-orders / billing: Gourmet
        2) transactions: Ventopay

    Why it matters:
    - Lets you check the scrapers against the real sites without any app around them.

    Behavior:
    - Credentials come from .env / environment (GOURMET_*, VENTOPAY_*).
    - Results are printed as JSON on stdout; logs go to stderr.
    - Always logs out and closes the transport, also on errors.
    """
    parser = argparse.ArgumentParser(prog="cafeteria-portals")
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL from settings.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("menus", help="Gourmet: list the menus of all upcoming days.")
    sub.add_parser("orders", help="Gourmet: list ordered menus.")
    sub.add_parser("confirm-orders", help="Gourmet: confirm pending orders (leaves edit mode).")

    p_billing = sub.add_parser("billing", help="Gourmet: bills and totals of one month.")
    p_billing.add_argument(
        "--month-offset", type=int, default=0, help="0 = current month, 1 = previous month, ..."
    )

    p_tx = sub.add_parser("transactions", help="Ventopay: transactions in a date range.")
    p_tx.add_argument("--from", dest="from_date", default=None, help="dd.MM.yyyy (default: first of month)")
    p_tx.add_argument("--until", dest="until_date", default=None, help="dd.MM.yyyy (default: today)")

    args = parser.parse_args(argv)
    configure_logging(args.log_level or settings.log_level)

    if args.cmd in GOURMET_COMMANDS:
        _run_gourmet(args)
    else:
        _run_ventopay(args)


if __name__ == "__main__":
    main()
