"""
ventopay_api.py

What this module does
- Drives the Ventopay payment portal (ASP.NET Web Forms): login, transaction
  history, receipt positions and logout.

Behavior summary
- Read-only site: the only POST is the login postback.
- Same session guard as Gourmet: one silent re-login and one re-fetch per read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from cafeteria_client.domain.models import Credentials, Transaction, TransactionPosition
from cafeteria_client.scraping import ventopay_parser as parser
from cafeteria_client.services.http_client import HttpSessionClient
from cafeteria_client.utils.dates import format_ventopay_date, month_bounds
from cafeteria_client.utils.errors import LoginFailure, PortalError, SessionExpiredError

log = logging.getLogger(__name__)

DEFAULT_COMPANY_ID = "0da8d3ec-0178-47d5-9ccd-a996f04acb61"


@dataclass(frozen=True)
class VentopayEndpoints:
    """Page paths relative to the Ventopay base URL (which carries the app path)."""

    login: str = "Login.aspx"
    transactions: str = "Transaktionen.aspx"
    logout: str = "Ausloggen.aspx"


class VentopayApi:
    """
    Session-owning client for the Ventopay portal.

    Behavior:
    - Unauthenticated until login() succeeds; logout() always returns to unauthenticated.
    - `company_id` selects the tenant in the login form's company dropdown.
    """

    def __init__(
        self,
        *,
        http: HttpSessionClient,
        endpoints: VentopayEndpoints | None = None,
        company_id: str = DEFAULT_COMPANY_ID,
    ) -> None:
        self.http = http
        self.urls = endpoints or VentopayEndpoints()
        self.company_id = company_id

        self._authenticated = False
        self._credentials: Credentials | None = None

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated

    def _clear_state(self) -> None:
        self._authenticated = False
        self._credentials = None

    # -------------------- Session --------------------

    def login(self, username: str, password: str) -> None:
        """
        What it does:
        - Submits the login postback with the page's ASP.NET state.

        Behavior:
        - A page that already shows a logged-in user is logged out first
          (GET logout, GET login again) so the form state belongs to a fresh session.
        - Success is decided by the response markup only. LoginFailure otherwise.
        """
        log.info("Ventopay login as %s", username)
        page = self.http.get(self.urls.login)

        if parser.is_authenticated(page):
            log.info("Stale Ventopay session detected, logging it out before login")
            self.http.get(self.urls.logout)
            page = self.http.get(self.urls.login)

        state = parser.extract_aspnet_state(page)
        response = self.http.post_form(
            self.urls.login,
            {
                **state.as_form_fields(),
                "DropDownList1": self.company_id,
                "TxtUsername": username,
                "TxtPassword": password,
                "BtnLogin": "Login",
                "languageRadio": "DE",
            },
        )

        if not parser.is_authenticated(response):
            self._clear_state()
            raise LoginFailure("Ventopay login failed: invalid credentials or account blocked")

        self._authenticated = True
        self._credentials = Credentials(username=username, password=password)
        log.info("Ventopay login successful")

    def logout(self) -> None:
        try:
            self.http.get(self.urls.logout)
        except PortalError as e:
            log.warning("Ventopay logout request failed (ignored): %s", e)
        finally:
            self._clear_state()
            self.http.reset()
            log.info("Ventopay session cleared")

    def _fetch_authenticated(self, url: str, params: dict[str, str] | None = None) -> str:
        page = self.http.get(url, params)
        if parser.is_authenticated(page):
            return page

        self._authenticated = False
        if self._credentials is None:
            raise SessionExpiredError("Ventopay session expired and no credentials are stored")

        log.info("Ventopay session expired, logging in again")
        creds = self._credentials
        self.login(creds.username, creds.password)

        page = self.http.get(url, params)
        if not parser.is_authenticated(page):
            raise SessionExpiredError("Ventopay session lost again right after re-login")
        return page

    # -------------------- Reads --------------------

    def get_transactions(self, from_date: date, until_date: date) -> list[Transaction]:
        """
        Transactions between two days (both inclusive), cafeteria entries excluded.
        """
        if from_date > until_date:
            raise ValueError("from_date must not be after until_date")

        page = self._fetch_authenticated(
            self.urls.transactions,
            {
                "fromDate": format_ventopay_date(from_date),
                "untilDate": format_ventopay_date(until_date),
            },
        )
        transactions = parser.parse_transactions(page)
        log.info(
            "Fetched %d Ventopay transactions (%s - %s)",
            len(transactions),
            from_date.isoformat(),
            until_date.isoformat(),
        )
        return transactions

    def get_month_transactions(self, year: int, month: int) -> list[Transaction]:
        first, last = month_bounds(year, month)
        return self.get_transactions(first, last)

    def get_transaction_positions(self, transaction: Transaction) -> list[TransactionPosition]:
        """
        Fetches the receipt page linked from a transaction row.

        Transactions without a receipt link have no positions ([]).
        """
        if not transaction.receipt_path:
            log.debug("Transaction %s has no receipt link", transaction.id)
            return []

        page = self._fetch_authenticated(transaction.receipt_path)
        return parser.parse_transaction_positions(page)
