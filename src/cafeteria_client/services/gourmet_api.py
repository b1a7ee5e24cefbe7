"""
gourmet_api.py

What this module does
- Drives the Gourmet cafeteria portal: login, menus, orders, cart, confirm,
  cancel, billing and logout.

Why it matters
- The portal is a server-rendered Umbraco site; every write depends on tokens
  from the page fetched just before it, and sessions expire silently.

Behavior summary
- Reads are guarded: an unauthenticated page triggers ONE silent re-login with
  the remembered credentials and ONE re-fetch. Anything else surfaces.
- The orders page edit mode is handled as EditMode; the inverted wire value
  never leaves the parser/models.
- One operation at a time per instance: concurrent writes would interleave
  edit-mode toggles on the remote side.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date

from cafeteria_client.domain.enums import EditMode
from cafeteria_client.domain.models import (
    Bill,
    CartItem,
    Credentials,
    MenuItem,
    MonthlyBilling,
    OrderedMenu,
    UserInfo,
)
from cafeteria_client.scraping import gourmet_parser as parser
from cafeteria_client.services.http_client import HttpSessionClient
from cafeteria_client.services.mapping import map_bills, parse_cart_response, summarize_month
from cafeteria_client.utils.dates import format_gourmet_date, month_key, shift_months
from cafeteria_client.utils.errors import (
    CartFailure,
    EditModeTransitionFailure,
    LoginFailure,
    NotLoggedInError,
    ParseError,
    PortalError,
    SessionExpiredError,
)

log = logging.getLogger(__name__)

MAX_MENU_PAGES = 10


@dataclass(frozen=True)
class GourmetEndpoints:
    """
    Centralized paths of the Gourmet site (relative to the session base URL).

    The portal markup and routes can change; keep every path in one place.
    """

    start: str = "/start/"
    menus: str = "/menus/"
    orders: str = "/bestellungen/"
    add_to_cart: str = "/umbraco/api/AlaCartApi/AddToMenuesCart"
    billings: str = "/umbraco/api/AlaMyBillingApi/GetMyBillings"


class GourmetApi:
    """
    Session-owning client for the Gourmet portal.

    What it does:
    - Wraps one HttpSessionClient (multipart forms) and the Gourmet parser.

    Behavior:
    - Unauthenticated until login() succeeds; logout() always returns to unauthenticated.
    - Credentials are kept in memory only, for silent re-login.
    """

    def __init__(
        self,
        *,
        http: HttpSessionClient,
        endpoints: GourmetEndpoints | None = None,
        max_menu_pages: int = MAX_MENU_PAGES,
    ) -> None:
        if max_menu_pages < 1:
            raise ValueError("max_menu_pages must be at least 1")

        self.http = http
        self.urls = endpoints or GourmetEndpoints()
        self.max_menu_pages = max_menu_pages

        self._user_info: UserInfo | None = None
        self._credentials: Credentials | None = None

    # -------------------- State --------------------

    @property
    def user_info(self) -> UserInfo | None:
        return self._user_info

    @property
    def is_authenticated(self) -> bool:
        return self._user_info is not None

    def _clear_state(self) -> None:
        self._user_info = None
        self._credentials = None

    def _require_user_info(self) -> UserInfo:
        if self._user_info is None:
            raise NotLoggedInError("Not logged in to Gourmet")
        return self._user_info

    # -------------------- Session --------------------

    def login(self, username: str, password: str) -> UserInfo:
        """
        What it does:
        - Logs in through the CSRF-protected start page form.

        Behavior:
        - If the start page already shows a logged-in user (stale cookies), that
          session is logged out first and the start page is fetched again.
        - Success is decided by the response markup only, never by HTTP status.
        - Raises LoginFailure and stays unauthenticated on rejection.
        """
        log.info("Gourmet login as %s", username)
        page = self.http.get(self.urls.start)

        if parser.is_authenticated(page):
            log.info("Stale Gourmet session detected, logging it out before login")
            self._post_logout(page)
            page = self.http.get(self.urls.start)

        tokens = parser.extract_login_form_tokens(page)
        response = self.http.post_form(
            self.urls.start,
            {
                "Username": username,
                "Password": password,
                "RememberMe": "false",
                **tokens.as_form_fields(),
            },
        )

        if not parser.is_authenticated(response):
            self._clear_state()
            raise LoginFailure("Gourmet login failed: invalid credentials or account blocked")

        try:
            user_info = parser.extract_user_info(response)
        except ParseError:
            # The POST may land on a page without the hidden id inputs.
            log.debug("Login response lacks user info, fetching start page")
            user_info = parser.extract_user_info(self.http.get(self.urls.start))

        self._user_info = user_info
        self._credentials = Credentials(username=username, password=password)
        log.info("Gourmet login successful (eater %s)", user_info.eater_id)
        return user_info

    def logout(self) -> None:
        """
        Best-effort remote logout; local state and cookies are cleared no matter what.
        """
        try:
            page = self.http.get(self.urls.start)
            self._post_logout(page)
        except PortalError as e:
            log.warning("Gourmet logout request failed (ignored): %s", e)
        finally:
            self._clear_state()
            self.http.reset()
            log.info("Gourmet session cleared")

    def _post_logout(self, page: str) -> None:
        tokens = parser.extract_logout_form_tokens(page)
        self.http.post_form(self.urls.start, tokens.as_form_fields())

    def _fetch_authenticated(self, url: str, params: Mapping[str, str] | None = None) -> str:
        """
        What it does:
        - GETs a page that requires a session.

        Behavior:
        - Logged-in page: returned as-is.
        - Logged-out page + remembered credentials: one re-login, one re-fetch.
        - Still logged out, or nothing to log in with: SessionExpiredError.
        """
        page = self.http.get(url, params)
        if parser.is_authenticated(page):
            return page

        if self._credentials is None:
            self._user_info = None
            raise SessionExpiredError("Gourmet session expired and no credentials are stored")

        log.info("Gourmet session expired, logging in again")
        creds = self._credentials
        self.login(creds.username, creds.password)

        page = self.http.get(url, params)
        if not parser.is_authenticated(page):
            raise SessionExpiredError("Gourmet session lost again right after re-login")
        return page

    # -------------------- Reads --------------------

    def get_menus(self) -> list[MenuItem]:
        """
        Fetches menu pages 0..N while a "next" link exists (capped at max_menu_pages).
        """
        items: list[MenuItem] = []

        for page_no in range(self.max_menu_pages):
            params = None if page_no == 0 else {"page": str(page_no)}
            page = self._fetch_authenticated(self.urls.menus, params)

            if page_no == 0 and self._user_info is None:
                try:
                    self._user_info = parser.extract_user_info(page)
                except ParseError:
                    log.debug("Menus page carries no user info")

            page_items = parser.parse_menu_items(page)
            log.debug("Menus page %d: %d items", page_no, len(page_items))
            items.extend(page_items)

            if not parser.has_next_page(page):
                break
        else:
            log.warning("Stopped menu pagination at the %d page cap", self.max_menu_pages)

        return items

    def get_orders(self) -> list[OrderedMenu]:
        page = self._fetch_authenticated(self.urls.orders)
        return parser.parse_ordered_menus(page)

    def get_billings(self, month_offset: int = 0) -> list[Bill]:
        """
        Fetches the bills of a month: 0 = current month, 1 = previous month, ...
        """
        if month_offset < 0:
            raise ValueError("month_offset must be >= 0")

        user = self._require_user_info()
        self._fetch_authenticated(self.urls.start)

        payload = self.http.post_json(
            self.urls.billings,
            {
                "eaterId": user.eater_id,
                "shopModelId": user.shop_model_id,
                "checkLastMonthNumber": str(month_offset),
            },
        )
        bills = map_bills(payload)
        log.info("Fetched %d Gourmet bills (month offset %d)", len(bills), month_offset)
        return bills

    def get_monthly_billing(self, month_offset: int = 0, *, today: date | None = None) -> MonthlyBilling:
        bills = self.get_billings(month_offset)
        month = shift_months(today or date.today(), month_offset)
        return summarize_month(bills, month_key(month))

    # -------------------- Writes --------------------

    def add_to_cart(self, items: Iterable[CartItem | MenuItem]) -> None:
        """
        What it does:
        - Orders menus by adding them to the cart (one batch of menu ids per date).

        Behavior:
        - MenuItem values are accepted and converted with CartItem.for_menu().
        - Empty input sends nothing.
        - success:false from the site raises CartFailure carrying the site's message.
        """
        user = self._require_user_info()

        by_date: dict[str, list[str]] = {}
        for item in items:
            cart_item = CartItem.for_menu(item) if isinstance(item, MenuItem) else item
            by_date.setdefault(format_gourmet_date(cart_item.day), []).append(cart_item.menu_id)

        if not by_date:
            log.debug("add_to_cart called without items")
            return

        payload = self.http.post_json(
            self.urls.add_to_cart,
            {
                "eaterId": user.eater_id,
                "shopModelId": user.shop_model_id,
                "staffgroupId": user.staff_group_id,
                "dates": [{"date": d, "menuIds": ids} for d, ids in by_date.items()],
            },
        )

        result = parse_cart_response(payload)
        if not result.success:
            raise CartFailure(result.message or "unknown error")

        log.info("Added %d menu(s) to the Gourmet cart", sum(len(v) for v in by_date.values()))

    def confirm_orders(self) -> bool:
        """
        Confirms pending orders by leaving edit mode.

        Returns True when a toggle was posted, False when the page was already
        confirmed (no write at all).
        """
        page = self._fetch_authenticated(self.urls.orders)
        form = parser.extract_edit_mode_form_data(page)

        if form.edit_mode is not EditMode.IN_EDIT_MODE:
            log.debug("Orders already confirmed")
            return False

        self.http.post_form(self.urls.orders, form.as_form_fields())
        log.info("Gourmet orders confirmed")
        return True

    def cancel_orders(self, position_ids: Iterable[str]) -> None:
        """
        What it does:
        - Cancels ordered positions.

        Behavior:
        1) Enters edit mode if needed and re-reads the page to verify it
           (EditModeTransitionFailure otherwise; nothing is cancelled then).
        2) Cancels one position at a time, re-fetching after every POST because
           each cancellation invalidates the page's tokens.
        3) Leaves edit mode afterwards, also when a cancellation failed.
        """
        ids = [pid for pid in position_ids if pid]
        if not ids:
            log.debug("cancel_orders called without position ids")
            return

        page = self._fetch_authenticated(self.urls.orders)
        page = self._enter_edit_mode(page)

        try:
            for position_id in ids:
                form = parser.extract_cancel_order_form_data(page, position_id)
                self.http.post_form(self.urls.orders, form.as_form_fields())
                log.info("Cancelled Gourmet position %s", position_id)
                page = self.http.get(self.urls.orders)
        except PortalError:
            self._leave_edit_mode_after_error()
            raise

        self._leave_edit_mode(page)

    def _enter_edit_mode(self, page: str) -> str:
        form = parser.extract_edit_mode_form_data(page)
        if form.edit_mode is EditMode.IN_EDIT_MODE:
            return page

        self.http.post_form(self.urls.orders, form.as_form_fields())

        # The POST answer may be a redirect page that does not reflect the new state.
        page = self.http.get(self.urls.orders)
        if parser.extract_edit_mode_form_data(page).edit_mode is not EditMode.IN_EDIT_MODE:
            raise EditModeTransitionFailure("Orders page did not enter edit mode")
        return page

    def _leave_edit_mode(self, page: str) -> None:
        form = parser.extract_edit_mode_form_data(page)
        if form.edit_mode is EditMode.IN_EDIT_MODE:
            self.http.post_form(self.urls.orders, form.as_form_fields())

    def _leave_edit_mode_after_error(self) -> None:
        try:
            self._leave_edit_mode(self.http.get(self.urls.orders))
        except PortalError as e:
            log.warning("Could not leave edit mode after a failed cancellation: %s", e)
