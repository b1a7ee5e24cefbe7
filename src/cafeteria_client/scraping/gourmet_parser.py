"""
gourmet_parser.py

What this module does
- Pure functions that turn Gourmet (Umbraco) pages into typed data and form tokens.

Why it matters
- The site has no API for menus/orders; every write needs tokens lifted from the
  page that precedes it. A missing token is the first sign the markup changed.

Behavior summary
- No I/O. Every function takes the raw HTML string.
- Missing required fields raise ParseError; optional fields fall back to "".
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from cafeteria_client.domain.enums import EditMode, MenuCategory
from cafeteria_client.domain.models import (
    ANTI_FORGERY_FIELD,
    CSRF_FIELD,
    CancelOrderFormData,
    EditModeFormData,
    FormTokens,
    MenuItem,
    OrderedMenu,
    UserInfo,
)
from cafeteria_client.utils.dates import parse_gourmet_date, parse_gourmet_order_date
from cafeteria_client.utils.errors import ParseError
from cafeteria_client.utils.logs import html_snippet

log = logging.getLogger(__name__)

MENU_CATEGORY_RE = re.compile(r"MEN(?:Ü|U)\s+(I{1,3})\b", re.IGNORECASE)
SOUP_SALAD_PATTERN = "SUPPE & SALAT"

# Any one of these means the page was rendered for a logged-in user.
AUTHENTICATED_MARKERS = (
    "/einstellungen/",  # settings link
    "btnHeaderLogout",  # logout button
    'class="loginname"',  # username display
    'id="eater"',  # hidden eater input on menus/orders pages
)

_ROMAN_TO_CATEGORY = {
    1: MenuCategory.MENU_1,
    2: MenuCategory.MENU_2,
    3: MenuCategory.MENU_3,
}


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def _input_value(scope: Tag, name: str) -> str | None:
    el = scope.find("input", attrs={"name": name})
    if el is None:
        return None
    return el.get("value")


def _direct_text(el: Tag | None) -> str:
    """Text of `el` itself, without the text of nested elements."""
    if el is None:
        return ""
    parts = [
        str(node)
        for node in el.children
        if isinstance(node, NavigableString) and not isinstance(node, Comment)
    ]
    return " ".join("".join(parts).split())


def _text(el: Tag | None) -> str:
    if el is None:
        return ""
    return " ".join(el.get_text(" ", strip=True).split())


# -------------------- Tokens & session --------------------


def extract_form_tokens(html: str, form_selector: str) -> FormTokens:
    """
    What it does:
    - Reads the `ufprt` / `__ncforminfo` pair from the form matching `form_selector`.

    Behavior:
    - Raises ParseError naming the missing field (or the missing form).
    """
    form = _soup(html).select_one(form_selector)
    if form is None:
        raise ParseError(f"Could not find form: {form_selector}")

    csrf = _input_value(form, CSRF_FIELD)
    anti_forgery = _input_value(form, ANTI_FORGERY_FIELD)

    if not csrf:
        raise ParseError(f"Could not find {CSRF_FIELD} in form: {form_selector}")
    if not anti_forgery:
        raise ParseError(f"Could not find {ANTI_FORGERY_FIELD} in form: {form_selector}")

    return FormTokens(csrf_token=csrf, anti_forgery_token=anti_forgery)


def extract_login_form_tokens(html: str) -> FormTokens:
    """The login form is the first form on the start page."""
    return extract_form_tokens(html, "form")


def is_authenticated(html: str) -> bool:
    page = html or ""
    return any(marker in page for marker in AUTHENTICATED_MARKERS)


def extract_user_info(html: str) -> UserInfo:
    soup = _soup(html)

    def hidden(id_value: str) -> str | None:
        el = soup.find(id=id_value)
        return el.get("value") if el is not None else None

    shop_model_id = hidden("shopModel")
    eater_id = hidden("eater")
    staff_group_id = hidden("staffGroup")

    if not shop_model_id or not eater_id or not staff_group_id:
        raise ParseError("Could not extract user info from page")

    return UserInfo(
        username=_text(soup.select_one("span.loginname")),
        shop_model_id=shop_model_id,
        eater_id=eater_id,
        staff_group_id=staff_group_id,
    )


# -------------------- Menus --------------------


def detect_category(title: str) -> MenuCategory:
    if SOUP_SALAD_PATTERN in title.upper():
        return MenuCategory.SOUP_AND_SALAD

    m = MENU_CATEGORY_RE.search(title)
    if m:
        return _ROMAN_TO_CATEGORY[len(m.group(1))]

    return MenuCategory.UNKNOWN


def parse_menu_items(html: str) -> list[MenuItem]:
    """
    What it does:
    - Parses every menu slot of a menus page.

    Why it matters:
    - The site renders each meal twice (desktop + mobile); only the desktop
      row is read so items are not double-counted.

    Behavior:
    - Meals without data-id/data-date are skipped.
    - available = the order checkbox exists; ordered = it exists AND is checked.
    """
    items: list[MenuItem] = []

    for meal in _soup(html).select("div.row.hide-sm-down .meal"):
        info = meal.select_one(".open_info.menu-article-detail")
        if info is None:
            continue

        menu_id = info.get("data-id")
        date_str = info.get("data-date")
        if not menu_id or not date_str:
            continue

        try:
            day = parse_gourmet_date(date_str)
        except ValueError as e:
            log.warning("Unparsable menu date %r for menu %s", date_str, menu_id)
            raise ParseError(f"Invalid menu date {date_str!r} for menu {menu_id}") from e

        title = _direct_text(meal.select_one(".title"))
        allergen_text = _text(meal.select_one("li.allergen"))
        allergens = tuple(a.strip() for a in allergen_text.split(",") if a.strip())

        checkbox = meal.select_one('input[type="checkbox"].menu-clicked')
        available = checkbox is not None
        ordered = available and checkbox.has_attr("checked")

        items.append(
            MenuItem(
                id=menu_id,
                day=day,
                title=title,
                subtitle=_text(meal.select_one(".subtitle")),
                allergens=allergens,
                available=available,
                ordered=ordered,
                category=detect_category(title),
                price=_text(meal.select_one(".price span")),
            )
        )

    return items


def has_next_page(html: str) -> bool:
    return _soup(html).select_one('a[class*="menues-next"]') is not None


# -------------------- Orders --------------------


def parse_ordered_menus(html: str) -> list[OrderedMenu]:
    """
    Behavior:
    - Only blocks carrying a cp_PositionId input are orders.
    - approved if EITHER a .fa-check icon OR a .checkmark span is present
      (templates use both).
    """
    orders: list[OrderedMenu] = []
    seen: set[str] = set()

    for item in _soup(html).select('div.order-item, div[class*="order-item"]'):
        position_id = _input_value(item, "cp_PositionId")
        # Nested "order-item-*" wrappers hold the same inputs as their parent.
        if not position_id or position_id in seen:
            continue
        seen.add(position_id)

        cycle_input = item.find("input", attrs={"name": re.compile(r"^cp_EatingCycleId_")})
        date_input = item.find("input", attrs={"name": re.compile(r"^cp_Date_")})
        date_str = (date_input.get("value") or "") if date_input is not None else ""

        order_date = None
        if date_str:
            try:
                order_date = parse_gourmet_order_date(date_str)
            except ValueError:
                log.warning("Unparsable order date %r for position %s", date_str, position_id)

        approved = item.select_one(".fa-check") is not None or item.select_one(".checkmark") is not None

        orders.append(
            OrderedMenu(
                position_id=position_id,
                eating_cycle_id=(cycle_input.get("value") or "") if cycle_input is not None else "",
                date=order_date,
                title=_direct_text(item.select_one(".title")),
                subtitle=_text(item.select_one(".subtitle")),
                approved=approved,
            )
        )

    return orders


def extract_edit_mode_form_data(html: str) -> EditModeFormData:
    form = _soup(html).select_one("form.form-toggleEditMode")
    if form is None:
        log.warning("Edit mode form missing: %s", html_snippet(html))
        raise ParseError("Could not find edit mode form")

    raw = _input_value(form, "editMode") or "True"
    csrf = _input_value(form, CSRF_FIELD)
    anti_forgery = _input_value(form, ANTI_FORGERY_FIELD)
    if not csrf or not anti_forgery:
        raise ParseError("Could not extract edit mode form data")

    return EditModeFormData(
        edit_mode=EditMode.from_wire(raw),
        tokens=FormTokens(csrf_token=csrf, anti_forgery_token=anti_forgery),
    )


def _find_position_form(soup: BeautifulSoup, position_id: str) -> Tag | None:
    form = soup.find("form", id=f"form_{position_id}_cp")
    if form is not None:
        return form

    for el in soup.find_all("input", attrs={"value": position_id}):
        parent = el.find_parent("form")
        if parent is not None:
            return parent
    return None


def extract_cancel_order_form_data(html: str, position_id: str) -> CancelOrderFormData:
    """
    What it does:
    - Lifts the cancel form of one ordered position (only rendered in edit mode).

    Behavior:
    - Looks up form#form_<positionId>_cp, falling back to the form holding an
      input whose value is the position id.
    - eatingCycleId and date are echoed verbatim; the site keys deletion on them.
    """
    form = _find_position_form(_soup(html), position_id)
    if form is None:
        raise ParseError(f"Could not find cancel form for position: {position_id}")

    csrf = _input_value(form, CSRF_FIELD)
    if not csrf:
        raise ParseError(f"Could not extract cancel form data for position: {position_id}")

    cycle_input = form.find("input", attrs={"name": re.compile(r"^cp_EatingCycleId_")})
    date_input = form.find("input", attrs={"name": re.compile(r"^cp_Date_")})

    return CancelOrderFormData(
        position_id=position_id,
        eating_cycle_id=(cycle_input.get("value") or "") if cycle_input is not None else "",
        date=(date_input.get("value") or "") if date_input is not None else "",
        csrf_token=csrf,
        anti_forgery_token=_input_value(form, ANTI_FORGERY_FIELD) or None,
    )


def extract_logout_form_tokens(html: str) -> FormTokens:
    soup = _soup(html)

    button = soup.find("button", id="btnHeaderLogout")
    if button is None:
        button = next(
            (b for b in soup.find_all("button") if "logout" in _text(b).lower()),
            None,
        )
    form = button.find_parent("form") if button is not None else None
    if form is None:
        raise ParseError("Could not find logout form")

    csrf = _input_value(form, CSRF_FIELD)
    anti_forgery = _input_value(form, ANTI_FORGERY_FIELD)
    if not csrf or not anti_forgery:
        raise ParseError("Could not extract logout form tokens")

    return FormTokens(csrf_token=csrf, anti_forgery_token=anti_forgery)
