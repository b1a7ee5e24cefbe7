from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from cafeteria_client.domain.enums import EditMode, MenuCategory

CSRF_FIELD = "ufprt"
ANTI_FORGERY_FIELD = "__ncforminfo"


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class UserInfo:
    username: str
    shop_model_id: str
    eater_id: str
    staff_group_id: str


@dataclass(frozen=True)
class MenuItem:
    id: str
    day: date
    title: str
    subtitle: str
    allergens: tuple[str, ...]
    available: bool
    ordered: bool
    category: MenuCategory
    price: str


@dataclass(frozen=True)
class DayMenu:
    day: date
    items: tuple[MenuItem, ...]


@dataclass(frozen=True)
class CartItem:
    day: date
    menu_id: str

    @classmethod
    def for_menu(cls, item: MenuItem) -> CartItem:
        return cls(day=item.day, menu_id=item.id)


@dataclass(frozen=True)
class OrderedMenu:
    position_id: str
    eating_cycle_id: str
    date: datetime | None
    title: str
    subtitle: str
    approved: bool


@dataclass(frozen=True)
class BillingItem:
    id: str
    article_id: str
    count: int
    description: str
    total: Decimal
    subsidy: Decimal
    discount_value: Decimal
    is_custom_menu: bool


@dataclass(frozen=True)
class Bill:
    bill_nr: int
    bill_date: datetime
    location: str
    items: tuple[BillingItem, ...]
    billing: Decimal


@dataclass(frozen=True)
class MonthlyBilling:
    month_key: str
    bills: tuple[Bill, ...]
    total_gross: Decimal
    total_subsidy: Decimal
    total_discount: Decimal
    total_billing: Decimal


@dataclass(frozen=True)
class Transaction:
    id: str
    date: datetime
    amount: Decimal
    restaurant: str
    location: str
    receipt_path: str | None = None


@dataclass(frozen=True)
class TransactionPosition:
    name: str
    quantity: int
    unit_price: Decimal
    subsidy: Decimal
    total: Decimal


# -------------------- Form state --------------------


@dataclass(frozen=True)
class FormTokens:
    """Per-page CSRF pair every Gourmet form POST must echo back."""

    csrf_token: str
    anti_forgery_token: str

    def as_form_fields(self) -> dict[str, str]:
        return {CSRF_FIELD: self.csrf_token, ANTI_FORGERY_FIELD: self.anti_forgery_token}


@dataclass(frozen=True)
class EditModeFormData:
    edit_mode: EditMode
    tokens: FormTokens

    def as_form_fields(self) -> dict[str, str]:
        """Fields of a toggle POST: the raw editMode value is echoed unchanged."""
        return {"editMode": self.edit_mode.wire_value, **self.tokens.as_form_fields()}


@dataclass(frozen=True)
class CancelOrderFormData:
    position_id: str
    eating_cycle_id: str
    date: str
    csrf_token: str
    anti_forgery_token: str | None = None

    def as_form_fields(self) -> dict[str, str]:
        fields = {
            "cp_PositionId": self.position_id,
            f"cp_EatingCycleId_{self.position_id}": self.eating_cycle_id,
            f"cp_Date_{self.position_id}": self.date,
            CSRF_FIELD: self.csrf_token,
        }
        if self.anti_forgery_token:
            fields[ANTI_FORGERY_FIELD] = self.anti_forgery_token
        return fields


@dataclass(frozen=True)
class AspNetState:
    """Hidden ASP.NET postback fields; the three event fields are usually empty."""

    view_state: str
    view_state_generator: str
    event_validation: str
    last_focus: str = ""
    event_target: str = ""
    event_argument: str = ""

    def as_form_fields(self) -> dict[str, str]:
        # Order matches what a browser submits.
        return {
            "__LASTFOCUS": self.last_focus,
            "__EVENTTARGET": self.event_target,
            "__EVENTARGUMENT": self.event_argument,
            "__VIEWSTATE": self.view_state,
            "__VIEWSTATEGENERATOR": self.view_state_generator,
            "__EVENTVALIDATION": self.event_validation,
        }
