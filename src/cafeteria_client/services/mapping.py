from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from cafeteria_client.domain.models import Bill, BillingItem, DayMenu, MenuItem, MonthlyBilling
from cafeteria_client.utils.errors import ParseError

log = logging.getLogger(__name__)


class _ApiModel(BaseModel):
    # Ids arrive as strings or numbers depending on the endpoint version.
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)


class BillingApiItem(_ApiModel):
    id: str = Field(alias="Id")
    article_id: str = Field(alias="ArticleId")
    count: int = Field(alias="Count")
    description: str = Field(default="", alias="Description")
    total: Decimal = Field(alias="Total")
    subsidy: Decimal = Field(default=Decimal("0"), alias="Subsidy")
    discount_value: Decimal = Field(default=Decimal("0"), alias="DiscountValue")
    is_custom_menu: bool = Field(default=False, alias="IsCustomMenu")


class BillingApiBill(_ApiModel):
    bill_nr: int = Field(alias="BillNr")
    bill_date: datetime = Field(alias="BillDate")
    location: str = Field(default="", alias="Location")
    items: list[BillingApiItem] = Field(default_factory=list, alias="BillingItemInfo")
    billing: Decimal = Field(alias="Billing")


class AddToCartResponse(_ApiModel):
    success: bool = False
    message: str | None = None


_BILLS = TypeAdapter(list[BillingApiBill])


def map_bills(payload: Any) -> list[Bill]:
    """
    What it does:
    - Converts the GetMyBillings JSON array (PascalCase) into domain Bills.

    Behavior:
    - None (empty body) maps to [].
    - Any shape mismatch raises ParseError.
    """
    if payload is None:
        return []

    try:
        raw_bills = _BILLS.validate_python(payload)
    except ValidationError as e:
        log.warning("Unexpected billing payload: %s", e)
        raise ParseError(f"Unexpected billing response shape: {e.error_count()} error(s)") from e

    return [
        Bill(
            bill_nr=b.bill_nr,
            bill_date=b.bill_date,
            location=b.location,
            items=tuple(
                BillingItem(
                    id=i.id,
                    article_id=i.article_id,
                    count=i.count,
                    description=i.description,
                    total=i.total,
                    subsidy=i.subsidy,
                    discount_value=i.discount_value,
                    is_custom_menu=i.is_custom_menu,
                )
                for i in b.items
            ),
            billing=b.billing,
        )
        for b in raw_bills
    ]


def parse_cart_response(payload: Any) -> AddToCartResponse:
    if payload is None:
        return AddToCartResponse()
    try:
        return AddToCartResponse.model_validate(payload)
    except ValidationError as e:
        raise ParseError("Unexpected add-to-cart response shape") from e


def summarize_month(bills: Iterable[Bill], month_key: str) -> MonthlyBilling:
    """Totals over every item of every bill; total_billing sums the bills' own net totals."""
    bills = tuple(bills)
    items = [i for b in bills for i in b.items]

    return MonthlyBilling(
        month_key=month_key,
        bills=bills,
        total_gross=sum((i.total for i in items), Decimal("0")),
        total_subsidy=sum((i.subsidy for i in items), Decimal("0")),
        total_discount=sum((i.discount_value for i in items), Decimal("0")),
        total_billing=sum((b.billing for b in bills), Decimal("0")),
    )


def group_menus_by_day(items: Iterable[MenuItem]) -> list[DayMenu]:
    """Groups menu items per day, days ascending, items in their original order."""
    by_day: dict = {}
    for item in items:
        by_day.setdefault(item.day, []).append(item)
    return [DayMenu(day=day, items=tuple(by_day[day])) for day in sorted(by_day)]
