from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP, getcontext, localcontext
from typing import Sequence, Union

from billsplit.errors import FormatError


TIP_STEP = Decimal("0.1")
CENT = Decimal("0.01")
HUNDRED = Decimal(100)
GUARD_DIGITS = 10


@dataclass(frozen=True, slots=True)
class SharedItem:
    name: str
    price: Decimal


@dataclass(frozen=True, slots=True)
class PersonalItem:
    name: str
    price: Decimal
    person: str


BillItem = Union[SharedItem, PersonalItem]


@dataclass(frozen=True, slots=True)
class BillInput:
    date: str
    location: str
    tip_percentage: Decimal
    items: Sequence[BillItem]


@dataclass(frozen=True, slots=True)
class PersonItem:
    name: str
    amount: Decimal


@dataclass(frozen=True, slots=True)
class BillOutput:
    date: str
    location: str
    sub_total: Decimal
    tip: Decimal
    total_amount: Decimal
    items: Sequence[PersonItem]


def split_bill(bill: BillInput) -> BillOutput:
    date = format_date(bill.date)
    with localcontext() as ctx:
        ctx.prec = working_precision(bill)
        sub_total = calculate_sub_total(bill.items)
        tip = calculate_tip(sub_total, bill.tip_percentage)
        total_amount = sub_total + tip
        items = calculate_items(bill.items, bill.tip_percentage)
        adjust_amount(total_amount, items)
    return BillOutput(
        date=date,
        location=bill.location,
        sub_total=sub_total,
        tip=tip,
        total_amount=total_amount,
        items=tuple(items),
    )


def working_precision(bill: BillInput) -> int:
    """
    Сколько значащих цифр нужно, чтобы суммы и произведения
    считались точно до цента при любом размере цен.
    """
    numbers = [Decimal(item.price) for item in bill.items if item.price]
    if bill.tip_percentage:
        numbers.append(Decimal(bill.tip_percentage))
    if not numbers:
        return getcontext().prec

    top = max(number.adjusted() for number in numbers)
    bottom = min(min(int(number.as_tuple().exponent) for number in numbers), -2)
    span = top - bottom + 1
    return max(getcontext().prec, 2 * span + len(bill.items).bit_length() + GUARD_DIGITS)


def format_date(date: str) -> str:
    """
    "2024-03-21" -> "2024年3月21日".

    Год, месяц и день выводятся без ведущих нулей.
    """
    parts = date.split("-")
    if len(parts) != 3 or not all(part.isascii() and part.isdigit() for part in parts):
        raise FormatError(f"invalid date, expected YYYY-MM-DD: {date!r}")

    year, month, day = (int(part) for part in parts)
    return f"{year}年{month}月{day}日"


def calculate_sub_total(items: Sequence[BillItem]) -> Decimal:
    return sum((item.price for item in items), Decimal(0))


def calculate_tip(sub_total: Decimal, tip_percentage: Decimal) -> Decimal:
    # округление до 0.1 вверх от половины: 12.345 -> 12.3
    raw = sub_total * Decimal(tip_percentage) / HUNDRED
    return raw.quantize(TIP_STEP, rounding=ROUND_HALF_UP)


def scan_persons(items: Sequence[BillItem]) -> list[str]:
    names: list[str] = []
    seen: set[str] = set()
    for item in items:
        if isinstance(item, PersonalItem) and item.person not in seen:
            seen.add(item.person)
            names.append(item.person)
    return names


def calculate_items(items: Sequence[BillItem], tip_percentage: Decimal) -> list[PersonItem]:
    names = scan_persons(items)
    persons = len(names)
    return [
        PersonItem(
            name=name,
            amount=calculate_person_amount(
                items=items,
                tip_percentage=tip_percentage,
                name=name,
                persons=persons,
            ),
        )
        for name in names
    ]


def calculate_person_amount(
    *,
    items: Sequence[BillItem],
    tip_percentage: Decimal,
    name: str,
    persons: int,
) -> Decimal:
    if persons < 1:
        raise ValueError("persons must be positive")

    personal = Decimal(0)
    shared = Decimal(0)
    for item in items:
        if isinstance(item, SharedItem):
            shared += item.price
        elif item.person == name:
            personal += item.price

    pre_tip = personal + shared / Decimal(persons)
    amount = pre_tip * (1 + Decimal(tip_percentage) / HUNDRED)
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def adjust_amount(total_amount: Decimal, items: list[PersonItem]) -> None:
    """Остаток от округления целиком уходит первому участнику."""
    if not items:
        return

    residual = total_amount - sum((item.amount for item in items), Decimal(0))
    if residual:
        first = items[0]
        items[0] = replace(first, amount=first.amount + residual)
