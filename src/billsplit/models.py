"""
Схема входного JSON со счётом.

Элемент счёта различается по полю isShared: общий (без владельца)
или личный (с обязательным person). Числа принимаются только как
JSON-числа: строка "10" или true ценой не считаются.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    StrictBool,
    StrictStr,
    Tag,
    field_validator,
)

from billsplit.services.split import BillInput, BillItem, PersonalItem, SharedItem


SHARED_TAG = "shared"
PERSONAL_TAG = "personal"
UNKNOWN_TAG = "unknown"


def _reject_non_numbers(value: Any) -> Any:
    # bool наследуется от int, но true/false ценой не бывает
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValueError("must be a JSON number")
    return value


class SharedItemRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: StrictStr = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)
    is_shared: StrictBool = Field(..., alias="isShared")

    @field_validator("price", mode="before")
    @classmethod
    def check_price(cls, value: Any) -> Any:
        return _reject_non_numbers(value)

    def to_item(self) -> BillItem:
        return SharedItem(name=self.name, price=self.price)


class PersonalItemRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: StrictStr = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)
    is_shared: StrictBool = Field(..., alias="isShared")
    person: StrictStr = Field(..., min_length=1)

    @field_validator("price", mode="before")
    @classmethod
    def check_price(cls, value: Any) -> Any:
        return _reject_non_numbers(value)

    def to_item(self) -> BillItem:
        return PersonalItem(name=self.name, price=self.price, person=self.person)


def _item_kind(value: Any) -> str | None:
    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True)
    if not isinstance(value, dict) or "isShared" not in value:
        return None
    shared = value["isShared"]
    if shared is True:
        return SHARED_TAG
    if shared is False:
        return PERSONAL_TAG
    return UNKNOWN_TAG


ItemRecord = Annotated[
    Union[
        Annotated[SharedItemRecord, Tag(SHARED_TAG)],
        Annotated[PersonalItemRecord, Tag(PERSONAL_TAG)],
    ],
    Discriminator(_item_kind),
]


class BillRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: StrictStr
    location: StrictStr
    tip_percentage: Decimal = Field(..., ge=0, alias="tipPercentage")
    items: list[ItemRecord]

    @field_validator("tip_percentage", mode="before")
    @classmethod
    def check_tip_percentage(cls, value: Any) -> Any:
        return _reject_non_numbers(value)

    def to_input(self) -> BillInput:
        return BillInput(
            date=self.date,
            location=self.location,
            tip_percentage=self.tip_percentage,
            items=tuple(item.to_item() for item in self.items),
        )
