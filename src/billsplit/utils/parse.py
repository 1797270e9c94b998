from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping

from pydantic import ValidationError

from billsplit.errors import BillFileError
from billsplit.models import BillRecord
from billsplit.services.split import BillInput


MISSING_ERRORS = {"missing", "union_tag_not_found"}


def read_json_file(path: str | Path) -> dict[str, Any]:
    """
    Прочитать и проверить файл со счётом.

    Числа читаются как Decimal, чтобы суммы сходились до цента.
    Ошибки формулируются так, чтобы было видно, какое поле
    и какой элемент items виноват.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (FileNotFoundError, IsADirectoryError) as exc:
        raise BillFileError(f"input file not found: {path}") from exc
    except UnicodeDecodeError as exc:
        raise BillFileError(f"invalid JSON file: {path}") from exc
    except OSError as exc:
        raise BillFileError(f"cannot read input file: {path}: {exc.strerror or exc}") from exc

    if not text.strip():
        raise BillFileError(f"input file is empty: {path}")

    try:
        data = json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as exc:
        raise BillFileError(f"invalid JSON file: {path}") from exc

    validate_bill_data(data)
    return data


def validate_bill_data(data: Any) -> BillRecord:
    try:
        return BillRecord.model_validate(data)
    except ValidationError as exc:
        raise BillFileError(describe_error(exc.errors()[0])) from exc


def describe_error(error: Mapping[str, Any]) -> str:
    loc = error["loc"]
    kind = "missing" if error["type"] in MISSING_ERRORS else "invalid"

    if not loc:
        return "bill object must be a JSON object"
    if loc[0] != "items" or len(loc) == 1:
        return f"{kind} {loc[0]} field in bill object"

    where = f"in bill object items array at index {loc[1]}"
    if len(loc) == 2:
        # ошибка на уровне дискриминатора: сам элемент или его isShared
        if not isinstance(error["input"], Mapping):
            return f"invalid item {where}"
        return f"{kind} isShared field {where}"
    return f"{kind} {loc[-1]} field {where}"


def parse_bill(data: Mapping[str, Any]) -> BillInput:
    return validate_bill_data(data).to_input()


def load_bill(path: str | Path) -> BillInput:
    return parse_bill(read_json_file(path))
