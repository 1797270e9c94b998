from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any

from billsplit.config import OutputFormat
from billsplit.errors import BillFileError
from billsplit.services.split import BillOutput


OUTPUT_SUFFIXES: dict[str, str] = {
    "json": ".json",
    "text": ".txt",
}


def _to_number(value: Decimal) -> int | float:
    # дробная сумма до цента переживает float без потерь до 15 значащих цифр
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _format_money(value: Decimal) -> str:
    return format(value.normalize(), "f")


def bill_output_to_dict(output: BillOutput) -> dict[str, Any]:
    return {
        "date": output.date,
        "location": output.location,
        "subTotal": _to_number(output.sub_total),
        "tip": _to_number(output.tip),
        "totalAmount": _to_number(output.total_amount),
        "items": [
            {"name": item.name, "amount": _to_number(item.amount)}
            for item in output.items
        ],
    }


def format_json(output: BillOutput) -> str:
    return json.dumps(bill_output_to_dict(output), ensure_ascii=False, indent=2)


def format_text_report(output: BillOutput) -> str:
    lines = [
        "===== 聚餐分帳報告 =====",
        f"日期：{output.date}",
        f"地點：{output.location}",
        "",
        f"小計：${_format_money(output.sub_total)}",
        f"小費：${_format_money(output.tip)}",
        f"總金額：${_format_money(output.total_amount)}",
        "",
        "分帳結果：",
    ]
    if output.items:
        for index, item in enumerate(output.items, start=1):
            lines.append(f"{index}. {item.name} 應付：${_format_money(item.amount)}")
    else:
        lines.append("（無指定分帳對象）")
    return "\n".join(lines)


def render_output(output: BillOutput, fmt: OutputFormat) -> str:
    if fmt == "json":
        return format_json(output)
    if fmt == "text":
        return format_text_report(output)
    raise ValueError(f"unknown output format: {fmt}")


def write_output_file(path: str | Path, output: BillOutput, fmt: OutputFormat = "json") -> Path:
    path = Path(path)
    text = render_output(output, fmt) + "\n"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise BillFileError(f"cannot write output file: {path}: {exc.strerror or exc}") from exc
    return path


def write_json_file(path: str | Path, output: BillOutput) -> Path:
    return write_output_file(path, output, "json")
