from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from billsplit.config import OutputFormat, get_settings
from billsplit.errors import ArgumentError, BillSplitError
from billsplit.logging import get_logger
from billsplit.services.report import OUTPUT_SUFFIXES, write_output_file
from billsplit.services.split import BillOutput, split_bill
from billsplit.utils.parse import load_bill


@dataclass(slots=True)
class Arguments:
    input: Path
    output: Path
    format: OutputFormat


@dataclass(slots=True)
class BatchResult:
    processed: list[Path] = field(default_factory=list)
    failed: dict[Path, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise ArgumentError(message)


def _build_parser(default_format: OutputFormat) -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="billsplit",
        description="Split a restaurant bill between the people who shared it.",
    )
    parser.add_argument("--input", required=True, help="bill JSON file or a directory of them")
    parser.add_argument("--output", required=True, help="output file, or a directory in batch mode")
    parser.add_argument("--format", choices=("json", "text"), default=default_format)
    return parser


def parse_args(argv: Sequence[str]) -> Arguments:
    settings = get_settings()
    namespace = _build_parser(settings.output_format).parse_args(list(argv))
    return Arguments(
        input=Path(namespace.input),
        output=Path(namespace.output),
        format=namespace.format,
    )


def process_file(input_path: Path, output_path: Path, fmt: OutputFormat) -> BillOutput:
    log = get_logger(__name__)
    bill = load_bill(input_path)
    result = split_bill(bill)
    write_output_file(output_path, result, fmt)
    log.info(
        "bill.split",
        input=str(input_path),
        output=str(output_path),
        persons=len(result.items),
        total=str(result.total_amount),
    )
    return result


def _batch_output_path(input_path: Path, output_dir: Path, fmt: OutputFormat) -> Path:
    return output_dir / f"{input_path.stem}{OUTPUT_SUFFIXES[fmt]}"


async def process_directory(
    input_dir: Path,
    output_dir: Path,
    fmt: OutputFormat,
    *,
    pattern: str | None = None,
    max_concurrency: int | None = None,
) -> BatchResult:
    settings = get_settings()
    pattern = pattern or settings.input_pattern
    semaphore = asyncio.Semaphore(max_concurrency or settings.max_concurrency)
    log = get_logger(__name__)

    inputs = sorted(path for path in input_dir.glob(pattern) if path.is_file())
    skipped = sum(1 for path in input_dir.iterdir() if path.is_file()) - len(inputs)
    log.info("batch.start", input_dir=str(input_dir), files=len(inputs), skipped=skipped)

    result = BatchResult()

    async def _run(input_path: Path) -> None:
        output_path = _batch_output_path(input_path, output_dir, fmt)
        async with semaphore:
            try:
                await asyncio.to_thread(process_file, input_path, output_path, fmt)
            except (BillSplitError, OSError) as exc:
                log.warning("batch.file_failed", input=str(input_path), error=str(exc))
                result.failed[input_path] = str(exc)
            else:
                result.processed.append(input_path)

    await asyncio.gather(*(_run(path) for path in inputs))

    result.processed.sort()
    log.info("batch.done", processed=len(result.processed), failed=len(result.failed))
    return result


async def main(argv: Sequence[str]) -> int:
    args = parse_args(argv)

    if args.input.is_dir():
        batch = await process_directory(args.input, args.output, args.format)
        return 0 if batch.ok else 1

    await asyncio.to_thread(process_file, args.input, args.output, args.format)
    return 0
