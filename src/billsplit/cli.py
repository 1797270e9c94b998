from __future__ import annotations

import asyncio
import sys

from billsplit.config import get_settings
from billsplit.errors import BillSplitError
from billsplit.logging import configure_logging, get_logger
from billsplit.processor import main


def run() -> None:
    configure_logging(get_settings().log_level)
    log = get_logger(__name__)
    try:
        code = asyncio.run(main(sys.argv[1:]))
    except BillSplitError as error:
        log.error("cli.failed", error=str(error))
        print(f"error: {error}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    run()
