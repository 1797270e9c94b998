from __future__ import annotations


class BillSplitError(Exception):
    pass


class FormatError(BillSplitError, ValueError):
    pass


class BillFileError(BillSplitError, ValueError):
    pass


class ArgumentError(BillSplitError, ValueError):
    pass
