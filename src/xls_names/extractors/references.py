"""Decomposition of defined-name reference strings.

References look like ``Sheet1!$B$12`` or ``'My Sheet'!$B$12``. The column is
read between the first and second ``$`` and the row after the last one, so
a range such as ``Data!$A$1:$A$3`` resolves to its first column and last
row (``A3``).
"""

from __future__ import annotations

import re

from ..exceptions import ReferenceParseError
from ..models import CellAddress

_UNSIGNED = re.compile(r"[0-9]+")


def is_addressable(reference: str) -> bool:
    """Whether the reference uses ``$`` absolute addressing at all.

    References without it (named constants, formulas, relative references)
    are skipped rather than reported.
    """
    return "$" in reference


def parse_reference(reference: str, sheet_name: str = "") -> CellAddress:
    """Extract the column label and row index from a reference.

    Args:
        reference: Raw reference text of a defined name.
        sheet_name: Sheet the reference has been associated with.

    Raises:
        ReferenceParseError: If there is no ``$`` or the row is not an
            unsigned integer.
    """
    if not is_addressable(reference):
        raise ReferenceParseError(f"Reference {reference!r} has no $-delimited column and row")

    column = reference.split("$")[1]
    row_token = reference[reference.rindex("$") + 1:]
    if not _UNSIGNED.fullmatch(row_token):
        raise ReferenceParseError(f"Row {row_token!r} is not an unsigned integer")

    return CellAddress(sheet_name=sheet_name, column=column, row=int(row_token))


def sheet_prefix(reference: str) -> str | None:
    """Parse the ``Sheet!`` or ``'Sheet Name'!`` prefix of a reference.

    Doubled quotes inside a quoted name are unescaped. Returns None when the
    reference has no sheet prefix.
    """
    text = reference.lstrip("=")

    if text.startswith("'"):
        chars = []
        i = 1
        while i < len(text):
            if text[i] == "'":
                if text[i + 1:i + 2] == "'":
                    chars.append("'")
                    i += 2
                    continue
                break
            chars.append(text[i])
            i += 1
        if text[i + 1:i + 2] != "!":
            return None
        return "".join(chars)

    prefix, bang, _ = text.partition("!")
    return prefix if bang and prefix else None


def references_sheet(reference: str, sheet_name: str, strict: bool = False) -> bool:
    """Whether a reference belongs to a sheet.

    By default this is a substring test: the reference mentions the sheet
    name anywhere. When one sheet name is contained in another (``Data`` and
    ``Data2``), a reference can match both. ``strict`` compares the parsed
    sheet prefix exactly instead.
    """
    if not sheet_name:
        return False
    if strict:
        return sheet_prefix(reference) == sheet_name
    return sheet_name in reference
