"""Cell locator with hidden row and column exclusion."""

from __future__ import annotations

from openpyxl.utils.cell import get_column_letter

from ..models import RawCell
from ..package import Worksheet

# Last column of a worksheet (XFD)
MAX_COLUMN = 16384


def column_name(index: int) -> str:
    """Base-26 column label for a 1-indexed column (1 -> A, 27 -> AA).

    Raises:
        ValueError: If the index is outside Excel's column range.
    """
    return get_column_letter(index)


def hidden_column_names(sheet: Worksheet) -> set[str]:
    """Expand the sheet's hidden column ranges into column labels."""
    names = set()
    for low, high in sheet.hidden_column_ranges():
        for index in range(max(low, 1), min(high, MAX_COLUMN) + 1):
            names.add(column_name(index))
    return names


def locate_cell(
    sheet: Worksheet,
    column: str,
    row: int,
    exclude_hidden_rows: bool = True,
    exclude_hidden_columns: bool = True,
    hidden_columns: set[str] | None = None,
) -> RawCell | None:
    """Find the cell at ``column`` + ``row``.

    Returns None when the row or cell does not exist, or when the row or
    column is hidden and the matching exclusion flag is set.

    ``hidden_columns`` is the sheet's ``hidden_column_names()``; callers
    looking up many cells on one sheet pass it in so the ranges are only
    expanded once.
    """
    found = sheet.row(row)
    if found is None or (exclude_hidden_rows and found.hidden):
        return None

    coordinate = f"{column}{row}".upper()
    cell = next((c for c in found.cells if c.reference.upper() == coordinate), None)
    if cell is None:
        return None

    if exclude_hidden_columns:
        if hidden_columns is None:
            hidden_columns = hidden_column_names(sheet)
        if column.upper() in hidden_columns:
            return None
    return cell
