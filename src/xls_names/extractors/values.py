"""Value coercer: infers a typed value from raw cell data and its style.

Classification order, first match wins:

1. Shared string: the raw value indexes the shared-string table.
2. Date-formatted number: the style's format code contains ``yy`` or its
   id is a built-in date format. ``"0"`` passes through as text.
3. Number-formatted number: the style's format id is a known number
   format. Whole numbers become integers, others are rounded.
4. Any other raw value passes through as text.
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from openpyxl.utils.datetime import MAC_EPOCH, WINDOWS_EPOCH, from_excel

from ..models import (
    CellDataType,
    DateValue,
    DecimalValue,
    FormatContext,
    IntegerValue,
    NumberFormat,
    RawCell,
    TextValue,
    Value,
)
from ..package import WorkbookPackage

# Built-in number format ids that display a date:
#   14-17, 22   mm-dd-yy, d-mmm-yy, d-mmm, mmm-yy, m/d/yy h:mm
#   27-36       East Asian era and calendar dates
#   50-58       East Asian era and calendar dates
DATE_FORMAT_IDS = frozenset({14, 15, 16, 17, 22, *range(27, 37), *range(50, 59)})

# Format ids treated as plain numbers:
#   0-13        General, 0, 0.00, #,##0, #,##0.00, currency, percent,
#               scientific and fraction formats
#   164-207     custom ids seen in the form templates; custom date
#               formats are caught by the date rule first
NUMBER_FORMAT_IDS = frozenset({
    *range(0, 14),
    164, 166, 167, 168, 169, 171, 173,
    197, 198, 199, 200, 201, 202, 203, 204, 205, 207,
})


def is_date_format(number_format: NumberFormat | None) -> bool:
    if number_format is None:
        return False
    code = number_format.format_code
    if code is not None and "yy" in code.lower():
        return True
    return number_format.number_format_id in DATE_FORMAT_IDS


def is_number_format(number_format: NumberFormat | None) -> bool:
    return number_format is not None and number_format.number_format_id in NUMBER_FORMAT_IDS


def parse_decimal(text: str, context: FormatContext) -> Decimal:
    """Parse raw numeric text using the context's decimal separator.

    Raises:
        ValueError: If the text is not a finite decimal number.
    """
    normalized = text.strip()
    if context.decimal_separator != ".":
        normalized = normalized.replace(context.decimal_separator, ".")
    try:
        number = Decimal(normalized)
    except InvalidOperation:
        raise ValueError(f"{text!r} is not a decimal number") from None
    if not number.is_finite():
        raise ValueError(f"{text!r} is not a finite number")
    return number


def to_number_value(text: str, context: FormatContext) -> IntegerValue | DecimalValue:
    """Whole numbers become IntegerValue; others are rounded half-up."""
    number = parse_decimal(text, context)
    if number == number.to_integral_value():
        return IntegerValue(int(number))
    return DecimalValue(number.quantize(context.quantum, rounding=ROUND_HALF_UP))


def to_date_value(text: str, context: FormatContext, date1904: bool = False) -> DateValue:
    """Convert a serial day number to a date (serial 1 is 1900-01-01).

    Raises:
        ValueError: If the text is not a finite number.
    """
    serial = float(parse_decimal(text, context))
    if not math.isfinite(serial):
        raise ValueError(f"{text!r} is not a finite number")

    epoch = MAC_EPOCH if date1904 else WINDOWS_EPOCH
    converted = from_excel(serial, epoch)
    # fractions of a day come back as a time of day
    if not isinstance(converted, datetime):
        converted = datetime.combine(epoch.date(), converted)

    day = converted.date()
    return DateValue(value=day, text=context.render_date(day))


class ValueCoercer:
    """Turns located cells into typed values for one workbook package."""

    def __init__(self, package: WorkbookPackage, context: FormatContext | None = None):
        self.package = package
        self.context = context or FormatContext()
        self.date1904 = package.date1904

    def coerce(self, cell: RawCell) -> Value | None:
        """Infer the cell's value, or None if it has none.

        Raises:
            IndexError: If a shared-string or style index is out of range.
            ValueError: If a date or number cell does not hold a number.
        """
        raw = cell.raw_text

        if cell.data_type is CellDataType.SHARED_STRING:
            try:
                index = int(raw)
            except (TypeError, ValueError):
                return None
            return TextValue(self.package.shared_string(index))

        if cell.data_type is CellDataType.INLINE_STRING:
            return TextValue(cell.inline_text) if cell.inline_text is not None else None

        if cell.data_type is CellDataType.STRING:
            return TextValue(raw) if raw is not None else None

        # booleans, errors and ISO dates carry no name-able value
        if cell.data_type is not CellDataType.NUMBER or raw is None:
            return None

        if cell.style_index is not None:
            number_format = self.package.number_format(cell.style_index)

            if is_date_format(number_format):
                if raw == "0":
                    return TextValue(raw)
                return to_date_value(raw, self.context, self.date1904)

            if is_number_format(number_format):
                return to_number_value(raw, self.context)

        return TextValue(raw)


def coerce_value(
    cell: RawCell,
    package: WorkbookPackage,
    context: FormatContext | None = None,
) -> Value | None:
    """Coerce a single cell; see ValueCoercer.coerce."""
    return ValueCoercer(package, context).coerce(cell)
