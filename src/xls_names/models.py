"""
Data models for defined-name extraction.

This module contains the dataclasses and enums used to describe the raw
workbook data that is read from an OOXML package, and the typed values
produced from it.

Example:
    >>> from xls_names import convert
    >>> values, errors = convert("workbook.xlsm")
    >>> for name, value in values.items():
    ...     print(f"{name} ({value.kind.value}): {value.to_json()}")
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, NamedTuple, Union


# =============================================================================
# Enums
# =============================================================================


class CellDataType(Enum):
    """The ``t`` attribute of a worksheet cell.

    A cell without a ``t`` attribute is a number.

    Attributes:
        NUMBER: Numeric value stored in ``<v>`` (``n`` or no attribute).
        SHARED_STRING: Index into the shared-string table.
        INLINE_STRING: Text stored inline in ``<is>``.
        STRING: Cached text result of a formula.
        BOOLEAN: ``0`` or ``1``.
        ERROR: Error literal such as ``#N/A``.
        DATE: ISO 8601 date text.
    """

    NUMBER = "n"
    SHARED_STRING = "s"
    INLINE_STRING = "inlineStr"
    STRING = "str"
    BOOLEAN = "b"
    ERROR = "e"
    DATE = "d"

    @classmethod
    def from_attribute(cls, value: str | None) -> CellDataType:
        """Map a raw ``t`` attribute to a data type, defaulting to NUMBER."""
        if not value:
            return cls.NUMBER
        try:
            return cls(value)
        except ValueError:
            return cls.NUMBER


class ValueKind(Enum):
    """Semantic type inferred for a cell value.

    Attributes:
        TEXT: Plain text, encoded as a JSON string.
        INTEGER: Whole number, encoded as a JSON integer.
        DECIMAL: Number with a fractional part, encoded as a JSON number.
        DATE: Calendar date, encoded as a short-date JSON string.
    """

    TEXT = "text"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATE = "date"


# =============================================================================
# Workbook data
# =============================================================================


@dataclass(frozen=True)
class DefinedName:
    """A workbook-level defined name.

    Attributes:
        name: The identifier callers use as the output key.
        reference: Raw reference text, e.g. ``Sheet1!$B$12``.
    """

    name: str
    reference: str


@dataclass(frozen=True)
class SheetEntry:
    """One ``<sheet>`` element of the workbook's sheet catalog."""

    name: str
    relationship_id: str


@dataclass(frozen=True)
class CellAddress:
    """A single-cell location derived from a defined name's reference."""

    sheet_name: str
    column: str
    row: int

    @property
    def coordinate(self) -> str:
        """Column and row joined, e.g. ``B12``."""
        return f"{self.column}{self.row}"


@dataclass(frozen=True)
class RawCell:
    """Cell content as stored in the worksheet XML, before coercion.

    Attributes:
        reference: The cell's ``r`` attribute, e.g. ``B12``.
        data_type: Parsed ``t`` attribute.
        style_index: Parsed ``s`` attribute (index into the cell formats).
        raw_text: Text of the ``<v>`` element.
        inline_text: Text of an ``<is>`` inline string, if any.
    """

    reference: str
    data_type: CellDataType = CellDataType.NUMBER
    style_index: int | None = None
    raw_text: str | None = None
    inline_text: str | None = None


@dataclass(frozen=True)
class Row:
    """A worksheet row with its visibility flag and cells."""

    index: int
    hidden: bool = False
    cells: tuple[RawCell, ...] = ()


@dataclass(frozen=True)
class NumberFormat:
    """Number format applied through a cell's style index.

    Attributes:
        number_format_id: ``numFmtId`` of the cell format.
        format_code: Format pattern, e.g. ``yyyy-mm-dd``. None when the id
            is neither declared in the styles part nor built in.
    """

    number_format_id: int
    format_code: str | None = None


# =============================================================================
# Formatting context
# =============================================================================


@dataclass(frozen=True)
class FormatContext:
    """Call-scoped number and date formatting settings.

    Attributes:
        decimal_separator: Separator used in raw numeric text.
        decimal_places: Fractional digits kept for decimal values.
        date_format: ``str.format`` template with ``year``, ``month`` and
            ``day`` fields; the default renders US short dates (1/22/2023).

    Example:
        >>> context = FormatContext(decimal_places=2, date_format="{year}-{month:02d}-{day:02d}")
        >>> values, errors = convert("workbook.xlsx", context=context)
    """

    decimal_separator: str = "."
    decimal_places: int = 3
    date_format: str = "{month}/{day}/{year}"

    @property
    def quantum(self) -> Decimal:
        """Smallest step kept when rounding, e.g. ``0.001``."""
        return Decimal(1).scaleb(-self.decimal_places)

    def render_date(self, value: date) -> str:
        return self.date_format.format(year=value.year, month=value.month, day=value.day)


# =============================================================================
# Values
# =============================================================================


@dataclass(frozen=True)
class TextValue:
    """Text taken from a shared string, inline string or raw cell value."""

    text: str
    kind: ValueKind = field(default=ValueKind.TEXT, init=False)

    @property
    def is_empty(self) -> bool:
        return self.text == ""

    def to_json(self) -> str:
        return self.text


@dataclass(frozen=True)
class IntegerValue:
    """Number-formatted cell without a fractional part."""

    value: int
    kind: ValueKind = field(default=ValueKind.INTEGER, init=False)

    @property
    def is_empty(self) -> bool:
        return False

    def to_json(self) -> int:
        return self.value


@dataclass(frozen=True)
class DecimalValue:
    """Number-formatted cell, rounded to the context's decimal places."""

    value: Decimal
    kind: ValueKind = field(default=ValueKind.DECIMAL, init=False)

    @property
    def is_empty(self) -> bool:
        return False

    def to_json(self) -> float:
        return float(self.value)


@dataclass(frozen=True)
class DateValue:
    """Date-formatted cell.

    Attributes:
        value: The calendar date.
        text: Short-date rendering used for output.
    """

    value: date
    text: str
    kind: ValueKind = field(default=ValueKind.DATE, init=False)

    @property
    def is_empty(self) -> bool:
        return False

    def to_json(self) -> str:
        return self.text


Value = Union[TextValue, IntegerValue, DecimalValue, DateValue]


# =============================================================================
# Results
# =============================================================================


@dataclass
class EntryError:
    """A failure that was isolated instead of aborting the conversion.

    Per-entry failures carry the defined name and its reference. A
    package-level failure is reported once with both left as None.

    Attributes:
        name: Defined name being resolved.
        reference: Its raw reference text.
        message: Human-readable error message.
    """

    name: str | None
    reference: str | None
    message: str

    def __str__(self) -> str:
        if self.name is None:
            return self.message
        return f"Error occurred in cell {self.name} from location {self.reference}: {self.message}"


class ConversionResult(NamedTuple):
    """Values resolved from a workbook, plus the isolated errors.

    Unpacks as ``values, errors``.
    """

    values: dict[str, Value]
    errors: list[EntryError]

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping of defined name to value."""
        return {name: value.to_json() for name, value in self.values.items()}

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)
