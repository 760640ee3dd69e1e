"""Pipeline stages that resolve defined names to typed cell values."""

from .base import BaseExtractor
from .cells import column_name, hidden_column_names, locate_cell
from .defined_names import DefinedNameExtractor, compile_filters, filter_defined_names
from .references import is_addressable, parse_reference, references_sheet, sheet_prefix
from .sheets import SheetExtractor
from .values import (
    DATE_FORMAT_IDS,
    NUMBER_FORMAT_IDS,
    ValueCoercer,
    coerce_value,
    is_date_format,
    is_number_format,
)

__all__ = [
    "BaseExtractor",
    "DefinedNameExtractor",
    "SheetExtractor",
    "ValueCoercer",
    "DATE_FORMAT_IDS",
    "NUMBER_FORMAT_IDS",
    "column_name",
    "coerce_value",
    "compile_filters",
    "filter_defined_names",
    "hidden_column_names",
    "is_addressable",
    "is_date_format",
    "is_number_format",
    "locate_cell",
    "parse_reference",
    "references_sheet",
    "sheet_prefix",
]
