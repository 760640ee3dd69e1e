"""
xls-names: extract the values of defined names from Excel workbooks.

Cells are tagged by declaring workbook-level defined names such as
``date_of_birth -> Sheet1!$B$2``. Each accepted name is resolved to its
cell and the cell's value is typed as text, integer, decimal or date.

Basic usage:
    >>> from xls_names import convert
    >>> values, errors = convert("workbook.xlsm")
    >>> values["date_of_birth"].to_json()
    '1/22/2023'

JSON output, filtered by name:
    >>> from xls_names import convert_to_json
    >>> text, errors = convert_to_json("workbook.xlsm", filters=[r"^date_"])
"""

from .convert import convert, convert_to_json
from .exceptions import ReferenceParseError, WorkbookPackageError, XlsNamesError
from .models import (
    # Results
    ConversionResult,
    EntryError,
    # Values
    Value,
    ValueKind,
    TextValue,
    IntegerValue,
    DecimalValue,
    DateValue,
    # Formatting
    FormatContext,
    # Workbook data
    CellAddress,
    CellDataType,
    DefinedName,
    NumberFormat,
    RawCell,
    Row,
    SheetEntry,
)
from .package import WorkbookPackage, Worksheet, open_package

__version__ = "0.1.0"

__all__ = [
    # Main API
    "convert",
    "convert_to_json",
    "open_package",
    "WorkbookPackage",
    "Worksheet",
    # Results
    "ConversionResult",
    "EntryError",
    # Values
    "Value",
    "ValueKind",
    "TextValue",
    "IntegerValue",
    "DecimalValue",
    "DateValue",
    "FormatContext",
    # Workbook data
    "CellAddress",
    "CellDataType",
    "DefinedName",
    "NumberFormat",
    "RawCell",
    "Row",
    "SheetEntry",
    # Errors
    "XlsNamesError",
    "WorkbookPackageError",
    "ReferenceParseError",
]
