"""
Main entry point for defined-name extraction.

This module provides the convert() function, which resolves every accepted
defined name of a workbook to the value of the cell it points at.

Example:
    >>> from xls_names import convert
    >>> values, errors = convert("workbook.xlsm", filters=[r"^date_"])
    >>> values["date_of_birth"].to_json()
    '1/22/2023'
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from .exceptions import WorkbookPackageError
from .extractors import (
    DefinedNameExtractor,
    SheetExtractor,
    ValueCoercer,
    compile_filters,
    hidden_column_names,
    is_addressable,
    locate_cell,
    parse_reference,
    references_sheet,
)
from .extractors.defined_names import FilterPattern
from .models import ConversionResult, EntryError, FormatContext, Value
from .package import WorkbookPackage, WorkbookSource, Worksheet, open_package

logger = logging.getLogger(__name__)


def convert(
    source: WorkbookSource | WorkbookPackage,
    filters: FilterPattern | Sequence[FilterPattern] | None = None,
    exclude_hidden_rows: bool = True,
    exclude_hidden_columns: bool = True,
    *,
    strict_sheet_names: bool = False,
    context: FormatContext | None = None,
) -> ConversionResult:
    """Extract the values of a workbook's defined names.

    Each accepted defined name whose reference points at a ``$``-addressed
    cell is resolved to that cell's typed value. Names that resolve to a
    missing, hidden or empty cell are left out. A failure while resolving
    one name is recorded in ``errors`` and does not stop the others.

    This function does not raise: a package that cannot be read yields an
    empty result with a single error.

    Args:
        source: Path, bytes or binary file object of an .xlsx/.xlsm file, or
            an already opened WorkbookPackage.
        filters: Regular expressions; a name is kept if any of them is found
            in it. None keeps every name.
        exclude_hidden_rows: Leave out cells in hidden rows.
        exclude_hidden_columns: Leave out cells in hidden columns.
        strict_sheet_names: Associate references with sheets by their parsed
            ``Sheet!`` prefix rather than by substring.
        context: Number and date formatting; defaults to FormatContext().

    Returns:
        ConversionResult unpacking as ``(values, errors)``.

    Example:
        >>> values, errors = convert("form.xlsm", exclude_hidden_rows=False)
        >>> for error in errors:
        ...     print(error)
    """
    try:
        patterns = compile_filters(filters)
    except re.error as e:
        logger.warning("Invalid defined name filter: %s", e)
        return ConversionResult({}, [EntryError(None, None, f"Invalid filter: {e}")])

    try:
        if isinstance(source, WorkbookPackage):
            return _convert_package(
                source, patterns, exclude_hidden_rows, exclude_hidden_columns,
                strict_sheet_names, context,
            )
        with open_package(source) as package:
            return _convert_package(
                package, patterns, exclude_hidden_rows, exclude_hidden_columns,
                strict_sheet_names, context,
            )
    except (WorkbookPackageError, OSError) as e:
        logger.warning("Could not read workbook: %s", e)
        return ConversionResult({}, [EntryError(None, None, str(e))])


def convert_to_json(
    source: WorkbookSource | WorkbookPackage,
    filters: FilterPattern | Sequence[FilterPattern] | None = None,
    exclude_hidden_rows: bool = True,
    exclude_hidden_columns: bool = True,
    *,
    strict_sheet_names: bool = False,
    context: FormatContext | None = None,
    indent: int | None = None,
) -> tuple[str, list[EntryError]]:
    """Like convert(), but returns the values as a JSON object string.

    Example:
        >>> text, errors = convert_to_json(open("form.xlsm", "rb"))
        >>> text
        '{"date_of_birth": "1/22/2023"}'
    """
    result = convert(
        source,
        filters,
        exclude_hidden_rows,
        exclude_hidden_columns,
        strict_sheet_names=strict_sheet_names,
        context=context,
    )
    return result.to_json(indent=indent), result.errors


def _convert_package(
    package: WorkbookPackage,
    patterns: list[re.Pattern[str]] | None,
    exclude_hidden_rows: bool,
    exclude_hidden_columns: bool,
    strict_sheet_names: bool,
    context: FormatContext | None,
) -> ConversionResult:
    """Run the pipeline over an opened package."""
    names = DefinedNameExtractor(package, patterns).extract()
    if not names:
        logger.debug("No defined names accepted")
        return ConversionResult({}, [])

    sheet_extractor = SheetExtractor(package, names.values(), strict=strict_sheet_names)
    sheets = sheet_extractor.extract()
    if not sheets:
        logger.debug("No sheets referenced by the accepted defined names")
        return ConversionResult({}, [])

    coercer = ValueCoercer(package, context)
    values: dict[str, Value] = {}
    errors: list[EntryError] = []

    for sheet_name, relationship_id in sheets.items():
        entries = [
            (name, reference)
            for name, reference in names.items()
            if references_sheet(reference, sheet_name, strict_sheet_names)
            and is_addressable(reference)
        ]
        if not entries:
            continue

        try:
            worksheet = sheet_extractor.worksheet(relationship_id)
        except WorkbookPackageError as e:
            errors.extend(EntryError(name, reference, str(e)) for name, reference in entries)
            continue
        if worksheet is None:
            logger.debug("Sheet %r (%s) has no worksheet part", sheet_name, relationship_id)
            continue
        hidden_columns = hidden_column_names(worksheet) if exclude_hidden_columns else set()

        for name, reference in entries:
            # first resolved occurrence wins
            if name in values:
                continue
            try:
                value = _resolve_entry(
                    worksheet, sheet_name, reference, coercer,
                    exclude_hidden_rows, exclude_hidden_columns, hidden_columns,
                )
            except Exception as e:
                logger.debug("Could not resolve %s (%s): %s", name, reference, e)
                errors.append(EntryError(name, reference, str(e)))
                continue

            if value is None or value.is_empty:
                continue
            values[name] = value

    logger.info("Resolved %d of %d defined names", len(values), len(names))
    return ConversionResult(values, errors)


def _resolve_entry(
    worksheet: Worksheet,
    sheet_name: str,
    reference: str,
    coercer: ValueCoercer,
    exclude_hidden_rows: bool,
    exclude_hidden_columns: bool,
    hidden_columns: set[str],
) -> Value | None:
    address = parse_reference(reference, sheet_name)
    cell = locate_cell(
        worksheet,
        address.column,
        address.row,
        exclude_hidden_rows=exclude_hidden_rows,
        exclude_hidden_columns=exclude_hidden_columns,
        hidden_columns=hidden_columns,
    )
    if cell is None:
        return None
    return coercer.coerce(cell)
