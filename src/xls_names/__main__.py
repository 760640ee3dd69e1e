"""CLI entry point for xls-names.

Usage:
    python -m xls_names workbook.xlsm
    xls-names workbook.xlsm -f "^date_" -f "^amount_" -o values.json
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import FormatContext, convert


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xls-names",
        description="Extract the values of defined names from an Excel workbook as JSON",
    )
    parser.add_argument(
        "input",
        help="Path to Excel file (.xlsx, .xlsm)",
    )
    parser.add_argument(
        "-f", "--filter",
        action="append",
        dest="filters",
        metavar="PATTERN",
        help="Regular expression a defined name must contain (repeatable)",
    )
    parser.add_argument(
        "--include-hidden-rows",
        action="store_true",
        help="Include cells in hidden rows",
    )
    parser.add_argument(
        "--include-hidden-columns",
        action="store_true",
        help="Include cells in hidden columns",
    )
    parser.add_argument(
        "--strict-sheet-names",
        action="store_true",
        help="Match references to sheets by their Sheet! prefix instead of by substring",
    )
    parser.add_argument(
        "--decimal-places",
        type=int,
        default=3,
        help="Fractional digits kept for decimal values (default: 3)",
    )
    parser.add_argument(
        "-o", "--output",
        help="Write JSON to this file instead of stdout",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=None,
        help="Indent the JSON output",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log progress to stderr",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Validate input file
    file_path = Path(args.input)
    if not file_path.exists():
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        return 1

    if file_path.suffix.lower() not in (".xlsx", ".xlsm", ".xltx", ".xltm"):
        print(f"Error: Not an Excel file: {file_path}", file=sys.stderr)
        return 1

    try:
        result = convert(
            file_path,
            filters=args.filters,
            exclude_hidden_rows=not args.include_hidden_rows,
            exclude_hidden_columns=not args.include_hidden_columns,
            strict_sheet_names=args.strict_sheet_names,
            context=FormatContext(decimal_places=args.decimal_places),
        )
    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        return 130

    package_failed = False
    for error in result.errors:
        print(f"Error: {error}", file=sys.stderr)
        package_failed = package_failed or error.name is None

    text = result.to_json(indent=args.indent)
    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
    else:
        print(text)

    return 1 if package_failed else 0


if __name__ == "__main__":
    sys.exit(main())
