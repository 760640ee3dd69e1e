"""
Read-only access to the parts of an OOXML workbook package.

The package is opened once per conversion. Parts are read straight from the
ZIP archive and parsed with lxml; nothing is written back.

Example:
    >>> from xls_names.package import open_package
    >>> with open_package("workbook.xlsm") as package:
    ...     for sheet in package.sheets():
    ...         print(sheet.name, sheet.relationship_id)
"""

from __future__ import annotations

import io
import logging
import os
import posixpath
import zlib
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Union
from zipfile import BadZipFile, ZipFile

from lxml import etree
from openpyxl.styles.numbers import BUILTIN_FORMATS
from openpyxl.utils.cell import get_column_letter

from .exceptions import WorkbookPackageError
from .models import (
    CellDataType,
    DefinedName,
    NumberFormat,
    RawCell,
    Row,
    SheetEntry,
)

logger = logging.getLogger(__name__)

WorkbookSource = Union[str, os.PathLike, bytes, bytearray, BinaryIO]

NAMESPACES = {
    "main": "http://schemas.openxmlformats.org/spreadsheetml/2006/main",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
    "pr": "http://schemas.openxmlformats.org/package/2006/relationships",
}

MAIN = "{%s}" % NAMESPACES["main"]
REL_ID = "{%s}id" % NAMESPACES["r"]

DEFAULT_WORKBOOK_PATH = "xl/workbook.xml"

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)


def _as_bool(value: str | None) -> bool:
    return value is not None and value.strip().lower() in ("1", "true")


def _as_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _string_item_text(item: etree._Element) -> str:
    """Text of an ``<si>`` or ``<is>`` element.

    Plain items carry a single ``<t>``; rich-text items split it across
    ``<r>`` runs. Phonetic ``<rPh>`` runs are not part of the display text.
    """
    text = item.find(f"{MAIN}t")
    if text is not None:
        return text.text or ""
    return "".join(t.text or "" for t in item.findall(f"{MAIN}r/{MAIN}t"))


def _split_coordinate(reference: str) -> tuple[str, str]:
    letters = reference.rstrip("0123456789")
    return letters, reference[len(letters):]


def _column_index(letters: str) -> int:
    index = 0
    for char in letters.upper():
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index


class Worksheet:
    """Row and column data of one worksheet part."""

    def __init__(self, rows: dict[int, Row], hidden_columns: list[tuple[int, int]]):
        self._rows = rows
        self._hidden_columns = hidden_columns

    def row(self, index: int) -> Row | None:
        """Return the row whose ``r`` attribute equals ``index``."""
        return self._rows.get(index)

    def hidden_column_ranges(self) -> list[tuple[int, int]]:
        """Inclusive, 1-indexed ``(min, max)`` ranges flagged hidden."""
        return list(self._hidden_columns)

    @classmethod
    def from_xml(cls, content: bytes) -> Worksheet:
        """Parse a worksheet part.

        Rows and cells that omit their ``r`` attribute take the position
        after their predecessor. When a row index repeats, the first row
        is kept.
        """
        root = etree.fromstring(content, _PARSER)

        hidden_columns = []
        for col in root.iterfind(f"{MAIN}cols/{MAIN}col"):
            if not _as_bool(col.get("hidden")):
                continue
            low, high = _as_int(col.get("min")), _as_int(col.get("max"))
            if low is None:
                continue
            hidden_columns.append((low, high if high is not None else low))

        rows: dict[int, Row] = {}
        row_index = 0
        for row_el in root.iterfind(f"{MAIN}sheetData/{MAIN}row"):
            row_index = _as_int(row_el.get("r")) or row_index + 1
            if row_index in rows:
                continue
            rows[row_index] = Row(
                index=row_index,
                hidden=_as_bool(row_el.get("hidden")),
                cells=tuple(cls._parse_cells(row_el, row_index)),
            )

        return cls(rows, hidden_columns)

    @staticmethod
    def _parse_cells(row_el: etree._Element, row_index: int) -> Iterator[RawCell]:
        column = 0
        for cell_el in row_el.iterfind(f"{MAIN}c"):
            reference = cell_el.get("r")
            if reference:
                column = _column_index(_split_coordinate(reference)[0]) or column + 1
            else:
                column += 1
                reference = f"{get_column_letter(column)}{row_index}"

            value_el = cell_el.find(f"{MAIN}v")
            inline_el = cell_el.find(f"{MAIN}is")

            yield RawCell(
                reference=reference,
                data_type=CellDataType.from_attribute(cell_el.get("t")),
                style_index=_as_int(cell_el.get("s")),
                raw_text=value_el.text if value_el is not None else None,
                inline_text=_string_item_text(inline_el) if inline_el is not None else None,
            )


class WorkbookPackage:
    """Read-only view of a workbook package's defined names, sheets,
    shared strings and number formats."""

    def __init__(self, archive: ZipFile):
        self._archive = archive
        self._names = set(archive.namelist())

        self.workbook_path = self._find_workbook_path()
        content = self.read_part(self.workbook_path)
        if content is None:
            raise WorkbookPackageError(f"Workbook part not found: {self.workbook_path}")
        self._workbook = self._parse(content, self.workbook_path)
        self._relationships = self._read_relationships(self.workbook_path)

        self._shared_strings: list[str] | None = None
        self._cell_formats: list[int] | None = None
        self._custom_formats: dict[int, str] = {}
        self._styles_loaded = False

    # ------------------------------------------------------------------ #
    # Part access
    # ------------------------------------------------------------------ #

    def read_part(self, internal_path: str) -> bytes | None:
        """Read a part from the archive.

        Args:
            internal_path: Path inside the package (e.g. 'xl/workbook.xml')

        Returns:
            Part content as bytes, or None if not found

        Raises:
            WorkbookPackageError: If the member exists but cannot be
                decompressed (unsupported method, encryption, corrupt or
                truncated data).
        """
        if internal_path not in self._names:
            return None
        try:
            return self._archive.read(internal_path)
        except (
            BadZipFile,
            OSError,
            EOFError,
            NotImplementedError,
            RuntimeError,
            zlib.error,
        ) as e:
            raise WorkbookPackageError(f"Could not read {internal_path}: {e}") from e

    def _parse(self, content: bytes, internal_path: str) -> etree._Element:
        try:
            return etree.fromstring(content, _PARSER)
        except etree.XMLSyntaxError as e:
            raise WorkbookPackageError(f"Malformed XML in {internal_path}: {e}") from e

    def _read_relationships(self, part_path: str) -> dict[str, tuple[str, str]]:
        """Map relationship id to ``(type, resolved target)`` for a part."""
        directory, filename = posixpath.split(part_path)
        rels_path = posixpath.join(directory, "_rels", f"{filename}.rels")
        content = self.read_part(rels_path)
        if content is None:
            return {}

        relationships = {}
        for rel in self._parse(content, rels_path).iterfind(f"{{{NAMESPACES['pr']}}}Relationship"):
            if rel.get("TargetMode") == "External":
                continue
            target = rel.get("Target", "")
            if target.startswith("/"):
                resolved = target.lstrip("/")
            else:
                resolved = posixpath.normpath(posixpath.join(directory, target))
            relationships[rel.get("Id", "")] = (rel.get("Type", ""), resolved)
        return relationships

    def _find_workbook_path(self) -> str:
        content = self.read_part("_rels/.rels")
        if content is not None:
            for rel in self._parse(content, "_rels/.rels").iterfind(f"{{{NAMESPACES['pr']}}}Relationship"):
                if rel.get("Type", "").endswith("/officeDocument"):
                    return rel.get("Target", DEFAULT_WORKBOOK_PATH).lstrip("/")
        return DEFAULT_WORKBOOK_PATH

    def _part_by_type(self, suffix: str, default: str) -> str:
        for rel_type, target in self._relationships.values():
            if rel_type.endswith(suffix):
                return target
        return default

    # ------------------------------------------------------------------ #
    # Workbook
    # ------------------------------------------------------------------ #

    @property
    def date1904(self) -> bool:
        """Whether serial dates count from 1904-01-01 instead of 1900."""
        pr = self._workbook.find(f"{MAIN}workbookPr")
        return pr is not None and _as_bool(pr.get("date1904"))

    def defined_names(self) -> list[DefinedName]:
        """Defined names in document order, without ``#REF!`` entries."""
        names = []
        for el in self._workbook.iterfind(f"{MAIN}definedNames/{MAIN}definedName"):
            reference = el.text or ""
            if reference.strip().upper() == "#REF!":
                continue
            names.append(DefinedName(name=el.get("name", ""), reference=reference))
        return names

    def sheets(self) -> list[SheetEntry]:
        """The sheet catalog in workbook order; empty if none is declared."""
        return [
            SheetEntry(name=el.get("name", ""), relationship_id=el.get(REL_ID, ""))
            for el in self._workbook.iterfind(f"{MAIN}sheets/{MAIN}sheet")
        ]

    def worksheet(self, relationship_id: str) -> Worksheet | None:
        """Load the worksheet a relationship id points at.

        Returns None when the id is unknown, is not a worksheet, or the
        part is missing from the archive.
        """
        rel = self._relationships.get(relationship_id)
        if rel is None or not rel[0].endswith("/worksheet"):
            return None
        content = self.read_part(rel[1])
        if content is None:
            logger.debug("Worksheet part %s is missing", rel[1])
            return None
        try:
            return Worksheet.from_xml(content)
        except etree.XMLSyntaxError as e:
            raise WorkbookPackageError(f"Malformed XML in {rel[1]}: {e}") from e

    # ------------------------------------------------------------------ #
    # Shared strings and styles
    # ------------------------------------------------------------------ #

    def shared_string(self, index: int) -> str:
        """Display text of a shared-string entry.

        Raises:
            IndexError: If the index is outside the shared-string table.
        """
        if self._shared_strings is None:
            self._shared_strings = self._load_shared_strings()
        if index < 0:
            raise IndexError(f"Shared string index {index} is negative")
        try:
            return self._shared_strings[index]
        except IndexError:
            raise IndexError(
                f"Shared string index {index} is out of range "
                f"({len(self._shared_strings)} entries)"
            ) from None

    def _load_shared_strings(self) -> list[str]:
        path = self._part_by_type("/sharedStrings", "xl/sharedStrings.xml")
        content = self.read_part(path)
        if content is None:
            return []
        root = self._parse(content, path)
        return [_string_item_text(si) for si in root.iterfind(f"{MAIN}si")]

    def number_format(self, style_index: int) -> NumberFormat | None:
        """Number format of a cell style.

        Returns None when the package has no styles part.

        Raises:
            IndexError: If the style index is outside the cell-format table.
        """
        if not self._styles_loaded:
            self._load_styles()
        if self._cell_formats is None:
            return None
        if not 0 <= style_index < len(self._cell_formats):
            raise IndexError(
                f"Style index {style_index} is out of range "
                f"({len(self._cell_formats)} cell formats)"
            )
        format_id = self._cell_formats[style_index]
        code = self._custom_formats.get(format_id, BUILTIN_FORMATS.get(format_id))
        return NumberFormat(number_format_id=format_id, format_code=code)

    def _load_styles(self) -> None:
        self._styles_loaded = True
        path = self._part_by_type("/styles", "xl/styles.xml")
        content = self.read_part(path)
        if content is None:
            return
        root = self._parse(content, path)

        for fmt in root.iterfind(f"{MAIN}numFmts/{MAIN}numFmt"):
            format_id = _as_int(fmt.get("numFmtId"))
            if format_id is not None and fmt.get("formatCode") is not None:
                self._custom_formats[format_id] = fmt.get("formatCode")

        self._cell_formats = [
            _as_int(xf.get("numFmtId")) or 0
            for xf in root.iterfind(f"{MAIN}cellXfs/{MAIN}xf")
        ]

    def close(self) -> None:
        self._archive.close()


def _open_archive(source: WorkbookSource) -> ZipFile:
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    elif isinstance(source, (str, os.PathLike)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        source = path

    try:
        return ZipFile(source, "r")
    except BadZipFile as e:
        raise WorkbookPackageError(f"Not a valid workbook package: {e}") from e


@contextmanager
def open_package(source: WorkbookSource) -> Iterator[WorkbookPackage]:
    """Open a workbook package from a path, bytes or a binary file object.

    Raises:
        FileNotFoundError: If a path is given and does not exist.
        WorkbookPackageError: If the source is not a readable OOXML package.
    """
    archive = _open_archive(source)
    try:
        yield WorkbookPackage(archive)
    finally:
        archive.close()
