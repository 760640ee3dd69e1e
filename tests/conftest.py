"""Pytest fixtures for xls-names tests."""

from __future__ import annotations

import tempfile
from datetime import datetime
from pathlib import Path
from xml.sax.saxutils import escape, quoteattr
from zipfile import ZIP_DEFLATED, ZipFile

import pytest
from openpyxl import Workbook
from openpyxl.workbook.defined_name import DefinedName

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"

# Cell format table shared by the hand-built workbooks (index = style "s"):
#   0 General | 1 custom dd/mm/yyyy | 2 built-in 0.00 | 3 text "@"
#   4 built-in 14 (mm-dd-yy) | 5 built-in 16 (d-mmm) | 6 custom #,##0.000
NUMBER_FORMATS = {164: "dd/mm/yyyy", 165: "#,##0.000"}
CELL_FORMATS = [0, 164, 2, 49, 14, 16, 165]


def write_workbook(
    path: Path,
    sheets: dict[str, str],
    defined_names: list[tuple[str, str]] = (),
    shared_strings: list[str] = (),
    number_formats: dict[int, str] | None = None,
    cell_formats: list[int] | None = None,
    date1904: bool = False,
) -> Path:
    """Write a minimal OOXML workbook.

    ``sheets`` maps each sheet name to the XML inside its <worksheet>
    element (``<cols>`` and ``<sheetData>``). Shared strings may be plain
    text or a raw ``<si>`` body when they start with ``<``. Passing
    ``cell_formats=[]`` leaves out the styles part.
    """
    number_formats = NUMBER_FORMATS if number_formats is None else number_formats
    cell_formats = CELL_FORMATS if cell_formats is None else cell_formats

    sheet_entries = "".join(
        f'<sheet name={quoteattr(name)} sheetId="{i}" r:id="rId{i}"/>'
        for i, name in enumerate(sheets, 1)
    )
    names = "".join(
        f"<definedName name={quoteattr(name)}>{escape(ref)}</definedName>"
        for name, ref in defined_names
    )
    workbook = (
        f'<workbook xmlns="{MAIN_NS}" xmlns:r="{REL_NS}">'
        + ('<workbookPr date1904="1"/>' if date1904 else "<workbookPr/>")
        + f"<sheets>{sheet_entries}</sheets>"
        + (f"<definedNames>{names}</definedNames>" if names else "")
        + "</workbook>"
    )

    rels = [
        f'<Relationship Id="rId{i}" Type="{REL_NS}/worksheet" Target="worksheets/sheet{i}.xml"/>'
        for i in range(1, len(sheets) + 1)
    ]
    rels.append(f'<Relationship Id="rIdStrings" Type="{REL_NS}/sharedStrings" Target="sharedStrings.xml"/>')
    if cell_formats:
        rels.append(f'<Relationship Id="rIdStyles" Type="{REL_NS}/styles" Target="styles.xml"/>')

    with ZipFile(path, "w", ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", (
            '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
            '<Default Extension="xml" ContentType="application/xml"/>'
            '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
            "</Types>"
        ))
        zf.writestr("_rels/.rels", (
            f'<Relationships xmlns="{PKG_REL_NS}">'
            f'<Relationship Id="rId1" Type="{REL_NS}/officeDocument" Target="xl/workbook.xml"/>'
            "</Relationships>"
        ))
        zf.writestr("xl/workbook.xml", workbook)
        zf.writestr("xl/_rels/workbook.xml.rels", f'<Relationships xmlns="{PKG_REL_NS}">{"".join(rels)}</Relationships>')

        for i, body in enumerate(sheets.values(), 1):
            zf.writestr(f"xl/worksheets/sheet{i}.xml", f'<worksheet xmlns="{MAIN_NS}">{body}</worksheet>')

        items = "".join(
            f"<si>{s}</si>" if s.startswith("<") else f"<si><t>{escape(s)}</t></si>"
            for s in shared_strings
        )
        zf.writestr("xl/sharedStrings.xml", f'<sst xmlns="{MAIN_NS}" count="{len(shared_strings)}">{items}</sst>')

        if cell_formats:
            fmts = "".join(
                f'<numFmt numFmtId="{fid}" formatCode={quoteattr(code)}/>'
                for fid, code in number_formats.items()
            )
            xfs = "".join(f'<xf numFmtId="{fid}" fontId="0"/>' for fid in cell_formats)
            zf.writestr("xl/styles.xml", (
                f'<styleSheet xmlns="{MAIN_NS}">'
                f'<numFmts count="{len(number_formats)}">{fmts}</numFmts>'
                f'<cellXfs count="{len(cell_formats)}">{xfs}</cellXfs>'
                "</styleSheet>"
            ))

    return path


def set_compression_method(path: Path, member: str, method: int) -> None:
    """Rewrite the central-directory compression method of one member."""
    data = bytearray(path.read_bytes())
    encoded = member.encode()
    offset = data.find(b"PK\x01\x02")
    while offset != -1:
        name_length = int.from_bytes(data[offset + 28:offset + 30], "little")
        if bytes(data[offset + 46:offset + 46 + name_length]) == encoded:
            data[offset + 10:offset + 12] = method.to_bytes(2, "little")
        offset = data.find(b"PK\x01\x02", offset + 4)
    path.write_bytes(bytes(data))


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as td:
        yield Path(td)


@pytest.fixture
def make_workbook(temp_dir):
    """Factory writing a hand-built workbook into the temp directory."""
    counter = iter(range(1000))

    def _make(sheets: dict[str, str], **kwargs) -> Path:
        return write_workbook(temp_dir / f"workbook{next(counter)}.xlsx", sheets, **kwargs)

    return _make


FORM_SHEET = (
    '<cols><col min="3" max="3" width="0" hidden="1"/></cols>'
    "<sheetData>"
    '<row r="1">'
    '<c r="A1" t="s"><v>0</v></c>'
    '<c r="B1" t="s"><v>3</v></c>'
    "</row>"
    '<row r="2">'
    '<c r="A2" t="inlineStr"><is><t>Date of birth</t></is></c>'
    '<c r="B2" s="1"><v>44948</v></c>'
    "</row>"
    '<row r="3" hidden="1">'
    '<c r="B3" t="s"><v>1</v></c>'
    "</row>"
    '<row r="4">'
    '<c r="B4" s="2"><v>10.5005</v></c>'
    '<c r="C4" s="2"><v>10</v></c>'
    '<c r="D4" s="1"><v>0</v></c>'
    '<c r="E4"><v>42</v></c>'
    '<c r="F4" t="s"><v>99</v></c>'
    '<c r="G4" t="inlineStr"><is><t>Inline</t></is></c>'
    '<c r="H4" s="2"/>'
    "</row>"
    "</sheetData>"
)

DETAILS_SHEET = '<sheetData><row r="1"><c r="A1" t="s"><v>2</v></c></row></sheetData>'

FORM_NAMES = [
    ("first_name", "Sheet1!$A$1"),
    ("fourth", "Sheet1!$B$1"),
    ("date_of_birth", "Sheet1!$B$2"),
    ("hidden_row", "Sheet1!$B$3"),
    ("amount", "Sheet1!$B$4"),
    ("hidden_column", "Sheet1!$C$4"),
    ("zero_date", "Sheet1!$D$4"),
    ("plain_number", "Sheet1!$E$4"),
    ("bad_string", "Sheet1!$F$4"),
    ("inline", "Sheet1!$G$4"),
    ("empty", "Sheet1!$H$4"),
    ("missing_cell", "Sheet1!$Z$99"),
    ("bad_row", "Sheet1!$A$x1"),
    ("constant", "0.25"),
    ("broken", "#REF!"),
    ("rich", "Details!$A$1"),
    ("amount", "Sheet1!$E$4"),
]

FORM_STRINGS = ["Alice", "Bob", "<r><t>Ri</t></r><r><t>ch</t></r>", "Fourth"]


@pytest.fixture
def form_workbook(make_workbook) -> Path:
    """Workbook with one defined name per coercion rule and edge case."""
    return make_workbook(
        {"Sheet1": FORM_SHEET, "Details": DETAILS_SHEET},
        defined_names=FORM_NAMES,
        shared_strings=FORM_STRINGS,
    )


@pytest.fixture
def openpyxl_workbook(temp_dir) -> Path:
    """Workbook saved by openpyxl, with dates, numbers and hidden cells."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Sheet1"

    ws["A1"] = "Name"
    ws["B1"] = "Alice"
    ws["A2"] = "Date of birth"
    ws["B2"] = datetime(2023, 1, 22)
    ws["B3"] = "Secret"
    ws["B4"] = 10
    ws["B4"].number_format = "0.00"
    ws["C4"] = 2.5
    ws["C4"].number_format = "0.00"
    ws.row_dimensions[3].hidden = True
    ws.column_dimensions["C"].hidden = True

    wb.defined_names.add(DefinedName("name", attr_text="Sheet1!$B$1"))
    wb.defined_names.add(DefinedName("date_of_birth", attr_text="Sheet1!$B$2"))
    wb.defined_names.add(DefinedName("secret", attr_text="Sheet1!$B$3"))
    wb.defined_names.add(DefinedName("count", attr_text="Sheet1!$B$4"))
    wb.defined_names.add(DefinedName("ratio", attr_text="Sheet1!$C$4"))
    wb.defined_names.add(DefinedName("TaxRate", attr_text="0.25"))

    path = temp_dir / "openpyxl.xlsx"
    wb.save(path)
    wb.close()
    return path
