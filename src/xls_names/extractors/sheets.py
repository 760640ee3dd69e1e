"""Sheet resolver: maps sheet names to worksheet relationship ids."""

from __future__ import annotations

from typing import Iterable

from ..package import WorkbookPackage, Worksheet
from .base import BaseExtractor
from .references import references_sheet


class SheetExtractor(BaseExtractor):
    """Resolves the sheets that accepted defined names point at."""

    name = "sheets"

    def __init__(
        self,
        package: WorkbookPackage,
        references: Iterable[str],
        strict: bool = False,
    ):
        super().__init__(package)
        self.references = list(references)
        self.strict = strict

    def extract(self) -> dict[str, str] | None:
        """Extract the sheets referenced by at least one accepted name.

        Returns:
            Sheet name to relationship id in catalog order, or None if the
            workbook declares no sheets
        """
        entries = self.package.sheets()
        if not entries:
            return None

        sheets: dict[str, str] = {}
        for entry in entries:
            if entry.name in sheets:
                continue
            if any(references_sheet(ref, entry.name, self.strict) for ref in self.references):
                sheets[entry.name] = entry.relationship_id
        return sheets

    def worksheet(self, relationship_id: str) -> Worksheet | None:
        """Load the worksheet for a relationship id, or None if it does not resolve."""
        return self.package.worksheet(relationship_id)
