"""Base extractor protocol."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..package import WorkbookPackage


class BaseExtractor(ABC):
    """Base class for extractors that read from a workbook package."""

    name: str = "base"

    def __init__(self, package: WorkbookPackage):
        """Initialize extractor.

        Args:
            package: The opened workbook package
        """
        self.package = package

    @abstractmethod
    def extract(self) -> Any:
        """Extract data from the workbook.

        Returns:
            Extracted data (type depends on extractor)
        """
        pass
