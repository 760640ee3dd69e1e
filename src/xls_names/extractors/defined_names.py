"""Defined name extractor and pattern filter."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Sequence, Union

from ..models import DefinedName
from ..package import WorkbookPackage
from .base import BaseExtractor

logger = logging.getLogger(__name__)

FilterPattern = Union[str, re.Pattern]


def compile_filters(
    filters: FilterPattern | Sequence[FilterPattern] | None,
) -> list[re.Pattern[str]] | None:
    """Compile string filters; a single pattern is treated as a one-item list.

    Returns None when no filters are given, which accepts every name. An
    empty sequence is kept as an empty list and accepts nothing.

    Raises:
        re.error: If a string pattern is not a valid regular expression.
    """
    if filters is None:
        return None
    if isinstance(filters, (str, re.Pattern)):
        filters = [filters]
    return [f if isinstance(f, re.Pattern) else re.compile(f) for f in filters]


def filter_defined_names(
    defined_names: Iterable[DefinedName],
    filters: FilterPattern | Sequence[FilterPattern] | None = None,
) -> dict[str, str]:
    """Select the defined names that take part in a conversion.

    A name is accepted when it has a name and a reference, the reference is
    not ``#REF!``, and (if filters are given) at least one pattern is found
    in the name. When a name occurs more than once the first occurrence is
    kept.

    Args:
        defined_names: Defined names in workbook order.
        filters: Regular expressions matched with ``re.search``.

    Returns:
        Accepted name to reference text, in acceptance order.
    """
    patterns = compile_filters(filters)
    accepted: dict[str, str] = {}

    for defined_name in defined_names:
        name, reference = defined_name.name, defined_name.reference
        if not name or not reference or reference.strip().upper() == "#REF!":
            continue
        if name in accepted:
            logger.debug("Dropping duplicate defined name %r (%s)", name, reference)
            continue
        if patterns is None or any(p.search(name) for p in patterns):
            accepted[name] = reference

    return accepted


class DefinedNameExtractor(BaseExtractor):
    """Extracts the filtered defined names of a workbook."""

    name = "defined_names"

    def __init__(
        self,
        package: WorkbookPackage,
        filters: FilterPattern | Sequence[FilterPattern] | None = None,
    ):
        super().__init__(package)
        self.filters = filters

    def extract(self) -> dict[str, str]:
        """Extract accepted defined names.

        Returns:
            Mapping of defined name to its reference text
        """
        return filter_defined_names(self.package.defined_names(), self.filters)
