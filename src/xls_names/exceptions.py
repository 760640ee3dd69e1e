"""Exceptions raised while reading workbooks and resolving defined names."""

from __future__ import annotations


class XlsNamesError(Exception):
    """Base class for all xls-names errors."""


class WorkbookPackageError(XlsNamesError, ValueError):
    """The OOXML package could not be opened or one of its parts is unreadable.

    This is a package-level failure: ``convert()`` reports it as a single
    diagnostic and returns an empty result.
    """


class ReferenceParseError(XlsNamesError, ValueError):
    """A defined name's reference string could not be decomposed."""
