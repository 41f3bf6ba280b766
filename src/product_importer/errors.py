"""Exceptions raised by the product importer."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from product_importer.ingestion.result import ImportResult


class ProductImportError(Exception):
    """Base class for importer errors."""


class InputNotFoundError(ProductImportError, FileNotFoundError):
    """The input file does not exist."""

    def __init__(self, path) -> None:
        super().__init__(f"CSV file not found: {path}")
        self.path = path


class InvalidInputError(ProductImportError):
    """The input cannot be read as a headed CSV file."""


class RowConversionError(ProductImportError, ValueError):
    """A field of a single row could not be converted to its typed value."""

    def __init__(self, field: str, value: str | None, reason: str) -> None:
        if value is None:
            message = f"Field '{field}': {reason}"
        else:
            message = f"Field '{field}': cannot convert '{value}' ({reason})"
        super().__init__(message)
        self.field = field
        self.value = value


class ImportCancelled(ProductImportError):
    """The run was cancelled; ``result`` holds whatever had been accumulated."""

    def __init__(self, message: str = "Import cancelled", result: ImportResult | None = None) -> None:
        super().__init__(message)
        self.result = result
