"""File-level import failures.

Per-record problems (rejected records, duplicates, failed enrichment) are
counted in the ImportResult and never raised.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scrobbles.importing.validator import ValidationResult


class ImportPipelineError(Exception):
    """Base exception for import failures that abort the whole file."""


class UnsupportedFormatError(ImportPipelineError):
    """The document matched none of the known import schemas."""

    def __init__(self, found_keys: list[str]) -> None:
        self.found_keys = found_keys
        msg = "Unsupported import format"
        if found_keys:
            msg += f" (found top-level keys: {', '.join(found_keys)})"
        super().__init__(msg)


class ValidationFailedError(ImportPipelineError):
    """The pre-flight structural check rejected the file."""

    def __init__(self, result: "ValidationResult") -> None:
        self.result = result
        super().__init__(result.message)


class TransportFailureError(ImportPipelineError):
    """The storage layer failed; nothing from the batch was committed."""
