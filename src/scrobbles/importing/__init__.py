"""Listen import: schema detection, normalization, validation and deduplication.

The orchestrator lives in ``scrobbles.importing.orchestrator`` and is not
re-exported here because it depends on the database layer.
"""

from scrobbles.importing.detector import DetectedFile, detect_format
from scrobbles.importing.exceptions import (
    ImportPipelineError,
    TransportFailureError,
    UnsupportedFormatError,
    ValidationFailedError,
)
from scrobbles.importing.models import (
    ImportBatch,
    ImportMode,
    ImportResult,
    Listen,
    MetadataSource,
    SourceFormat,
)
from scrobbles.importing.normalizers import normalize_record
from scrobbles.importing.validator import ValidationResult, load_import_file, validate_import_file

__all__ = [
    "DetectedFile",
    "ImportBatch",
    "ImportMode",
    "ImportPipelineError",
    "ImportResult",
    "Listen",
    "MetadataSource",
    "SourceFormat",
    "TransportFailureError",
    "UnsupportedFormatError",
    "ValidationFailedError",
    "ValidationResult",
    "detect_format",
    "load_import_file",
    "normalize_record",
    "validate_import_file",
]
