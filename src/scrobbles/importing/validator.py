"""Pre-flight validation of uploaded import files (JSON exports and CSV)."""

import csv
import enum
import io
import json
import logging
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any

from pydantic import BaseModel

from scrobbles.importing.constants import (
    ARTIST_ALIASES,
    CSV_CONTENT_TYPES,
    CSV_EXTENSIONS,
    CSV_REQUIRED_COLUMNS,
    DEFAULT_MAX_FILE_SIZE_BYTES,
    JSON_CONTENT_TYPES,
    JSON_EXTENSIONS,
    TIME_ALIASES,
    TRACK_ALIASES,
)
from scrobbles.importing.detector import DetectedFile, detect_format
from scrobbles.importing.exceptions import UnsupportedFormatError, ValidationFailedError
from scrobbles.importing.models import SourceFormat

logger = logging.getLogger(__name__)

_LISTENBRAINZ_FORMATS = frozenset(
    {
        SourceFormat.LISTENBRAINZ_ARRAY,
        SourceFormat.LISTENBRAINZ_LISTENS,
        SourceFormat.LISTENBRAINZ_PAYLOAD,
    }
)


class FileKind(enum.StrEnum):
    """Upload kinds accepted by the importer."""

    JSON = "json"
    CSV = "csv"


class ValidationResult(BaseModel):
    """Outcome of the pre-flight check. Always returned, never raised."""

    valid: bool
    message: str
    record_count: int = 0


@dataclass(frozen=True, slots=True)
class _Inspection:
    result: ValidationResult
    detected: DetectedFile | None = None
    unsupported: UnsupportedFormatError | None = None


def detect_file_kind(filename: str | None, content_type: str | None = None) -> FileKind | None:
    """Pick the file kind from the extension, falling back to the content type."""
    suffix = PurePath(filename).suffix.lower() if filename else ""
    if suffix in JSON_EXTENSIONS:
        return FileKind.JSON
    if suffix in CSV_EXTENSIONS:
        return FileKind.CSV

    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type in JSON_CONTENT_TYPES:
        return FileKind.JSON
    if media_type in CSV_CONTENT_TYPES:
        return FileKind.CSV
    return None


def _present(record: dict[str, Any], keys: tuple[str, ...]) -> bool:
    return any(record.get(key) not in (None, "", []) for key in keys)


def _missing_listenbrainz_fields(record: dict[str, Any]) -> list[str]:
    metadata = record.get("track_metadata")
    if not isinstance(metadata, dict):
        metadata = {}

    missing = []
    if not (_present(metadata, TRACK_ALIASES) or _present(record, TRACK_ALIASES)):
        missing.append("track_name")
    if not (_present(metadata, ARTIST_ALIASES) or _present(record, ARTIST_ALIASES)):
        missing.append("artist_name")
    if not _present(record, TIME_ALIASES):
        missing.append("listened_at")
    return missing


def _missing_maloja_fields(record: dict[str, Any]) -> list[str]:
    track = record.get("track")
    if not isinstance(track, dict):
        track = {}

    missing = []
    if not _present(track, ("title",)):
        missing.append("title")
    if not _present(track, ("artists",)):
        missing.append("artists")
    if not _present(record, ("time",)):
        missing.append("time")
    return missing


def _inspect_json(text: str) -> _Inspection:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        return _Inspection(ValidationResult(valid=False, message=f"File is not valid JSON: {exc.msg}"))
    except RecursionError:
        return _Inspection(ValidationResult(valid=False, message="File is not valid JSON: nested too deeply"))

    try:
        detected = detect_format(document)
    except UnsupportedFormatError as exc:
        return _Inspection(ValidationResult(valid=False, message=str(exc)), unsupported=exc)

    count = len(detected.records)
    if count == 0:
        return _Inspection(ValidationResult(valid=False, message="File contains no listens"), detected)

    if detected.format in _LISTENBRAINZ_FORMATS or detected.format == SourceFormat.MALOJA:
        first = detected.records[0]
        if not isinstance(first, dict):
            return _Inspection(
                ValidationResult(valid=False, message="First record is not an object", record_count=count),
                detected,
            )
        if detected.format == SourceFormat.MALOJA:
            missing = _missing_maloja_fields(first)
        else:
            missing = _missing_listenbrainz_fields(first)
        if missing:
            return _Inspection(
                ValidationResult(
                    valid=False,
                    message=f"Records are missing required fields: {', '.join(missing)}",
                    record_count=count,
                ),
                detected,
            )

    return _Inspection(
        ValidationResult(valid=True, message=f"Found {count} listens ({detected.format})", record_count=count),
        detected,
    )


def _inspect_csv(text: str) -> _Inspection:
    reader = csv.DictReader(io.StringIO(text))
    try:
        fieldnames = reader.fieldnames
        if fieldnames is None:
            return _Inspection(ValidationResult(valid=False, message="CSV file has no header row"))
        reader.fieldnames = [name.strip() for name in fieldnames]

        missing = [column for column in CSV_REQUIRED_COLUMNS if column not in reader.fieldnames]
        if missing:
            return _Inspection(
                ValidationResult(valid=False, message=f"CSV is missing required columns: {', '.join(missing)}")
            )

        rows: list[Any] = list(reader)
    except csv.Error as exc:
        # oversized fields, NUL bytes and similar malformed input
        return _Inspection(ValidationResult(valid=False, message=f"File is not valid CSV: {exc}"))

    if not rows:
        return _Inspection(ValidationResult(valid=False, message="File contains no listens"))

    return _Inspection(
        ValidationResult(valid=True, message=f"Found {len(rows)} listens (csv)", record_count=len(rows)),
        DetectedFile(SourceFormat.CSV, rows),
    )


def _inspect(
    filename: str | None,
    data: bytes,
    content_type: str | None,
    max_size_bytes: int,
) -> _Inspection:
    kind = detect_file_kind(filename, content_type)
    if kind is None:
        return _Inspection(ValidationResult(valid=False, message="Unsupported file type: expected .json or .csv"))
    if not data:
        return _Inspection(ValidationResult(valid=False, message="File is empty"))
    if len(data) > max_size_bytes:
        max_mb = max_size_bytes / (1024 * 1024)
        return _Inspection(ValidationResult(valid=False, message=f"File exceeds maximum size of {max_mb:g}MB"))

    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return _Inspection(ValidationResult(valid=False, message="File is not valid UTF-8 text"))

    if kind == FileKind.JSON:
        return _inspect_json(text)
    return _inspect_csv(text)


def validate_import_file(
    filename: str | None,
    data: bytes,
    content_type: str | None = None,
    *,
    max_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES,
) -> ValidationResult:
    """Check that an upload is a supported, non-empty export before anything is imported."""
    return _inspect(filename, data, content_type, max_size_bytes).result


def load_import_file(
    filename: str | None,
    data: bytes,
    content_type: str | None = None,
    *,
    max_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES,
) -> DetectedFile:
    """Validate an upload and return its detected records.

    Raises UnsupportedFormatError if no schema matched, ValidationFailedError
    for every other pre-flight failure.
    """
    inspection = _inspect(filename, data, content_type, max_size_bytes)
    if inspection.unsupported is not None:
        raise inspection.unsupported
    if not inspection.result.valid or inspection.detected is None:
        logger.info("Import file %s rejected: %s", filename, inspection.result.message)
        raise ValidationFailedError(inspection.result)
    return inspection.detected
