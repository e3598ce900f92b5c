"""Export listens as JSON (wire shape) or flattened CSV."""

import csv
import enum
import io
import json
from collections.abc import Iterable
from datetime import date

from scrobbles.importing.constants import CSV_BASE_COLUMNS, CSV_INFO_COLUMNS
from scrobbles.importing.models import Listen

EXPORT_FILENAME_PREFIX = "viking-scrobbles"


class ExportFormat(enum.StrEnum):
    JSON = "json"
    CSV = "csv"


MEDIA_TYPES: dict[ExportFormat, str] = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
}


def export_json(listens: Iterable[Listen]) -> str:
    """Array of listens in wire shape, full additional_info included."""
    return json.dumps([listen.to_payload() for listen in listens], ensure_ascii=False, indent=2)


def _cell(value: object) -> object:
    if value is None:
        return ""
    if isinstance(value, list | dict):
        return json.dumps(value, ensure_ascii=False)
    return value


def export_csv(listens: Iterable[Listen]) -> str:
    """One row per listen; known additional_info keys get fixed columns, others follow alphabetically."""
    rows = list(listens)
    extra_columns = sorted({key for listen in rows for key in listen.additional_info} - set(CSV_INFO_COLUMNS))
    columns = [*CSV_BASE_COLUMNS, *CSV_INFO_COLUMNS, *extra_columns]

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=columns)
    writer.writeheader()
    for listen in rows:
        writer.writerow(
            {
                "track_name": listen.track_name,
                "artist_name": listen.artist_name,
                "listened_at": listen.listened_at,
                "release_name": _cell(listen.release_name),
                **{key: _cell(value) for key, value in listen.additional_info.items()},
            }
        )
    return buffer.getvalue()


def export_listens(listens: Iterable[Listen], export_format: ExportFormat) -> str:
    if export_format == ExportFormat.CSV:
        return export_csv(listens)
    return export_json(listens)


def export_filename(time_range: str, export_format: ExportFormat, today: date) -> str:
    return f"{EXPORT_FILENAME_PREFIX}-{time_range}-{today.isoformat()}.{export_format.value}"
