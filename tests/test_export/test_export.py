"""Tests for JSON and CSV export."""

import csv
import io
import json
from datetime import date

from scrobbles.export import ExportFormat, export_csv, export_filename, export_json, export_listens
from scrobbles.importing.models import Listen
from scrobbles.importing.normalizers import normalize_csv_row

LISTENS = [
    Listen(
        listened_at=1700000000,
        track_name="Song",
        artist_name="Artist",
        release_name="Album",
        additional_info={"duration_ms": 215000, "genres": ["rock", "pop"], "zzz_custom": "x"},
    ),
    Listen(listened_at=1700000100, track_name="Other", artist_name="Artist"),
]


def test_export_json_is_wire_shape() -> None:
    """JSON export is an array of listens with full additional_info."""
    data = json.loads(export_json(LISTENS))
    assert data[0] == LISTENS[0].to_payload()
    assert data[1]["track_metadata"]["release_name"] is None


def test_export_csv_columns() -> None:
    """Base columns first, then known info columns, then extras alphabetically."""
    rows = list(csv.reader(io.StringIO(export_csv(LISTENS))))
    header = rows[0]
    assert header[:4] == ["track_name", "artist_name", "listened_at", "release_name"]
    assert header[4] == "duration_ms"
    assert header[-1] == "zzz_custom"
    assert len(rows) == 3


def test_export_csv_reads_back() -> None:
    """A CSV row normalizes back to the same listen."""
    reader = csv.DictReader(io.StringIO(export_csv(LISTENS)))
    restored = [normalize_csv_row(row) for row in reader]
    assert restored == LISTENS


def test_export_listens_dispatch() -> None:
    """Format selects the serializer."""
    assert export_listens(LISTENS, ExportFormat.CSV).startswith("track_name,")
    assert export_listens(LISTENS, ExportFormat.JSON).startswith("[")


def test_export_filename() -> None:
    """Download name carries range and date."""
    assert export_filename("week", ExportFormat.CSV, date(2026, 3, 11)) == "viking-scrobbles-week-2026-03-11.csv"
