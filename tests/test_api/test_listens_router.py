"""Tests for listen import, export and recent-listens endpoints."""

import json
import time
from typing import Any

from fastapi.testclient import TestClient

USER = "viking"


def _lb(ts: int, track: str = "T", artist: str = "A") -> dict[str, Any]:
    return {"listened_at": ts, "track_metadata": {"track_name": track, "artist_name": artist}}


def _import(client: TestClient, payload: list[Any], **options: Any) -> Any:
    body = {"listen_type": "import", "payload": payload, **options}
    return client.post(f"/1/import/{USER}", json=body)


def test_import_json(client: TestClient) -> None:
    """JSON import stores listens and reports the tally."""
    resp = _import(client, [_lb(100), _lb(200, track="U")])
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["stats"]["imported"] == 2
    assert data["stats"]["total"] == 2
    assert data["message"] == "Imported 2 of 2 listens"


def test_import_json_twice_skips_duplicates(client: TestClient) -> None:
    """The second import of the same listens skips all of them."""
    _import(client, [_lb(100), _lb(200, track="U")])
    data = _import(client, [_lb(102), _lb(200, track="U")]).json()
    assert data["stats"]["imported"] == 0
    assert data["stats"]["duplicates_skipped"] == 2


def test_import_errors_are_capped(client: TestClient) -> None:
    """Only the configured number of error strings is returned."""
    data = _import(client, ["a", "b", "c", _lb(100)]).json()
    assert data["stats"]["failed"] == 3
    assert len(data["stats"]["errors"]) == 2


def test_import_replace_mode(client: TestClient) -> None:
    """Replace mode leaves only the new listens."""
    _import(client, [_lb(100), _lb(200)])
    _import(client, [_lb(300, track="New")], import_mode="replace")
    listens = client.get(f"/1/user/{USER}/recent-listens").json()["listens"]
    assert [listen["track_metadata"]["track_name"] for listen in listens] == ["New"]


def test_import_file_maloja(client: TestClient) -> None:
    """An uploaded Maloja export is detected and imported."""
    doc = {"scrobbles": [{"time": 1700000000, "track": {"title": "A", "artists": ["B"], "album": {"albumtitle": "C"}}}]}
    resp = client.post(
        f"/1/import/{USER}/file",
        files={"file": ("maloja.json", json.dumps(doc), "application/json")},
        data={"import_mode": "skip", "deduplicate": "true"},
    )
    assert resp.status_code == 200
    assert resp.json()["stats"]["imported"] == 1

    listen = client.get(f"/1/user/{USER}/recent-listens").json()["listens"][0]
    assert listen["listened_at"] == 1700000000
    assert listen["track_metadata"]["track_name"] == "A"
    assert listen["track_metadata"]["artist_name"] == "B"
    assert listen["track_metadata"]["release_name"] == "C"


def test_import_file_csv(client: TestClient) -> None:
    """CSV uploads are imported row by row."""
    content = "track_name,artist_name,listened_at,duration_ms\nT,A,1700000000,1000\nU,A,1700000500,\n"
    resp = client.post(f"/1/import/{USER}/file", files={"file": ("listens.csv", content, "text/csv")})
    assert resp.json()["stats"]["imported"] == 2


def test_import_file_no_listens(client: TestClient) -> None:
    """An empty listens file fails before anything is imported."""
    resp = client.post(
        f"/1/import/{USER}/file",
        files={"file": ("empty.json", json.dumps({"listens": []}), "application/json")},
    )
    assert resp.status_code == 400
    assert resp.json() == {"status": "error", "message": "File contains no listens"}


def test_import_file_malformed_csv(client: TestClient) -> None:
    """A CSV the parser cannot read is a 400 with one message."""
    content = "track_name,artist_name,listened_at\n" + "x" * 200_000 + ",b,1700000000\n"
    resp = client.post(f"/1/import/{USER}/file", files={"file": ("listens.csv", content, "text/csv")})
    assert resp.status_code == 400
    assert resp.json()["status"] == "error"
    assert resp.json()["message"].startswith("File is not valid CSV")


def test_import_file_unsupported_format(client: TestClient) -> None:
    """Unknown documents are rejected with the keys found."""
    resp = client.post(
        f"/1/import/{USER}/file",
        files={"file": ("x.json", json.dumps({"foo": 1}), "application/json")},
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Unsupported import format (found top-level keys: foo)"


def test_validate_file(client: TestClient) -> None:
    """The validate endpoint reports without importing."""
    resp = client.post(
        f"/1/import/{USER}/validate",
        files={"file": ("x.json", json.dumps([_lb(100)]), "application/json")},
    )
    assert resp.json() == {"valid": True, "message": "Found 1 listens (listenbrainz_array)", "record_count": 1}
    assert client.get(f"/1/user/{USER}/recent-listens").json()["count"] == 0


def test_export_json_roundtrip(client: TestClient) -> None:
    """Exported JSON re-imports as all duplicates."""
    _import(client, [_lb(100), _lb(200, track="U"), _lb(300, artist="B")])

    resp = client.get(f"/1/export/{USER}?format=json&range=all_time")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/json")
    disposition = resp.headers["content-disposition"]
    assert 'filename="viking-scrobbles-all_time-' in disposition
    assert disposition.endswith('.json"')

    exported = resp.json()
    assert len(exported) == 3
    result = client.post(
        f"/1/import/{USER}/file",
        files={"file": ("export.json", resp.content, "application/json")},
    ).json()["stats"]
    assert result["duplicates_skipped"] == result["total"] == 3
    assert result["imported"] == 0


def test_export_csv_week(client: TestClient) -> None:
    """CSV export honours the range."""
    now = int(time.time())
    _import(client, [_lb(now - 3600), _lb(now - 30 * 86400, track="Old")])

    resp = client.get(f"/1/export/{USER}?format=csv&range=week")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    lines = resp.text.strip().splitlines()
    assert lines[0].startswith("track_name,artist_name,listened_at,release_name")
    assert len(lines) == 2


def test_recent_listens(client: TestClient) -> None:
    """Recent listens are newest first and limited by count."""
    _import(client, [_lb(100), _lb(200, track="U"), _lb(300, track="V")])
    data = client.get(f"/1/user/{USER}/recent-listens?count=2").json()
    assert data["count"] == 2
    assert [listen["listened_at"] for listen in data["listens"]] == [300, 200]


def test_import_storage_failure(broken_client: TestClient) -> None:
    """Storage failures return 503 with an error body."""
    resp = broken_client.post(f"/1/import/{USER}", json={"payload": [_lb(100)]})
    assert resp.status_code == 503
    data = resp.json()
    assert data["status"] == "error"
    assert data["message"].startswith("Storage failed")
