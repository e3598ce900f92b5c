"""Tests for push ingress and the live stats stream."""

import json
import time

from fastapi.testclient import TestClient

from app.main import app

USER = "viking"


def test_publish_event_without_streams(client: TestClient) -> None:
    """Events are accepted even when nobody listens."""
    resp = client.post(f"/1/events/{USER}", json={"event": "new_scrobble", "payload": {"anything": 1}})
    assert resp.status_code == 202
    assert resp.json() == {"status": "accepted", "notified": 0}


def test_stats_stream(override_deps: None) -> None:
    """The stream sends totals on connect, on range change and after new_scrobble."""
    now = int(time.time())
    with TestClient(app) as client:
        client.post(
            f"/1/import/{USER}",
            json={"payload": [{"listened_at": now - 60, "track_metadata": {"track_name": "T", "artist_name": "A"}}]},
        )

        with client.websocket_connect(f"/1/stats/stream/{USER}?range=week") as ws:
            first = ws.receive_json()
            assert first["range"] == "week"
            assert first["totals"]["total_listens"] == 1

            ws.send_text(json.dumps({"range": "month"}))
            second = ws.receive_json()
            assert second["range"] == "month"
            assert second["totals"]["total_listens"] == 1

            resp = client.post(f"/1/events/{USER}", json={"event": "new_scrobble"})
            assert resp.json()["notified"] == 1
            third = ws.receive_json()
            assert third["range"] == "month"
