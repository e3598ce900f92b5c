"""Tests for per-schema record normalizers."""

import pytest

from scrobbles.importing.models import SourceFormat
from scrobbles.importing.normalizers import (
    coerce_timestamp,
    detect_music_service,
    explain_rejection,
    normalize_csv_row,
    normalize_lastfm_track,
    normalize_listenbrainz_record,
    normalize_maloja_scrobble,
    normalize_navidrome_record,
    normalize_record,
)

NOW = 1_750_000_000


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1700000000, 1700000000),
        (1700000000.9, 1700000000),
        ("1700000000", 1700000000),
        (1700000000123, 1700000000),
        ("2023-11-14T22:13:20Z", 1700000000),
        ("2023-11-14T22:13:20", 1700000000),
        ("not a date", None),
        ("", None),
        (None, None),
        (True, None),
        (float("nan"), None),
        (0, 0),
        (-5, None),
        (10**17, None),
        (-(10**15), None),
        (2**70, None),
        ("1969-12-31T23:59:59Z", None),
    ],
)
def test_coerce_timestamp(value: object, expected: int | None) -> None:
    """Timestamps are read from numbers, numeric strings and ISO 8601."""
    assert coerce_timestamp(value) == expected


def test_detect_music_service() -> None:
    """Known services are found case-insensitively inside the origin."""
    assert detect_music_service("client:Navidrome") == "navidrome"
    assert detect_music_service("https://open.spotify.com/track/x") == "spotify"
    assert detect_music_service("client:unknown") is None
    assert detect_music_service(None) is None


def test_maloja_full_record() -> None:
    """A complete Maloja scrobble maps every field."""
    raw = {
        "time": 1700000000,
        "duration": 200,
        "origin": "client:navidrome",
        "track": {
            "title": "Song",
            "artists": ["A1", "A2"],
            "album": {"albumtitle": "Album"},
            "length": 215,
        },
    }
    listen = normalize_maloja_scrobble(raw)
    assert listen is not None
    assert listen.listened_at == 1700000000
    assert listen.track_name == "Song"
    assert listen.artist_name == "A1, A2"
    assert listen.release_name == "Album"
    assert listen.additional_info == {
        "duration_ms": 215000,
        "origin_url": "client:navidrome",
        "music_service": "navidrome",
    }


def test_maloja_falls_back_to_scrobble_duration() -> None:
    """Without a track length the scrobble duration is used."""
    raw = {"time": 1, "duration": 1.5, "track": {"title": "S", "artists": ["A"]}}
    listen = normalize_maloja_scrobble(raw)
    assert listen is not None
    assert listen.additional_info == {"duration_ms": 1500}


def test_maloja_missing_fields_use_defaults() -> None:
    """Missing time and names fall back to now and Unknown."""
    listen = normalize_maloja_scrobble({}, now=NOW)
    assert listen is not None
    assert listen.listened_at == NOW
    assert listen.track_name == "Unknown"
    assert listen.artist_name == "Unknown"
    assert listen.release_name is None
    assert listen.additional_info == {}


def test_maloja_rejects_non_object() -> None:
    """Non-object records cannot be converted."""
    assert normalize_maloja_scrobble(["x"]) is None


def test_listenbrainz_passthrough() -> None:
    """Canonical records pass through unchanged."""
    raw = {
        "listened_at": 1700000000,
        "track_metadata": {
            "track_name": "T",
            "artist_name": "A",
            "release_name": "R",
            "additional_info": {"duration_ms": 1000, "custom": "x"},
        },
    }
    listen = normalize_listenbrainz_record(raw)
    assert listen is not None
    assert listen.to_payload() == raw


def test_listenbrainz_passthrough_bad_timestamp_rejected() -> None:
    """A canonical record with unreadable listened_at is rejected."""
    raw = {"listened_at": "yesterday", "track_metadata": {"track_name": "T", "artist_name": "A"}}
    assert normalize_listenbrainz_record(raw) is None
    assert explain_rejection(raw) == "unreadable or out-of-range listened_at 'yesterday'"


def test_listenbrainz_passthrough_out_of_range_timestamp_rejected() -> None:
    """A listened_at that still lands past year 9999 after millisecond scaling is rejected."""
    raw = {"listened_at": 10**17, "track_metadata": {"track_name": "T", "artist_name": "A"}}
    assert normalize_listenbrainz_record(raw) is None
    assert explain_rejection(raw) == f"unreadable or out-of-range listened_at {10**17!r}"


def test_listenbrainz_alias_out_of_range_falls_back_to_now() -> None:
    """Alias records with an impossible time are kept and stamped with the import time."""
    raw = {"timestamp": -(10**15), "track": "T", "artist": "A"}
    listen = normalize_listenbrainz_record(raw, now=NOW)
    assert listen is not None
    assert listen.listened_at == NOW


def test_listenbrainz_aliases() -> None:
    """Loosely shaped records are rebuilt from field aliases."""
    raw = {"timestamp": "1700000000", "track": "T", "artist": "A", "album": "R"}
    listen = normalize_listenbrainz_record(raw)
    assert listen is not None
    assert (listen.listened_at, listen.track_name, listen.artist_name, listen.release_name) == (
        1700000000,
        "T",
        "A",
        "R",
    )


def test_listenbrainz_alias_defaults() -> None:
    """Missing names default to Unknown / Unknown Artist and time to now."""
    listen = normalize_listenbrainz_record({"foo": "bar"}, now=NOW)
    assert listen is not None
    assert listen.listened_at == NOW
    assert listen.track_name == "Unknown"
    assert listen.artist_name == "Unknown Artist"


def test_navidrome_extras() -> None:
    """Navidrome song fields are lifted into additional_info."""
    raw = {
        "id": "abc",
        "title": "T",
        "artist": "A",
        "album": "R",
        "playDate": "ignored",
        "time": 1700000000,
        "duration": 200.5,
        "bitRate": 320,
        "suffix": "flac",
        "genre": "Rock",
        "year": 1999,
    }
    listen = normalize_navidrome_record(raw)
    assert listen is not None
    assert listen.release_name == "R"
    assert listen.additional_info == {
        "navidrome_id": "abc",
        "duration_ms": 200500,
        "original_bit_rate": 320,
        "original_format": "flac",
        "genres": "Rock",
        "release_year": 1999,
    }


def test_lastfm_track() -> None:
    """Last.fm fields map to the canonical listen."""
    raw = {
        "name": "T",
        "artist": {"#text": "A"},
        "album": {"#text": "R"},
        "mbid": "m-1",
        "date": {"uts": "1700000000"},
    }
    listen = normalize_lastfm_track(raw)
    assert listen is not None
    assert listen.listened_at == 1700000000
    assert listen.artist_name == "A"
    assert listen.release_name == "R"
    assert listen.additional_info == {"recording_mbid": "m-1"}


def test_lastfm_now_playing_gets_now() -> None:
    """A track without a date (now playing) is stamped with now."""
    listen = normalize_lastfm_track({"name": "T", "artist": "A"}, now=NOW)
    assert listen is not None
    assert listen.listened_at == NOW


def test_csv_row() -> None:
    """CSV rows decode integers and JSON lists into additional_info."""
    row = {
        "track_name": "T",
        "artist_name": "A",
        "listened_at": "1700000000",
        "release_name": "",
        "duration_ms": "215000",
        "genres": '["rock", "pop"]',
        "origin_url": "",
    }
    listen = normalize_csv_row(row)
    assert listen is not None
    assert listen.release_name is None
    assert listen.additional_info == {"duration_ms": 215000, "genres": ["rock", "pop"]}


def test_csv_row_requires_timestamp() -> None:
    """CSV rows without a timestamp are rejected."""
    assert normalize_csv_row({"track_name": "T", "artist_name": "A", "listened_at": ""}) is None


def test_normalize_record_dispatch() -> None:
    """normalize_record picks the normalizer for the source format."""
    listen = normalize_record(SourceFormat.LASTFM, {"name": "T", "artist": "A", "date": {"uts": 5}})
    assert listen is not None
    assert listen.listened_at == 5


def test_explain_rejection_non_object() -> None:
    """Non-object records are described by type."""
    assert explain_rejection(42) == "expected an object, got int"
