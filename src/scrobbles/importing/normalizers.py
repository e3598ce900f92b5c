"""Normalizers that convert raw records from each import schema into a canonical Listen.

Every normalizer is total: missing or malformed leaf fields fall back to
defaults ("Unknown" names, "now" for the timestamp). ``None`` is returned only
when a record cannot be converted at all, i.e. it is not a JSON object, or it
claims the canonical shape but its ``listened_at`` is unreadable.
"""

import json
import logging
import math
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from scrobbles.importing.constants import (
    ARTIST_ALIASES,
    INTEGER_INFO_FIELDS,
    KNOWN_MUSIC_SERVICES,
    MAX_EPOCH_SECONDS,
    MILLISECOND_EPOCH_THRESHOLD,
    MIN_EPOCH_SECONDS,
    RELEASE_ALIASES,
    TIME_ALIASES,
    TRACK_ALIASES,
    UNKNOWN,
    UNKNOWN_ARTIST,
)
from scrobbles.importing.models import Listen, SourceFormat

logger = logging.getLogger(__name__)

Normalizer = Callable[..., Listen | None]


def _parse_timestamp_text(text: str) -> int:
    try:
        return int(float(text))
    except ValueError:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return int(parsed.timestamp())


def coerce_timestamp(value: object) -> int | None:
    """Read an epoch-seconds timestamp from an int, float, numeric string or ISO 8601 string.

    Millisecond epochs are scaled down. Returns None for anything unreadable
    and for instants outside [MIN_EPOCH_SECONDS, MAX_EPOCH_SECONDS), which
    could not be placed on a calendar.
    """
    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, int | float):
            seconds = int(value)
        elif isinstance(value, str) and value.strip():
            seconds = _parse_timestamp_text(value.strip())
        else:
            return None
    except (ValueError, OverflowError):
        return None

    if abs(seconds) > MILLISECOND_EPOCH_THRESHOLD:
        seconds //= 1000
    if not MIN_EPOCH_SECONDS <= seconds < MAX_EPOCH_SECONDS:
        return None
    return seconds


def detect_music_service(origin: object) -> str | None:
    """Return the first known service name contained in ``origin`` (case-insensitive)."""
    if not isinstance(origin, str):
        return None
    lowered = origin.lower()
    for service in KNOWN_MUSIC_SERVICES:
        if service in lowered:
            return service
    return None


def _name(value: object) -> str | None:
    """Best-effort display name from a string, number, list of names, or name-bearing object."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return str(value)
    if isinstance(value, list):
        names = [n for n in (_name(v) for v in value) if n]
        return ", ".join(names) or None
    if isinstance(value, dict):
        for key in ("#text", "name", "title", "albumtitle"):
            found = _name(value.get(key))
            if found:
                return found
    return None


def _first(record: dict[str, Any], aliases: tuple[str, ...]) -> str | None:
    for alias in aliases:
        found = _name(record.get(alias))
        if found:
            return found
    return None


def _seconds_to_ms(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if isinstance(value, int | float) and math.isfinite(value):
        return int(round(value * 1000))
    return None


def _now(now: int | None) -> int:
    return now if now is not None else int(time.time())


def normalize_maloja_scrobble(raw: object, *, now: int | None = None) -> Listen | None:
    """Normalize one entry of a Maloja ``scrobbles`` export.

    Expected shape::

        {"time": 1700000000, "duration": 215, "origin": "client:navidrome",
         "track": {"title": "...", "artists": ["..."], "album": {"albumtitle": "..."}, "length": 230}}
    """
    if not isinstance(raw, dict):
        return None

    track = raw.get("track")
    if not isinstance(track, dict):
        track = {}

    listened_at = coerce_timestamp(raw.get("time"))
    if listened_at is None:
        listened_at = _now(now)

    duration_ms = _seconds_to_ms(track.get("length"))
    if duration_ms is None:
        duration_ms = _seconds_to_ms(raw.get("duration"))

    info: dict[str, Any] = {}
    if duration_ms is not None:
        info["duration_ms"] = duration_ms
    origin = raw.get("origin")
    if isinstance(origin, str) and origin:
        info["origin_url"] = origin
    music_service = detect_music_service(origin)
    if music_service:
        info["music_service"] = music_service

    return Listen(
        listened_at=listened_at,
        track_name=_name(track.get("title")) or UNKNOWN,
        artist_name=_name(track.get("artists")) or UNKNOWN,
        release_name=_name(track.get("album")),
        additional_info=info,
    )


def _passthrough_listenbrainz(raw: dict[str, Any]) -> Listen | None:
    listened_at = coerce_timestamp(raw["listened_at"])
    if listened_at is None:
        logger.warning("Rejecting record with unreadable or out-of-range listened_at: %r", raw["listened_at"])
        return None

    metadata = raw["track_metadata"]
    if not isinstance(metadata, dict):
        metadata = {}
    additional_info = metadata.get("additional_info")

    return Listen(
        listened_at=listened_at,
        track_name=_name(metadata.get("track_name")) or UNKNOWN,
        artist_name=_name(metadata.get("artist_name")) or UNKNOWN,
        release_name=_name(metadata.get("release_name")),
        additional_info=dict(additional_info) if isinstance(additional_info, dict) else {},
    )


def normalize_listenbrainz_record(raw: object, *, now: int | None = None) -> Listen | None:
    """Normalize a ListenBrainz-shaped record.

    Records that already carry ``listened_at`` and ``track_metadata`` pass
    through as-is; anything else is rebuilt from common field aliases
    (``timestamp``/``time``, ``track``/``title``, ``artist``, ``album``).
    """
    if not isinstance(raw, dict):
        return None
    if "listened_at" in raw and "track_metadata" in raw:
        return _passthrough_listenbrainz(raw)

    metadata = raw.get("track_metadata")
    if not isinstance(metadata, dict):
        metadata = raw

    listened_at = None
    for alias in TIME_ALIASES:
        listened_at = coerce_timestamp(raw.get(alias))
        if listened_at is not None:
            break
    if listened_at is None:
        listened_at = _now(now)

    additional_info = metadata.get("additional_info")

    return Listen(
        listened_at=listened_at,
        track_name=_first(metadata, TRACK_ALIASES) or _first(raw, TRACK_ALIASES) or UNKNOWN,
        artist_name=_first(metadata, ARTIST_ALIASES) or _first(raw, ARTIST_ALIASES) or UNKNOWN_ARTIST,
        release_name=_first(metadata, RELEASE_ALIASES) or _first(raw, RELEASE_ALIASES),
        additional_info=dict(additional_info) if isinstance(additional_info, dict) else {},
    )


def normalize_navidrome_record(raw: object, *, now: int | None = None) -> Listen | None:
    """Normalize a Navidrome ``data`` export entry.

    Uses the ListenBrainz alias mapping, then lifts Navidrome song fields
    (``id``, ``duration``, ``bitRate``, ``suffix``, ``genre``, ``year``) into
    additional_info when they are present and not already set.
    """
    listen = normalize_listenbrainz_record(raw, now=now)
    if listen is None or not isinstance(raw, dict) or "track_metadata" in raw:
        return listen

    extras: dict[str, Any] = {}
    if raw.get("id"):
        extras["navidrome_id"] = str(raw["id"])
    duration_ms = _seconds_to_ms(raw.get("duration"))
    if duration_ms is not None:
        extras["duration_ms"] = duration_ms
    if isinstance(raw.get("bitRate"), int):
        extras["original_bit_rate"] = raw["bitRate"]
    if isinstance(raw.get("suffix"), str):
        extras["original_format"] = raw["suffix"]
    genre = _name(raw.get("genre"))
    if genre:
        extras["genres"] = genre
    if isinstance(raw.get("year"), int) and raw["year"] > 0:
        extras["release_year"] = raw["year"]

    if not extras:
        return listen
    return listen.model_copy(update={"additional_info": {**extras, **listen.additional_info}})


def normalize_lastfm_track(raw: object, *, now: int | None = None) -> Listen | None:
    """Normalize one entry of a Last.fm ``recenttracks.track`` list."""
    if not isinstance(raw, dict):
        return None

    date = raw.get("date")
    listened_at = coerce_timestamp(date.get("uts")) if isinstance(date, dict) else None
    if listened_at is None:
        listened_at = _now(now)

    info: dict[str, Any] = {}
    mbid = raw.get("mbid")
    if isinstance(mbid, str) and mbid:
        info["recording_mbid"] = mbid

    return Listen(
        listened_at=listened_at,
        track_name=_name(raw.get("name")) or UNKNOWN,
        artist_name=_name(raw.get("artist")) or UNKNOWN,
        release_name=_name(raw.get("album")),
        additional_info=info,
    )


def _csv_value(column: str, value: str) -> object:
    if column in INTEGER_INFO_FIELDS:
        try:
            return int(value)
        except ValueError:
            return value
    if value[:1] in ("[", "{"):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


def normalize_csv_row(raw: object, *, now: int | None = None) -> Listen | None:
    """Normalize a row of the CSV export (``csv.DictReader`` output).

    ``listened_at`` is mandatory here; every other non-empty column beyond the
    base four ends up in additional_info.
    """
    if not isinstance(raw, dict):
        return None
    listened_at = coerce_timestamp(raw.get("listened_at"))
    if listened_at is None:
        return None

    info: dict[str, Any] = {}
    for column, value in raw.items():
        if column in ("track_name", "artist_name", "listened_at", "release_name") or column is None:
            continue
        if isinstance(value, str) and value.strip():
            info[column] = _csv_value(column, value.strip())

    return Listen(
        listened_at=listened_at,
        track_name=_name(raw.get("track_name")) or UNKNOWN,
        artist_name=_name(raw.get("artist_name")) or UNKNOWN,
        release_name=_name(raw.get("release_name")),
        additional_info=info,
    )


NORMALIZERS: dict[SourceFormat, Normalizer] = {
    SourceFormat.MALOJA: normalize_maloja_scrobble,
    SourceFormat.LISTENBRAINZ_ARRAY: normalize_listenbrainz_record,
    SourceFormat.LISTENBRAINZ_LISTENS: normalize_listenbrainz_record,
    SourceFormat.LISTENBRAINZ_PAYLOAD: normalize_listenbrainz_record,
    SourceFormat.GENERIC_SCROBBLES: normalize_listenbrainz_record,
    SourceFormat.NAVIDROME: normalize_navidrome_record,
    SourceFormat.LASTFM: normalize_lastfm_track,
    SourceFormat.CSV: normalize_csv_row,
}


def normalize_record(source_format: SourceFormat, raw: object, *, now: int | None = None) -> Listen | None:
    """Dispatch ``raw`` to the normalizer for ``source_format``."""
    return NORMALIZERS[source_format](raw, now=now)


def explain_rejection(raw: object) -> str:
    """Human-readable reason a record could not be normalized."""
    if not isinstance(raw, dict):
        return f"expected an object, got {type(raw).__name__}"
    if "listened_at" in raw:
        return f"unreadable or out-of-range listened_at {raw['listened_at']!r}"
    return "record could not be converted"
