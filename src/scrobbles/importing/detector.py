"""Import schema detection: identifies which source format a parsed document is."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from scrobbles.importing.exceptions import UnsupportedFormatError
from scrobbles.importing.models import SourceFormat

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DetectedFile:
    """A parsed import document tagged with the schema it matched.

    ``records`` is the list of raw source records, in file order.
    ``variant`` carries the Maloja export type when the file has a marker.
    """

    format: SourceFormat
    records: list[Any]
    variant: str | None = None


def _list_at(document: object, key: str) -> list[Any] | None:
    if isinstance(document, dict):
        value = document.get(key)
        if isinstance(value, list):
            return value
    return None


def _probe_maloja(document: object) -> DetectedFile | None:
    scrobbles = _list_at(document, "scrobbles")
    if scrobbles is None or not isinstance(document, dict):
        return None
    marker = document.get("maloja")
    if isinstance(marker, dict):
        export_type = marker.get("export_type")
        return DetectedFile(SourceFormat.MALOJA, scrobbles, str(export_type) if export_type else None)
    if scrobbles and isinstance(scrobbles[0], dict) and isinstance(scrobbles[0].get("track"), dict):
        return DetectedFile(SourceFormat.MALOJA, scrobbles)
    return None


def _probe_listenbrainz_array(document: object) -> DetectedFile | None:
    if isinstance(document, list):
        return DetectedFile(SourceFormat.LISTENBRAINZ_ARRAY, document)
    return None


def _probe_listenbrainz_listens(document: object) -> DetectedFile | None:
    listens = _list_at(document, "listens")
    if listens is None:
        return None
    return DetectedFile(SourceFormat.LISTENBRAINZ_LISTENS, listens)


def _probe_listenbrainz_payload(document: object) -> DetectedFile | None:
    payload = _list_at(document, "payload")
    if payload is None:
        return None
    return DetectedFile(SourceFormat.LISTENBRAINZ_PAYLOAD, payload)


def _probe_generic_scrobbles(document: object) -> DetectedFile | None:
    scrobbles = _list_at(document, "scrobbles")
    if scrobbles is None:
        return None
    return DetectedFile(SourceFormat.GENERIC_SCROBBLES, scrobbles)


def _probe_navidrome(document: object) -> DetectedFile | None:
    data = _list_at(document, "data")
    if data is None:
        return None
    return DetectedFile(SourceFormat.NAVIDROME, data)


def _probe_lastfm(document: object) -> DetectedFile | None:
    if not isinstance(document, dict):
        return None
    recent = document.get("recenttracks")
    if not isinstance(recent, dict) or "track" not in recent:
        return None
    tracks = recent["track"]
    if isinstance(tracks, dict):
        tracks = [tracks]
    if not isinstance(tracks, list):
        return None
    return DetectedFile(SourceFormat.LASTFM, tracks)


# Priority order: the first probe that matches decides the format
PROBES: tuple[Callable[[object], DetectedFile | None], ...] = (
    _probe_maloja,
    _probe_listenbrainz_array,
    _probe_listenbrainz_listens,
    _probe_listenbrainz_payload,
    _probe_generic_scrobbles,
    _probe_navidrome,
    _probe_lastfm,
)


def detect_format(document: object) -> DetectedFile:
    """Return the first schema in priority order that the document matches.

    Raises UnsupportedFormatError (with the top-level keys found) if none does.
    """
    for probe in PROBES:
        detected = probe(document)
        if detected is not None:
            logger.debug("Detected import format %s (%d records)", detected.format, len(detected.records))
            return detected

    found_keys = [str(k) for k in document] if isinstance(document, dict) else []
    raise UnsupportedFormatError(found_keys)
