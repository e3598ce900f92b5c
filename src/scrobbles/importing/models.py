"""Canonical listen model and import batch/result models."""

import enum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field


class ImportMode(enum.StrEnum):
    """How an import treats listens that already exist."""

    SKIP = "skip"
    MERGE = "merge"
    REPLACE = "replace"


class MetadataSource(enum.StrEnum):
    """Where imported listens should be enriched from."""

    ORIGINAL = "original"
    NAVIDROME = "navidrome"
    MUSICBRAINZ = "musicbrainz"


class SourceFormat(enum.StrEnum):
    """Import file schemas recognised by the detector."""

    MALOJA = "maloja"
    LISTENBRAINZ_ARRAY = "listenbrainz_array"
    LISTENBRAINZ_LISTENS = "listenbrainz_listens"
    LISTENBRAINZ_PAYLOAD = "listenbrainz_payload"
    GENERIC_SCROBBLES = "generic_scrobbles"
    NAVIDROME = "navidrome"
    LASTFM = "lastfm"
    CSV = "csv"


class Listen(BaseModel):
    """A single play in canonical form, whatever source it came from.

    ``additional_info`` is an open map; keys this service knows about are
    ``duration_ms``, ``origin_url``, ``music_service``, ``genres``,
    ``release_year``, ``navidrome_id``, ``original_bit_rate``,
    ``original_format``, ``media_player`` and ``recording_mbid``. Anything
    else is kept as-is.
    """

    model_config = ConfigDict(frozen=True)

    listened_at: int
    track_name: str = Field(min_length=1)
    artist_name: str = Field(min_length=1)
    release_name: str | None = None
    additional_info: dict[str, Any] = Field(default_factory=dict)

    @property
    def dedup_key(self) -> tuple[str, str]:
        """Name part of the duplicate key; the time part is matched with a tolerance."""
        return self.track_name, self.artist_name

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the ListenBrainz-style wire shape."""
        return {
            "listened_at": self.listened_at,
            "track_metadata": {
                "track_name": self.track_name,
                "artist_name": self.artist_name,
                "release_name": self.release_name,
                "additional_info": dict(self.additional_info),
            },
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Self:
        """Build from the wire shape produced by :meth:`to_payload`."""
        metadata = payload.get("track_metadata") or {}
        return cls(
            listened_at=payload["listened_at"],
            track_name=metadata["track_name"],
            artist_name=metadata["artist_name"],
            release_name=metadata.get("release_name"),
            additional_info=dict(metadata.get("additional_info") or {}),
        )


class ImportBatch(BaseModel):
    """One import request: raw records plus the policy to apply to them."""

    raw_records: list[Any]
    source_format: SourceFormat = SourceFormat.LISTENBRAINZ_ARRAY
    import_mode: ImportMode = ImportMode.SKIP
    metadata_source: MetadataSource = MetadataSource.ORIGINAL
    deduplicate: bool = True


class ImportResult(BaseModel):
    """Tally of one import batch."""

    imported: int = 0
    enriched: int = 0
    duplicates_skipped: int = 0
    failed: int = 0
    total: int = 0
    errors: list[str] = Field(default_factory=list)

    def capped(self, limit: int) -> Self:
        """Copy with at most ``limit`` error messages, counts unchanged."""
        return self.model_copy(update={"errors": self.errors[:limit]})
