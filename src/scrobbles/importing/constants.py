"""Constants for listen import processing."""

# Two listens of the same track by the same artist this close together are one play
DEFAULT_DEDUP_TOLERANCE_SECONDS = 5

UNKNOWN = "Unknown"
UNKNOWN_ARTIST = "Unknown Artist"

# Epoch values above this are treated as milliseconds
MILLISECOND_EPOCH_THRESHOLD = 10**11

# Accepted epoch-seconds range: the Unix epoch up to 9999-12-30 UTC, a day short of
# datetime.max so any UTC offset still yields a representable calendar date
MIN_EPOCH_SECONDS = 0
MAX_EPOCH_SECONDS = 253_402_128_000

# Ordered: the first service name found in an origin string wins
KNOWN_MUSIC_SERVICES = ("navidrome", "spotify", "youtube", "soundcloud", "lastfm", "maloja")

# Field aliases for loosely-typed ListenBrainz-shaped records, in lookup order
TIME_ALIASES = ("listened_at", "timestamp", "time")
TRACK_ALIASES = ("track_name", "track", "title")
ARTIST_ALIASES = ("artist_name", "artist")
RELEASE_ALIASES = ("release_name", "album")

# additional_info keys that hold integers when read back from CSV
INTEGER_INFO_FIELDS = frozenset({"duration_ms", "release_year", "original_bit_rate"})

# CSV columns, in export order; remaining additional_info keys follow alphabetically
CSV_BASE_COLUMNS = ("track_name", "artist_name", "listened_at", "release_name")
CSV_INFO_COLUMNS = (
    "duration_ms",
    "origin_url",
    "music_service",
    "genres",
    "release_year",
    "recording_mbid",
    "navidrome_id",
    "original_bit_rate",
    "original_format",
    "media_player",
)
CSV_REQUIRED_COLUMNS = ("track_name", "artist_name", "listened_at")

JSON_EXTENSIONS = frozenset({".json"})
CSV_EXTENSIONS = frozenset({".csv"})
JSON_CONTENT_TYPES = frozenset({"application/json", "text/json"})
CSV_CONTENT_TYPES = frozenset({"text/csv", "application/csv", "application/vnd.ms-excel"})

DEFAULT_MAX_FILE_SIZE_BYTES = 100 * 1024 * 1024
