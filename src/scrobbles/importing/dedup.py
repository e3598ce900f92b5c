"""Duplicate detection for listens within an import and against stored listens."""

from collections import defaultdict
from typing import Generic, TypeVar

from scrobbles.importing.constants import DEFAULT_DEDUP_TOLERANCE_SECONDS
from scrobbles.importing.models import Listen

RefT = TypeVar("RefT")


class Deduplicator(Generic[RefT]):
    """Pairwise duplicate check against previously accepted listens.

    Two listens are duplicates when track and artist names match exactly
    (case-sensitive) and their timestamps are at most ``tolerance_seconds``
    apart. Entries are checked in the order they were registered, so the
    first-seen listen wins. Each entry carries an opaque ``ref`` (e.g. the
    stored row) so callers can act on the match.
    """

    def __init__(self, tolerance_seconds: int = DEFAULT_DEDUP_TOLERANCE_SECONDS) -> None:
        self._tolerance = tolerance_seconds
        self._accepted: dict[tuple[str, str], list[tuple[int, RefT]]] = defaultdict(list)

    @staticmethod
    def is_duplicate(a: Listen, b: Listen, tolerance_seconds: int = DEFAULT_DEDUP_TOLERANCE_SECONDS) -> bool:
        """Symmetric duplicate relation between two listens."""
        return a.dedup_key == b.dedup_key and abs(a.listened_at - b.listened_at) <= tolerance_seconds

    def find(self, listen: Listen) -> RefT | None:
        """Return the ref of the first accepted listen ``listen`` duplicates, if any."""
        for listened_at, ref in self._accepted.get(listen.dedup_key, ()):
            if abs(listen.listened_at - listened_at) <= self._tolerance:
                return ref
        return None

    def register(self, listen: Listen, ref: RefT) -> None:
        """Record ``listen`` as accepted."""
        self._accepted[listen.dedup_key].append((listen.listened_at, ref))

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._accepted.values())
