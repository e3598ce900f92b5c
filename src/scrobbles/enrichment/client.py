"""Async client for the metadata enrichment service (Navidrome / MusicBrainz lookups)."""

import logging
from typing import Any, Protocol

import httpx

from scrobbles.enrichment.exceptions import EnrichmentError
from scrobbles.importing.models import Listen, MetadataSource

logger = logging.getLogger(__name__)

DEFAULT_ENRICHMENT_TIMEOUT = 10.0


class MetadataEnricher(Protocol):
    """Anything that can look up extra additional_info fields for a listen."""

    async def enrich(self, listen: Listen, source: MetadataSource) -> dict[str, Any] | None: ...


class EnrichmentClient:
    """Calls ``POST {base_url}/enrich`` once per listen.

    Request body: ``{"source": "musicbrainz", "listen": {...wire shape...}}``.
    Response body: ``{"additional_info": {...}}`` (may be empty or missing).
    No retries: a failed call raises EnrichmentError and the caller moves on.
    """

    def __init__(
        self,
        base_url: str,
        *,
        request_timeout: float = DEFAULT_ENRICHMENT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._request_timeout = request_timeout
        self._transport = transport

    async def enrich(self, listen: Listen, source: MetadataSource) -> dict[str, Any] | None:
        body = {"source": source.value, "listen": listen.to_payload()}
        try:
            async with httpx.AsyncClient(timeout=self._request_timeout, transport=self._transport) as client:
                response = await client.post(f"{self._base_url}/enrich", json=body)
        except httpx.HTTPError as exc:
            raise EnrichmentError(f"Enrichment request failed: {exc}") from exc

        if response.status_code == 404:
            return None
        if not 200 <= response.status_code < 300:
            raise EnrichmentError(
                f"Enrichment service error: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise EnrichmentError("Enrichment service returned invalid JSON") from exc

        info = data.get("additional_info") if isinstance(data, dict) else None
        if not isinstance(info, dict) or not info:
            return None
        logger.debug("Enriched %s - %s from %s", listen.artist_name, listen.track_name, source)
        return info
