"""Client for the external metadata enrichment service."""

from scrobbles.enrichment.client import EnrichmentClient, MetadataEnricher
from scrobbles.enrichment.exceptions import EnrichmentError

__all__ = ["EnrichmentClient", "EnrichmentError", "MetadataEnricher"]
