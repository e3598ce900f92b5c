"""Process-wide singletons and FastAPI dependency providers."""

from typing import Annotated

from fastapi import Depends

from app.settings import AppSettings, get_settings
from scrobbles.aggregation.engine import AggregationEngine
from scrobbles.db.session import DatabaseManager
from scrobbles.enrichment.client import EnrichmentClient, MetadataEnricher
from scrobbles.push import PushHub

db_manager = DatabaseManager.from_env()
push_hub = PushHub()


def get_push_hub() -> PushHub:
    return push_hub


def get_engine(settings: Annotated[AppSettings, Depends(get_settings)]) -> AggregationEngine:
    return AggregationEngine(tz=settings.stats_tz)


def get_enricher(settings: Annotated[AppSettings, Depends(get_settings)]) -> MetadataEnricher | None:
    """Enrichment client, or None when no enrichment service is configured."""
    if not settings.ENRICHMENT_SERVICE_URL:
        return None
    return EnrichmentClient(
        settings.ENRICHMENT_SERVICE_URL,
        request_timeout=settings.ENRICHMENT_TIMEOUT_SECONDS,
    )
