"""Listen import/export service: wraps the import pipeline in one unit of work."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from scrobbles.aggregation.engine import AggregationEngine
from scrobbles.aggregation.windows import AggregationWindow, TimeRange
from scrobbles.db.operations import ListenRepository
from scrobbles.enrichment.client import MetadataEnricher
from scrobbles.export import ExportFormat, export_filename, export_listens
from scrobbles.importing.exceptions import TransportFailureError
from scrobbles.importing.models import ImportBatch, ImportResult, Listen
from scrobbles.importing.orchestrator import ImportOrchestrator

logger = logging.getLogger(__name__)


class ListensService:
    """Stateless service over the listen repository and import orchestrator."""

    def __init__(self, repository: ListenRepository | None = None) -> None:
        self._repo = repository or ListenRepository()

    async def import_batch(
        self,
        batch: ImportBatch,
        user_name: str,
        session: AsyncSession,
        *,
        enricher: MetadataEnricher | None = None,
        tolerance_seconds: int,
    ) -> ImportResult:
        """Run the batch and commit it. Any storage failure rolls the whole batch back."""
        orchestrator = ImportOrchestrator(self._repo, enricher=enricher, tolerance_seconds=tolerance_seconds)
        try:
            result = await orchestrator.run(batch, user_name, session)
            await session.commit()
        except TransportFailureError:
            await session.rollback()
            raise
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.exception("Commit of import for user %s failed", user_name)
            raise TransportFailureError(f"Storage failed during import: {exc}") from exc
        return result

    async def export(
        self,
        user_name: str,
        session: AsyncSession,
        time_range: TimeRange,
        export_format: ExportFormat,
        engine: AggregationEngine,
    ) -> tuple[str, str]:
        """Serialize the user's listens in ``time_range``. Returns ``(filename, body)``."""
        window = AggregationWindow.for_range(time_range)
        try:
            records = await self._repo.list_listens(user_name, session, window.start, window.end)
        except SQLAlchemyError as exc:
            await session.rollback()
            raise TransportFailureError(f"Storage failed during export: {exc}") from exc
        body = export_listens([record.to_listen() for record in records], export_format)
        filename = export_filename(time_range, export_format, engine.local_date(window.end))
        logger.info("Exported %d listens for user %s as %s", len(records), user_name, export_format)
        return filename, body

    async def recent_listens(self, user_name: str, session: AsyncSession, count: int) -> list[Listen]:
        try:
            records = await self._repo.recent_listens(user_name, session, limit=count)
        except SQLAlchemyError as exc:
            await session.rollback()
            raise TransportFailureError(f"Storage failed while reading listens: {exc}") from exc
        return [record.to_listen() for record in records]
